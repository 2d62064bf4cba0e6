"""Scoped temporary files for handing raster buffers to the OCR engine."""
from __future__ import annotations

import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional


@contextmanager
def scoped_temp_file(
    data: bytes,
    *,
    prefix: str,
    suffix: str,
    directory: Optional[Path] = None,
) -> Iterator[Path]:
    """Write *data* to a uniquely named file that is removed when the block exits.

    Removal happens on every exit path, including exceptions raised inside the
    block and task cancellation.
    """

    with tempfile.NamedTemporaryFile(prefix=prefix, suffix=suffix, dir=directory) as handle:
        handle.write(data)
        handle.flush()
        yield Path(handle.name)
