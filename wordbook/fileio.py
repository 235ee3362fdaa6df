"""File helpers shared by the local word store and the remote stores."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional


def atomic_write(path: Path, payload: bytes, mode: Optional[int] = None) -> None:
    """Write via a sibling temp file so readers never see a partial blob.

    On any failure the previous content of ``path`` is left untouched.
    """
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


__all__ = ["atomic_write"]
