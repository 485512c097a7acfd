"""Emit a finished entry to disk."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from ..errors import WriteError, E_WRITE_IO
from ..logging import get_logger, section

__all__ = ["write_entry"]


def write_entry(data: bytes | bytearray, output_path: Path) -> int:
    """Write ``data`` to ``output_path`` and return the bytes written.

    The bytes go to a temporary file next to the destination which replaces
    it only once fully flushed; on any failure the temporary file is removed
    and the destination is left untouched.
    """
    logger = get_logger()
    output_path = Path(output_path)
    with section(f"Write {output_path.name}"):
        tmp_name = None
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{output_path.name}.", suffix=".tmp",
                dir=output_path.parent,
            )
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, output_path)
            tmp_name = None
        except OSError as exc:
            raise WriteError(
                E_WRITE_IO,
                f"Could not write {output_path}: {exc}",
                {"path": str(output_path)},
            ) from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        size = output_path.stat().st_size
    if size != len(data):
        raise WriteError(
            E_WRITE_IO,
            f"File size mismatch: expected {len(data)} wrote {size}",
            {"path": str(output_path)},
        )
    logger.info("Wrote %s (%d bytes)", output_path, size)
    return size
