"""Atomic file writes: temp sibling file, then rename onto the target.

The rename is the only step that makes new content visible, so readers see
either the previous file or the complete new one.
"""

import asyncio
import logging
import os
import secrets
import time
from pathlib import Path

from .exceptions import FileWriteError

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".tmp."


def temp_path_for(target_path: Path) -> Path:
    """Unique temp sibling: pid, clock and a random suffix."""
    return target_path.parent / f"{TEMP_PREFIX}{os.getpid()}.{time.time_ns()}.{secrets.token_hex(4)}"


def atomic_write_file_sync(target_path: Path, content: str) -> None:
    """Write content to target_path atomically.

    Raises:
        FileWriteError: If any step fails (temp file is removed best-effort)
    """
    target_path = Path(target_path)
    tmp_path = temp_path_for(target_path)

    try:
        target_path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, target_path)
    except OSError as e:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError as cleanup_error:
            logger.debug(f"Could not remove temp file {tmp_path}: {cleanup_error}")
        raise FileWriteError(str(target_path)) from e


async def atomic_write_file(target_path: Path, content: str) -> None:
    """Async wrapper around ``atomic_write_file_sync``."""
    await asyncio.to_thread(atomic_write_file_sync, target_path, content)
