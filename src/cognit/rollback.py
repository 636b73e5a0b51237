"""Install action log and best-effort rollback.

Every filesystem mutation the installer performs is appended to the log before
(or as) it happens. Rollback interprets the log backwards.
"""

import logging
import os
import shutil
from enum import Enum
from pathlib import Path
from typing import assert_never

from pydantic import BaseModel
from pydantic import ConfigDict

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    CREATE_DIRECTORY = "create_directory"
    WRITE_FILE = "write_file"
    CREATE_SYMLINK = "create_symlink"
    COPY_FILE = "copy_file"
    COPY_DIRECTORY = "copy_directory"
    REMOVE_EXISTING = "remove_existing"


class InstallAction(BaseModel):
    """One reversible filesystem effect."""

    model_config = ConfigDict(frozen=True)

    kind: ActionKind
    path: Path
    backup_path: Path | None = None


class RollbackResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    undone: int = 0
    failed: int = 0


def remove_path(path: Path) -> None:
    """Delete a symlink, file, or directory tree. Missing paths are ignored."""
    if path.is_symlink() or path.is_file():
        path.unlink(missing_ok=True)
    elif path.is_dir():
        shutil.rmtree(path)


def undo_action(action: InstallAction) -> None:
    """Reverse a single action.

    Raises:
        OSError: If the filesystem refuses the reversal
    """
    match action.kind:
        case ActionKind.CREATE_DIRECTORY | ActionKind.COPY_DIRECTORY:
            remove_path(action.path)
        case ActionKind.WRITE_FILE | ActionKind.COPY_FILE | ActionKind.CREATE_SYMLINK:
            if action.path.is_dir() and not action.path.is_symlink():
                shutil.rmtree(action.path)
            else:
                action.path.unlink(missing_ok=True)
        case ActionKind.REMOVE_EXISTING:
            if action.backup_path is not None:
                remove_path(action.path)
                os.replace(action.backup_path, action.path)
        case _:
            assert_never(action.kind)


def rollback(actions: list[InstallAction]) -> RollbackResult:
    """Reverse actions in LIFO order (best-effort).

    A failing step is counted and the remaining steps still run.

    Returns:
        Counts of undone and failed steps
    """
    undone = 0
    failed = 0

    for action in reversed(actions):
        try:
            undo_action(action)
            undone += 1
        except OSError as e:
            failed += 1
            logger.debug(f"Rollback of {action.kind.value} at {action.path} failed: {e}")

    return RollbackResult(undone=undone, failed=failed)
