"""Relative symlink creation with circular-link detection."""

import errno
import logging
import os
from pathlib import Path

from .exceptions import EloopError
from .exceptions import SymlinkError

logger = logging.getLogger(__name__)


def _absolute(path: Path) -> Path:
    return Path(os.path.normpath(os.path.abspath(path)))


def points_to(link_path: Path, target: Path) -> bool:
    """Check if link_path is a symlink whose destination is target."""
    link = _absolute(link_path)
    if not link.is_symlink():
        return False
    try:
        destination = os.readlink(link)
    except OSError:
        return False
    return _absolute(link.parent / destination) == _absolute(target)


def detect_loop(path: Path) -> None:
    """Raise EloopError if resolving path never terminates.

    Raises:
        EloopError: If the symlink chain at path is circular
    """
    try:
        os.stat(path)
    except OSError as e:
        if e.errno == errno.ELOOP:
            raise EloopError(str(path)) from e


def create_symlink(target: Path, link_path: Path) -> bool:
    """Create a relative symlink at link_path pointing to target.

    Returns:
        True if a link was created, False if link_path already is that link
        (or both paths are the same location)

    Raises:
        EloopError: If link_path is, or would become, a circular link chain
        SymlinkError: If the link cannot be created (unsupported filesystem,
            existing incompatible entry, permissions)
    """
    resolved_target = _absolute(target)
    resolved_link = _absolute(link_path)

    if resolved_target == resolved_link:
        return False

    if resolved_link.is_symlink():
        detect_loop(resolved_link)
        if points_to(resolved_link, resolved_target):
            return False

    if os.path.lexists(resolved_link):
        raise SymlinkError(str(resolved_target), str(resolved_link))

    relative_target = os.path.relpath(resolved_target, resolved_link.parent)
    try:
        resolved_link.parent.mkdir(parents=True, exist_ok=True)
        os.symlink(relative_target, resolved_link, target_is_directory=resolved_target.is_dir())
    except (OSError, NotImplementedError) as e:
        logger.debug(f"Symlink {resolved_link} -> {relative_target} failed: {e}")
        raise SymlinkError(str(resolved_target), str(resolved_link)) from e

    try:
        detect_loop(resolved_link)
    except EloopError:
        resolved_link.unlink(missing_ok=True)
        raise

    return True
