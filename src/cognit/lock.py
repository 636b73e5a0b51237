"""Cognitive lock file management.

Tracks installed cognitives with provenance and content hashes.

Per KERNEL_PHILOSOPHY:
- "Could two teams want different behavior?" → YES (lock location is policy)
- This is library mechanism - apps inject lock path (policy)

Per IMPLEMENTATION_PHILOSOPHY:
- Ruthless simplicity: One JSON document, read fully, mutated, rewritten atomically
- Forward compatible: older documents are migrated before use, never truncated
"""

import asyncio
import json
import logging
from collections.abc import Mapping
from datetime import UTC
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict

from . import events as lifecycle
from .atomic import atomic_write_file
from .exceptions import ConflictError
from .exceptions import FileWriteError
from .exceptions import LockCorruptedError
from .exceptions import LockReadError
from .exceptions import LockWriteError
from .migration import read_with_migration
from .paths import COGNIT_DIR
from .paths import get_global_base
from .protocols import EventSinkProtocol
from .schema import AGENTS_DIR
from .schema import InstallScope
from .schema import LockEntry
from .schema import LockFile
from .schema import parse_lock_key

logger = logging.getLogger(__name__)

DEFAULT_LOCK_FILE_NAME = ".cognit-lock.json"


def lock_file_path(
    scope: InstallScope,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    home: Path | None = None,
    file_name: str = DEFAULT_LOCK_FILE_NAME,
) -> Path:
    """Well-known lock file location for a scope.

    - project: <cwd>/.agents/cognit/<file_name>
    - global: <global base>/<file_name>
    """
    if not file_name or not file_name.endswith(".json"):
        raise ValueError("Lock file name must be non-empty and end with .json")
    if scope == InstallScope.PROJECT:
        if cwd is None:
            raise ValueError("cwd is required for project scope")
        return cwd / AGENTS_DIR / COGNIT_DIR / file_name
    return get_global_base(env, home) / file_name


def _now() -> str:
    return datetime.now(UTC).isoformat()


class SourceGroup(BaseModel):
    """Everything installed from one source."""

    model_config = ConfigDict(frozen=True)

    names: list[str]
    entry: LockEntry


class LockFileManager:
    """
    Lock file manager (with injected lock path).

    Lock format (JSON):
    {
      "version": 5,
      "cognitives": {
        "skill:react-hooks": {
          "source": "owner/repo",
          "sourceType": "github",
          "sourceUrl": "https://github.com/owner/repo",
          "contentHash": "9f86d08...",
          "cognitiveType": "skill",
          "installedAt": "2025-10-26T12:00:00+00:00",
          "updatedAt": "2025-10-26T12:00:00+00:00"
        }
      },
      "lastSelectedAgents": ["cursor", "claude-code"]
    }

    Mutations are serialized within the process; there is no cross-process
    locking, so one writer per lock path at a time is a deployment constraint.
    """

    def __init__(self, lock_path: Path, events: EventSinkProtocol | None = None):
        """Initialize lock manager with app-provided lock path.

        Args:
            lock_path: Path to lock file (app determines location)
            events: Optional event sink

        Example:
            >>> lock = LockFileManager(lock_path=lock_file_path(InstallScope.PROJECT, cwd=Path.cwd()))
        """
        self.lock_path = lock_path
        self.events = events
        self._mutex = asyncio.Lock()

    async def read(self) -> LockFile:
        """Read and migrate the lock file.

        Returns:
            Current-version LockFile (empty if the file doesn't exist)

        Raises:
            LockReadError: If the file exists but can't be read
            LockCorruptedError: If the content isn't a valid lock document
            LockMigrationError: If an older document can't be migrated
        """
        lifecycle.emit(self.events, lifecycle.LOCK_READ, path=str(self.lock_path))

        try:
            raw_text = await asyncio.to_thread(self.lock_path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return LockFile()
        except (OSError, UnicodeDecodeError) as e:
            raise LockReadError(str(self.lock_path), str(e)) from e

        try:
            raw = json.loads(raw_text)
        except json.JSONDecodeError as e:
            raise LockCorruptedError(str(self.lock_path), f"invalid JSON: {e}") from e

        lock = read_with_migration(raw, events=self.events, lock_path=str(self.lock_path))
        logger.debug(f"Loaded {len(lock.cognitives)} cognitives from lock file")
        return lock

    async def write(self, lock: LockFile) -> None:
        """Atomically persist the lock file.

        Raises:
            LockWriteError: If the write fails (previous file is untouched)
        """
        try:
            await atomic_write_file(self.lock_path, lock.to_json())
        except FileWriteError as e:
            logger.error(f"Failed to save lock file: {e}")
            raise LockWriteError(str(self.lock_path)) from e
        logger.debug(f"Saved lock file with {len(lock.cognitives)} cognitives")
        lifecycle.emit(self.events, lifecycle.LOCK_WRITE, path=str(self.lock_path), entry_count=len(lock.cognitives))

    async def add_entry(self, key: str, entry: LockEntry) -> LockEntry:
        """
        Add or update a cognitive in the lock file.

        A new entry gets installed_at == updated_at == now; an update keeps
        the original installed_at and moves updated_at.

        Args:
            key: Lock key (see make_lock_key)
            entry: Entry to store; its timestamps are replaced

        Returns:
            The stored entry

        Raises:
            ValueError: If key is not a valid lock key
        """
        if parse_lock_key(key) is None:
            raise ValueError(f"Invalid lock key: {key!r} (expected '{{type}}:{{name}}')")

        async with self._mutex:
            lock = await self.read()
            now = _now()
            existing = lock.cognitives.get(key)
            installed_at = existing.installed_at if existing and existing.installed_at else now
            stored = entry.model_copy(update={"installed_at": installed_at, "updated_at": now})
            lock.cognitives[key] = stored
            await self.write(lock)

        logger.debug(f"{'Updated' if existing else 'Added'} {key} in lock file")
        return stored

    async def remove_entry(self, key: str) -> bool:
        """
        Remove a cognitive from the lock file.

        Returns:
            True if the key existed
        """
        async with self._mutex:
            lock = await self.read()
            if key not in lock.cognitives:
                return False
            del lock.cognitives[key]
            await self.write(lock)

        logger.debug(f"Removed {key} from lock file")
        return True

    async def get_entry(self, key: str) -> LockEntry | None:
        lock = await self.read()
        return lock.cognitives.get(key)

    async def get_all_entries(self) -> dict[str, LockEntry]:
        lock = await self.read()
        return lock.cognitives

    async def is_installed(self, key: str) -> bool:
        return await self.get_entry(key) is not None

    async def get_by_source(self) -> dict[str, SourceGroup]:
        """
        Group entries by source identifier.

        Returns:
            source -> SourceGroup(names installed from it, first entry seen)
        """
        lock = await self.read()
        names: dict[str, list[str]] = {}
        representatives: dict[str, LockEntry] = {}
        for key, entry in lock.cognitives.items():
            names.setdefault(entry.source, []).append(key)
            representatives.setdefault(entry.source, entry)
        return {source: SourceGroup(names=names[source], entry=representatives[source]) for source in names}

    async def check_conflict(self, key: str, source: str) -> None:
        """
        Ensure key isn't already installed from a different source.

        Raises:
            ConflictError: If key is tracked with another source
        """
        existing = await self.get_entry(key)
        if existing is not None and existing.source != source:
            raise ConflictError(key, existing.source)

    async def get_last_selected_agents(self) -> list[str] | None:
        lock = await self.read()
        return lock.last_selected_agents

    async def save_last_selected_agents(self, agents: list[str]) -> None:
        async with self._mutex:
            lock = await self.read()
            lock.last_selected_agents = list(agents)
            await self.write(lock)

