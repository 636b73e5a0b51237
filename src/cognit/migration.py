"""Lock file schema migration.

Older documents are migrated one version at a time (v3 -> v4 -> v5), so each
step only knows about its neighbouring formats. Keys are carried over as-is;
only entry values change shape.

Version history:
    v3: ``skills`` mapping, skills only, no source URL or hash
    v4: ``cognitives`` mapping, ``cognitiveFolderHash``, optional type, ``dismissed`` prompts
    v5: ``contentHash``, required ``cognitiveType``, optional ``category``
"""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from . import events as lifecycle
from .exceptions import LockCorruptedError
from .exceptions import LockMigrationError
from .protocols import EventSinkProtocol
from .schema import CURRENT_LOCK_VERSION
from .schema import LockFile

logger = logging.getLogger(__name__)

MigrationStep = Callable[[dict[str, Any]], dict[str, Any]]


def _migrate_v3_to_v4(old: dict[str, Any]) -> dict[str, Any]:
    skills = old.get("skills")
    if not isinstance(skills, dict):
        raise ValueError("v3 lock file has no 'skills' mapping")

    cognitives = {}
    for name, skill in skills.items():
        if not isinstance(skill, dict):
            raise ValueError(f"v3 entry '{name}' is not an object")
        cognitives[name] = {
            "source": skill["source"],
            "sourceType": skill["sourceType"],
            "sourceUrl": skill.get("sourceUrl", ""),
            "cognitiveType": "skill",
            "cognitiveFolderHash": "",
            "installedAt": skill.get("installedAt", ""),
            "updatedAt": skill.get("updatedAt", ""),
        }

    migrated: dict[str, Any] = {"version": 4, "cognitives": cognitives}
    if old.get("lastSelectedAgents") is not None:
        migrated["lastSelectedAgents"] = old["lastSelectedAgents"]
    return migrated


def _migrate_v4_to_v5(old: dict[str, Any]) -> dict[str, Any]:
    cognitives = old.get("cognitives")
    if not isinstance(cognitives, dict):
        raise ValueError("v4 lock file has no 'cognitives' mapping")

    migrated_entries = {}
    for name, entry in cognitives.items():
        if not isinstance(entry, dict):
            raise ValueError(f"v4 entry '{name}' is not an object")
        migrated_entry = {
            "source": entry["source"],
            "sourceType": entry["sourceType"],
            "sourceUrl": entry.get("sourceUrl") or "",
            "contentHash": entry.get("cognitiveFolderHash") or "",
            "cognitiveType": entry.get("cognitiveType") or "skill",
            "installedAt": entry.get("installedAt", ""),
            "updatedAt": entry.get("updatedAt", ""),
        }
        if entry.get("cognitivePath") is not None:
            migrated_entry["cognitivePath"] = entry["cognitivePath"]
        migrated_entries[name] = migrated_entry

    # ``dismissed`` UI state is dropped in v5
    migrated: dict[str, Any] = {"version": 5, "cognitives": migrated_entries}
    if old.get("lastSelectedAgents") is not None:
        migrated["lastSelectedAgents"] = old["lastSelectedAgents"]
    return migrated


# from_version -> step producing from_version + 1
MIGRATIONS: dict[int, MigrationStep] = {
    3: _migrate_v3_to_v4,
    4: _migrate_v4_to_v5,
}


def validate_lock_shape(raw: Any) -> bool:
    """Check the basic document shape: numeric version, mapping of cognitives.

    v3 documents keep their entries under ``skills`` instead.
    """
    if not isinstance(raw, dict):
        return False
    version = raw.get("version")
    if not isinstance(version, int) or isinstance(version, bool):
        return False
    entries_key = "skills" if version == 3 else "cognitives"
    return isinstance(raw.get(entries_key), dict)


def migrate(
    raw: dict[str, Any],
    target_version: int = CURRENT_LOCK_VERSION,
    migrations: dict[int, MigrationStep] | None = None,
    events: EventSinkProtocol | None = None,
) -> dict[str, Any]:
    """Apply migration steps sequentially until target_version.

    Raises:
        LockMigrationError: If no step exists for a version, a step fails, or
            the document is newer than target_version
    """
    migrations = MIGRATIONS if migrations is None else migrations
    version = raw["version"]

    if version > target_version:
        raise LockMigrationError(version, target_version, "lock file was written by a newer version")

    document = raw
    while version < target_version:
        step = migrations.get(version)
        if step is None:
            raise LockMigrationError(version, target_version, f"no migration from v{version}")
        try:
            document = step(document)
        except (KeyError, TypeError, ValueError) as e:
            raise LockMigrationError(version, version + 1, str(e)) from e
        if document.get("version") != version + 1:
            raise LockMigrationError(version, version + 1, "step did not advance the version")

        logger.info(f"Migrated lock file from v{version} to v{version + 1}")
        lifecycle.emit(events, lifecycle.LOCK_MIGRATE, from_version=version, to_version=version + 1)
        version += 1

    return document


def read_with_migration(raw: Any, events: EventSinkProtocol | None = None, lock_path: str = "<memory>") -> LockFile:
    """Turn a parsed lock document into a current-version LockFile.

    Raises:
        LockCorruptedError: If the document fails shape validation
        LockMigrationError: If migration to the current version fails
    """
    if not validate_lock_shape(raw):
        raise LockCorruptedError(lock_path, "invalid lock file shape")

    document = migrate(raw, events=events)
    try:
        return LockFile.model_validate(document)
    except ValidationError as e:
        if raw["version"] != CURRENT_LOCK_VERSION:
            raise LockMigrationError(raw["version"], CURRENT_LOCK_VERSION, str(e)) from e
        raise LockCorruptedError(lock_path, "invalid lock entry") from e
