"""Tests for lock file schema migration."""

import pytest
from cognit import CURRENT_LOCK_VERSION
from cognit import CognitiveType
from cognit import LockCorruptedError
from cognit import LockMigrationError
from cognit import RecordingEventSink
from cognit import read_with_migration
from cognit.migration import migrate
from cognit.migration import validate_lock_shape

V3_DOCUMENT = {
    "version": 3,
    "skills": {
        "react-hooks": {
            "source": "owner/repo",
            "sourceType": "github",
            "sourceUrl": "https://github.com/owner/repo",
            "installedAt": "2025-01-01T00:00:00+00:00",
            "updatedAt": "2025-01-02T00:00:00+00:00",
        }
    },
    "lastSelectedAgents": ["cursor"],
}

V4_DOCUMENT = {
    "version": 4,
    "cognitives": {
        "skill:react-hooks": {
            "source": "owner/repo",
            "sourceType": "github",
            "sourceUrl": "https://github.com/owner/repo",
            "cognitiveFolderHash": "abc123",
            "cognitivePath": "skills/react-hooks",
            "installedAt": "2025-01-01T00:00:00+00:00",
            "updatedAt": "2025-01-02T00:00:00+00:00",
        },
        "rule:no-console": {
            "source": "owner/rules",
            "sourceType": "github",
            "cognitiveType": "rule",
            "installedAt": "2025-01-01T00:00:00+00:00",
            "updatedAt": "2025-01-01T00:00:00+00:00",
        },
    },
    "dismissed": {"findSkillsPrompt": True},
}


def test_migrate_v3_through_v5():
    """v3 skills become v5 cognitives with the same keys."""
    sink = RecordingEventSink()

    lock = read_with_migration(V3_DOCUMENT, events=sink)

    assert lock.version == CURRENT_LOCK_VERSION
    entry = lock.cognitives["react-hooks"]
    assert entry.cognitive_type == CognitiveType.SKILL
    assert entry.source == "owner/repo"
    assert entry.source_url == "https://github.com/owner/repo"
    assert entry.content_hash == ""
    assert entry.installed_at == "2025-01-01T00:00:00+00:00"
    assert lock.last_selected_agents == ["cursor"]
    assert sink.named("lock:migrate") == [
        {"from_version": 3, "to_version": 4},
        {"from_version": 4, "to_version": 5},
    ]


def test_migrate_v4_to_v5():
    """Folder hash becomes content hash; type defaults to skill; dismissed is dropped."""
    document = migrate(V4_DOCUMENT)

    assert document["version"] == 5
    assert "dismissed" not in document
    hooks = document["cognitives"]["skill:react-hooks"]
    assert hooks["contentHash"] == "abc123"
    assert hooks["cognitiveType"] == "skill"
    assert hooks["cognitivePath"] == "skills/react-hooks"
    assert "cognitiveFolderHash" not in hooks
    assert document["cognitives"]["rule:no-console"]["cognitiveType"] == "rule"


def test_current_version_passes_through():
    sink = RecordingEventSink()
    document = {
        "version": 5,
        "cognitives": {
            "skill:a": {"source": "o/r", "sourceType": "github", "cognitiveType": "skill"},
        },
    }

    lock = read_with_migration(document, events=sink)

    assert lock.cognitives["skill:a"].source == "o/r"
    assert sink.named("lock:migrate") == []


def test_migration_does_not_mutate_input():
    migrate(V4_DOCUMENT)
    assert V4_DOCUMENT["version"] == 4
    assert "cognitiveFolderHash" in V4_DOCUMENT["cognitives"]["skill:react-hooks"]


@pytest.mark.parametrize(
    "raw",
    [
        [],
        "lock",
        {"cognitives": {}},
        {"version": "5", "cognitives": {}},
        {"version": True, "cognitives": {}},
        {"version": 5, "cognitives": []},
        {"version": 3, "cognitives": {}},
    ],
)
def test_invalid_shapes(raw):
    assert not validate_lock_shape(raw)
    with pytest.raises(LockCorruptedError):
        read_with_migration(raw)


@pytest.mark.parametrize("version", [2, 6])
def test_unsupported_versions(version):
    """Versions without a migration path (too old or too new) are refused."""
    with pytest.raises(LockMigrationError) as exc_info:
        read_with_migration({"version": version, "cognitives": {}})

    assert exc_info.value.from_version == version
    assert exc_info.value.to_version == CURRENT_LOCK_VERSION


def test_failed_step_reports_its_versions():
    """A v3 entry without a source can't be carried forward."""
    document = {"version": 3, "skills": {"broken": {"sourceType": "github"}}}

    with pytest.raises(LockMigrationError) as exc_info:
        read_with_migration(document)

    assert exc_info.value.from_version == 3
    assert exc_info.value.to_version == 4


def test_current_version_with_bad_entry_is_corrupted():
    document = {"version": 5, "cognitives": {"skill:a": {"source": "o/r"}}}

    with pytest.raises(LockCorruptedError):
        read_with_migration(document)


def test_custom_chain_applies_steps_in_order():
    calls = []

    def step_one(document):
        calls.append(1)
        return {**document, "version": 2}

    def step_two(document):
        calls.append(2)
        return {**document, "version": 3}

    result = migrate({"version": 1}, target_version=3, migrations={2: step_two, 1: step_one})

    assert calls == [1, 2]
    assert result["version"] == 3


def test_step_must_advance_version():
    with pytest.raises(LockMigrationError, match="did not advance"):
        migrate({"version": 1}, target_version=2, migrations={1: lambda document: document})
