"""Tests for action-log rollback."""

import os

from cognit import InstallAction
from cognit import rollback
from cognit.rollback import ActionKind


def test_rollback_empty():
    result = rollback([])
    assert result.undone == 0
    assert result.failed == 0


def test_rollback_reverses_creations(tmp_path):
    """Created directories, files, links and copies are removed."""
    created_dir = tmp_path / "canonical"
    created_dir.mkdir()
    written = created_dir / "SKILL.md"
    written.write_text("x", encoding="utf-8")
    link = tmp_path / "link"
    os.symlink("canonical", link)
    copied_dir = tmp_path / "copy"
    copied_dir.mkdir()
    (copied_dir / "SKILL.md").write_text("x", encoding="utf-8")
    copied_file = tmp_path / "copied.md"
    copied_file.write_text("x", encoding="utf-8")

    actions = [
        InstallAction(kind=ActionKind.CREATE_DIRECTORY, path=created_dir),
        InstallAction(kind=ActionKind.WRITE_FILE, path=written),
        InstallAction(kind=ActionKind.CREATE_SYMLINK, path=link),
        InstallAction(kind=ActionKind.COPY_DIRECTORY, path=copied_dir),
        InstallAction(kind=ActionKind.COPY_FILE, path=copied_file),
    ]

    result = rollback(actions)

    assert result.undone == 5
    assert result.failed == 0
    assert list(tmp_path.iterdir()) == []


def test_rollback_removes_link_not_target(tmp_path):
    """Undoing a symlink leaves the directory it points to."""
    target = tmp_path / "target"
    target.mkdir()
    (target / "keep.md").write_text("keep", encoding="utf-8")
    link = tmp_path / "link"
    os.symlink("target", link)

    rollback([InstallAction(kind=ActionKind.CREATE_SYMLINK, path=link)])

    assert not os.path.lexists(link)
    assert (target / "keep.md").exists()


def test_rollback_restores_backup(tmp_path):
    """remove_existing moves the backup back over whatever replaced it."""
    original = tmp_path / "agent"
    backup = tmp_path / "agent.bak"
    backup.mkdir()
    (backup / "old.md").write_text("old", encoding="utf-8")
    original.mkdir()
    (original / "new.md").write_text("new", encoding="utf-8")

    result = rollback([InstallAction(kind=ActionKind.REMOVE_EXISTING, path=original, backup_path=backup)])

    assert result.undone == 1
    assert (original / "old.md").read_text(encoding="utf-8") == "old"
    assert not (original / "new.md").exists()
    assert not backup.exists()


def test_rollback_runs_in_reverse_order(tmp_path):
    """Later actions are undone first: the new file goes, then the backup returns."""
    target = tmp_path / "SKILL.md"
    backup = tmp_path / ".backup"
    backup.write_text("previous", encoding="utf-8")
    target.write_text("new", encoding="utf-8")

    actions = [
        InstallAction(kind=ActionKind.REMOVE_EXISTING, path=target, backup_path=backup),
        InstallAction(kind=ActionKind.WRITE_FILE, path=target),
    ]

    result = rollback(actions)

    assert result.undone == 2
    assert target.read_text(encoding="utf-8") == "previous"


def test_rollback_is_best_effort(tmp_path):
    """A failing step is counted and the others still run."""
    created = tmp_path / "created"
    created.mkdir()

    actions = [
        InstallAction(kind=ActionKind.CREATE_DIRECTORY, path=created),
        InstallAction(
            kind=ActionKind.REMOVE_EXISTING,
            path=tmp_path / "restored",
            backup_path=tmp_path / "missing-backup",
        ),
    ]

    result = rollback(actions)

    assert result.undone == 1
    assert result.failed == 1
    assert not created.exists()


def test_rollback_remove_existing_without_backup(tmp_path):
    """Nothing to restore when no backup was taken."""
    result = rollback([InstallAction(kind=ActionKind.REMOVE_EXISTING, path=tmp_path / "gone")])
    assert result.undone == 1
