"""Tests for atomic file writes."""

import asyncio

import pytest
from cognit import FileWriteError
from cognit import atomic_write_file
from cognit.atomic import TEMP_PREFIX
from cognit.atomic import atomic_write_file_sync


def _temp_files(directory):
    return [p for p in directory.iterdir() if p.name.startswith(TEMP_PREFIX)]


@pytest.mark.asyncio
async def test_write_creates_file_and_parents(tmp_path):
    """Content lands at the target; missing parents are created."""
    target = tmp_path / "a" / "b" / "SKILL.md"

    await atomic_write_file(target, "# Skill\n")

    assert target.read_text(encoding="utf-8") == "# Skill\n"
    assert _temp_files(target.parent) == []


@pytest.mark.asyncio
async def test_write_replaces_existing(tmp_path):
    """Existing content is replaced as a whole."""
    target = tmp_path / "file.md"
    target.write_text("old content that is longer", encoding="utf-8")

    await atomic_write_file(target, "new")

    assert target.read_text(encoding="utf-8") == "new"


@pytest.mark.asyncio
async def test_concurrent_writes_same_directory(tmp_path):
    """Concurrent writes into one directory don't collide on temp names."""
    targets = [tmp_path / f"file-{i}.md" for i in range(20)]

    await asyncio.gather(*(atomic_write_file(t, f"content {i}") for i, t in enumerate(targets)))

    for i, target in enumerate(targets):
        assert target.read_text(encoding="utf-8") == f"content {i}"
    assert _temp_files(tmp_path) == []


def test_failed_rename_keeps_previous_content(tmp_path, monkeypatch):
    """A failure before the rename leaves the old content and no temp file."""
    target = tmp_path / "lock.json"
    target.write_text("previous", encoding="utf-8")

    def failing_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("cognit.atomic.os.replace", failing_replace)

    with pytest.raises(FileWriteError) as exc_info:
        atomic_write_file_sync(target, "partial new content")

    assert target.read_text(encoding="utf-8") == "previous"
    assert _temp_files(tmp_path) == []
    assert isinstance(exc_info.value.__cause__, OSError)
    assert exc_info.value.file_path == str(target)


@pytest.mark.asyncio
async def test_target_is_directory(tmp_path):
    """Writing onto a directory fails with FileWriteError, directory intact."""
    target = tmp_path / "taken"
    target.mkdir()
    (target / "inner.md").write_text("keep", encoding="utf-8")

    with pytest.raises(FileWriteError):
        await atomic_write_file(target, "content")

    assert (target / "inner.md").read_text(encoding="utf-8") == "keep"
    assert _temp_files(tmp_path) == []
