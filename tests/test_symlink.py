"""Tests for relative symlink creation."""

import os

import pytest
from cognit import EloopError
from cognit import SymlinkError
from cognit.symlink import create_symlink
from cognit.symlink import detect_loop
from cognit.symlink import points_to


@pytest.fixture
def canonical(tmp_path):
    path = tmp_path / ".agents" / "skills" / "my-skill"
    path.mkdir(parents=True)
    (path / "SKILL.md").write_text("# Skill", encoding="utf-8")
    return path


def test_creates_relative_link(tmp_path, canonical):
    """Link is relative and resolves to the canonical directory."""
    link = tmp_path / ".cursor" / "skills" / "my-skill"

    assert create_symlink(canonical, link) is True

    assert link.is_symlink()
    assert not os.path.isabs(os.readlink(link))
    assert (link / "SKILL.md").read_text(encoding="utf-8") == "# Skill"
    assert points_to(link, canonical)


def test_existing_correct_link_is_reused(tmp_path, canonical):
    """A second call reports nothing created."""
    link = tmp_path / ".cursor" / "skills" / "my-skill"
    create_symlink(canonical, link)

    assert create_symlink(canonical, link) is False
    assert link.is_symlink()


def test_same_path_is_noop(canonical):
    """Linking a path to itself creates nothing."""
    assert create_symlink(canonical, canonical) is False
    assert canonical.is_dir()
    assert not canonical.is_symlink()


def test_existing_file_is_incompatible(tmp_path, canonical):
    """An unrelated entry at the link path is a SymlinkError."""
    link = tmp_path / "agent-dir"
    link.write_text("something else", encoding="utf-8")

    with pytest.raises(SymlinkError):
        create_symlink(canonical, link)

    assert link.read_text(encoding="utf-8") == "something else"


def test_existing_circular_link(tmp_path, canonical):
    """A circular chain at the link path raises EloopError."""
    a = tmp_path / "a"
    b = tmp_path / "b"
    os.symlink("b", a)
    os.symlink("a", b)

    with pytest.raises(EloopError) as exc_info:
        create_symlink(canonical, a)

    assert exc_info.value.symlink_path == str(a)


def test_link_that_would_close_a_cycle(tmp_path):
    """If the new link makes the chain circular it is removed and rejected."""
    link = tmp_path / "agent"
    target = tmp_path / "canonical"
    os.symlink("agent", target)

    with pytest.raises(EloopError):
        create_symlink(target, link)

    assert not os.path.lexists(link)


def test_unsupported_filesystem(tmp_path, canonical, monkeypatch):
    """OS refusal surfaces as SymlinkError (recoverable)."""

    def refuse(*args, **kwargs):
        raise OSError(1, "Operation not permitted")

    monkeypatch.setattr("cognit.symlink.os.symlink", refuse)

    with pytest.raises(SymlinkError) as exc_info:
        create_symlink(canonical, tmp_path / "link")

    assert isinstance(exc_info.value.__cause__, OSError)


def test_detect_loop_ignores_missing(tmp_path):
    """Missing or dangling paths are not loops."""
    detect_loop(tmp_path / "missing")
    os.symlink("nowhere", tmp_path / "dangling")
    detect_loop(tmp_path / "dangling")
