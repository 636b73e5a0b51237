"""Tests for recursive directory copy."""

import pytest
from cognit import deep_copy
from cognit import is_excluded


def test_is_excluded_rules():
    """Underscore names, .git dirs, README.md and metadata.json are excluded."""
    assert is_excluded("_private.md", is_dir=False)
    assert is_excluded("_internal", is_dir=True)
    assert is_excluded(".git", is_dir=True)
    assert is_excluded("README.md", is_dir=False)
    assert is_excluded("metadata.json", is_dir=False)


def test_is_excluded_keeps_content():
    """Regular content and look-alikes are kept."""
    assert not is_excluded("SKILL.md", is_dir=False)
    assert not is_excluded(".git", is_dir=False)
    assert not is_excluded("README.md", is_dir=True)
    assert not is_excluded("readme.md", is_dir=False)
    assert not is_excluded("references", is_dir=True)


@pytest.mark.asyncio
async def test_deep_copy_tree(tmp_path):
    """Nested files are copied, excluded entries left behind."""
    src = tmp_path / "src"
    (src / "refs" / "deep").mkdir(parents=True)
    (src / ".git").mkdir()
    (src / "_drafts").mkdir()
    (src / "SKILL.md").write_text("# Skill", encoding="utf-8")
    (src / "README.md").write_text("docs", encoding="utf-8")
    (src / "metadata.json").write_text("{}", encoding="utf-8")
    (src / "_notes.md").write_text("notes", encoding="utf-8")
    (src / ".git" / "config").write_text("[core]", encoding="utf-8")
    (src / "_drafts" / "draft.md").write_text("draft", encoding="utf-8")
    (src / "refs" / "a.md").write_text("A", encoding="utf-8")
    (src / "refs" / "README.md").write_text("nested docs", encoding="utf-8")
    (src / "refs" / "deep" / "b.md").write_text("B", encoding="utf-8")

    dest = tmp_path / "dest"
    await deep_copy(src, dest)

    assert (dest / "SKILL.md").read_text(encoding="utf-8") == "# Skill"
    assert (dest / "refs" / "a.md").read_text(encoding="utf-8") == "A"
    assert (dest / "refs" / "deep" / "b.md").read_text(encoding="utf-8") == "B"
    assert not (dest / "README.md").exists()
    assert not (dest / "metadata.json").exists()
    assert not (dest / "_notes.md").exists()
    assert not (dest / ".git").exists()
    assert not (dest / "_drafts").exists()
    assert not (dest / "refs" / "README.md").exists()


@pytest.mark.asyncio
async def test_deep_copy_empty_dir(tmp_path):
    """Destination is created even when the source is empty."""
    src = tmp_path / "empty"
    src.mkdir()
    dest = tmp_path / "out" / "nested"

    await deep_copy(src, dest)

    assert dest.is_dir()
    assert list(dest.iterdir()) == []
