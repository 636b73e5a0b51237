"""Recursive directory copy that leaves housekeeping files behind."""

import asyncio
from pathlib import Path

EXCLUDED_FILES = frozenset({"README.md", "metadata.json"})


def is_excluded(name: str, is_dir: bool) -> bool:
    """Check whether an entry should be left out of installed copies.

    Excludes names starting with ``_``, ``.git`` directories, and the
    ``README.md``/``metadata.json`` files.
    """
    if name.startswith("_"):
        return True
    if is_dir and name == ".git":
        return True
    return not is_dir and name in EXCLUDED_FILES


def _copy_file(src: Path, dest: Path) -> None:
    dest.write_text(src.read_text(encoding="utf-8"), encoding="utf-8")


async def deep_copy(src: Path, dest: Path) -> None:
    """Copy the tree at src into dest, skipping excluded entries.

    Entries of one directory level are copied concurrently; each targets a
    distinct destination path.
    """
    await asyncio.to_thread(dest.mkdir, parents=True, exist_ok=True)
    entries = await asyncio.to_thread(lambda: list(src.iterdir()))

    async def copy_entry(entry: Path) -> None:
        is_dir = entry.is_dir()
        if is_excluded(entry.name, is_dir):
            return
        target = dest / entry.name
        if is_dir:
            await deep_copy(entry, target)
        else:
            await asyncio.to_thread(_copy_file, entry, target)

    await asyncio.gather(*(copy_entry(entry) for entry in entries))
