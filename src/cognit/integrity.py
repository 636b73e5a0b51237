"""Content integrity hashing (SHA-256 hex digests)."""

import asyncio
import hashlib
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def compute_content_hash(content: str) -> str:
    """SHA-256 hex digest of the UTF-8 bytes of content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


async def verify_content_hash(path: Path, expected_hash: str) -> bool:
    """Check that the file at path hashes to expected_hash.

    Returns False (never raises) if the file can't be read.
    """
    try:
        content = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Could not read {path} for verification: {e}")
        return False
    return compute_content_hash(content) == expected_hash


def compute_directory_hash_sync(dir_path: Path) -> str:
    """Combined digest of the files directly inside dir_path.

    Files are sorted by name so the digest doesn't depend on the order the
    filesystem lists them in; each file feeds its name, a NUL byte, its
    content, and another NUL byte.
    """
    names = sorted(entry.name for entry in Path(dir_path).iterdir() if entry.is_file())
    digest = hashlib.sha256()
    for name in names:
        digest.update(name.encode("utf-8") + b"\0")
        digest.update((Path(dir_path) / name).read_text(encoding="utf-8").encode("utf-8") + b"\0")
    return digest.hexdigest()


async def compute_directory_hash(dir_path: Path) -> str:
    return await asyncio.to_thread(compute_directory_hash_sync, dir_path)
