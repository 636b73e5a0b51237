"""Name sanitization and path containment checks."""

import os
import re
from pathlib import Path

MAX_NAME_LENGTH = 255
FALLBACK_NAME = "unnamed-cognitive"

_INVALID_CHARS = re.compile(r"[^a-z0-9-]")
_REPEATED_HYPHENS = re.compile(r"-+")


def sanitize_name(name: str) -> str:
    """Sanitize a cognitive name to a kebab-case, filesystem-safe string.

    Inputs that are empty or contain a null byte, a path separator, or a
    traversal sequence return ``FALLBACK_NAME``. Never raises.

    Examples:
        >>> sanitize_name("My Cool Skill")
        'my-cool-skill'
        >>> sanitize_name("../etc/passwd")
        'unnamed-cognitive'
    """
    if not name or "\0" in name or "/" in name or "\\" in name:
        return FALLBACK_NAME

    if "../" in name or "./" in name:
        return FALLBACK_NAME

    sanitized = _INVALID_CHARS.sub("-", name.lower())
    sanitized = _REPEATED_HYPHENS.sub("-", sanitized)
    sanitized = sanitized.strip(".-")

    if not sanitized:
        return FALLBACK_NAME

    # Truncation can expose a trailing hyphen
    return sanitized[:MAX_NAME_LENGTH].rstrip("-")


def is_path_safe(base_path: str | Path, target_path: str | Path) -> bool:
    """Check that target_path is base_path or lies inside it.

    Both paths are made absolute and normalized (``..`` collapsed) without
    following symlinks. A sibling sharing a prefix (``/a/agents-backup`` vs
    ``/a/agents``) is not contained.
    """
    base = os.path.normpath(os.path.abspath(base_path))
    target = os.path.normpath(os.path.abspath(target_path))
    return target == base or target.startswith(base.rstrip(os.sep) + os.sep)
