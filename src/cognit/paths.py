"""Canonical and agent-specific install paths.

Layout:
    project scope: <cwd>/.agents/<type subdir>/<name>/
    global scope:  <home>/.agents/<type subdir>/<name>/

Per KERNEL_PHILOSOPHY: cwd and home are injected by the app.
"""

import os
import sys
from collections.abc import Mapping
from pathlib import Path

from .protocols import AgentRegistryProtocol
from .schema import AGENTS_DIR
from .schema import CognitiveType
from .schema import InstallScope
from .security import sanitize_name

COGNIT_DIR = "cognit"

PROJECT_MARKERS = ("pyproject.toml", "package.json", ".git")


def get_global_base(env: Mapping[str, str] | None = None, home: Path | None = None) -> Path:
    """Global data directory for cognit state (lock file).

    - Windows: %APPDATA%/cognit (or ~/AppData/Roaming/cognit)
    - Linux: $XDG_DATA_HOME/cognit (or ~/.local/share/cognit)
    - macOS and others: ~/.agents/cognit
    """
    env = os.environ if env is None else env
    home = Path.home() if home is None else home

    if sys.platform == "win32":
        app_data = env.get("APPDATA")
        return Path(app_data) / COGNIT_DIR if app_data else home / "AppData" / "Roaming" / COGNIT_DIR
    if sys.platform.startswith("linux"):
        xdg = env.get("XDG_DATA_HOME")
        return Path(xdg) / COGNIT_DIR if xdg else home / ".local" / "share" / COGNIT_DIR
    return home / AGENTS_DIR / COGNIT_DIR


def get_canonical_base(scope: InstallScope, cwd: Path | None, home: Path) -> Path:
    """Directory that every canonical path must stay inside."""
    if scope == InstallScope.PROJECT:
        if cwd is None:
            raise ValueError("cwd is required for project scope")
        return cwd / AGENTS_DIR
    return home / AGENTS_DIR


def get_canonical_path(
    cognitive_type: CognitiveType,
    name: str,
    scope: InstallScope,
    cwd: Path | None,
    home: Path,
) -> Path:
    """Canonical location of a cognitive: ``<base>/<subdir>/<sanitized name>``."""
    return get_canonical_base(scope, cwd, home) / cognitive_type.subdir / sanitize_name(name)


def get_agent_install_path(
    agent: str,
    cognitive_type: CognitiveType,
    name: str,
    scope: InstallScope,
    registry: AgentRegistryProtocol,
) -> Path | None:
    """Agent-specific location, or None if the agent has no directory for it."""
    scope_key = "local" if scope == InstallScope.PROJECT else "global"
    agent_dir = registry.get_dir(agent, cognitive_type, scope_key)
    if agent_dir is None:
        return None
    return agent_dir / sanitize_name(name)


def find_project_root(start_dir: Path) -> Path | None:
    """Walk up from start_dir to the first directory holding a project marker.

    Markers: ``.agents/cognit``, ``.git``, ``pyproject.toml``, ``package.json``.
    """
    current = start_dir.resolve()
    for candidate in (current, *current.parents):
        if (candidate / AGENTS_DIR / COGNIT_DIR).exists():
            return candidate
        if any((candidate / marker).exists() for marker in PROJECT_MARKERS):
            return candidate
    return None
