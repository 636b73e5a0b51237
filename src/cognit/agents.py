"""Agent registry - Table-driven agent directory configuration.

Per KERNEL_PHILOSOPHY: Base directories (cwd, home) are app policy and injected.
Adding an agent is a data change: append an ``AgentDefinition`` or call
``AgentRegistry.register``.

An agent is universal for a cognitive type when its project directory for that
type is the canonical directory (``<cwd>/.agents/<subdir>``). Universal agents
need no separate link or copy.
"""

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .schema import AGENTS_DIR
from .schema import CognitiveType

logger = logging.getLogger(__name__)


class AgentDefinition(BaseModel):
    """Static description of an agent, relative to cwd and home.

    ``global_root`` may start with ``~/`` (resolved against the injected home).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    local_root: str
    global_root: str | None = None
    types: tuple[CognitiveType, ...] = tuple(CognitiveType)


class AgentDirConfig(BaseModel):
    """Resolved directories for one cognitive type."""

    model_config = ConfigDict(frozen=True)

    local: Path
    global_dir: Path | None = None


class AgentConfig(BaseModel):
    """Agent with directories resolved against cwd/home."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    local_root: str
    dirs: dict[CognitiveType, AgentDirConfig] = Field(default_factory=dict)


DEFAULT_AGENTS: tuple[AgentDefinition, ...] = (
    AgentDefinition(name="amp", display_name="Amp", local_root=AGENTS_DIR, global_root="~/.amp"),
    AgentDefinition(name="claude-code", display_name="Claude Code", local_root=".claude", global_root="~/.claude"),
    AgentDefinition(name="cline", display_name="Cline", local_root=".cline", global_root="~/.cline"),
    AgentDefinition(name="codex", display_name="Codex", local_root=AGENTS_DIR, global_root="~/.codex"),
    AgentDefinition(name="cursor", display_name="Cursor", local_root=".cursor", global_root="~/.cursor"),
    AgentDefinition(name="gemini-cli", display_name="Gemini CLI", local_root=AGENTS_DIR, global_root="~/.gemini"),
    AgentDefinition(
        name="github-copilot", display_name="GitHub Copilot", local_root=".github", global_root="~/.github"
    ),
    AgentDefinition(name="opencode", display_name="OpenCode", local_root=AGENTS_DIR, global_root="~/.opencode"),
    AgentDefinition(name="roo", display_name="Roo", local_root=".roo", global_root="~/.roo"),
    AgentDefinition(name="windsurf", display_name="Windsurf", local_root=".windsurf", global_root="~/.windsurf"),
)


def _resolve_home(path: str, home: Path) -> Path:
    if path == "~":
        return home
    if path.startswith("~/"):
        return home / path[2:]
    return Path(path)


def build_agent_config(definition: AgentDefinition, cwd: Path, home: Path) -> AgentConfig:
    """Resolve an agent definition into absolute per-type directories."""
    global_root = _resolve_home(definition.global_root, home) if definition.global_root else None
    dirs = {
        cognitive_type: AgentDirConfig(
            local=cwd / definition.local_root / cognitive_type.subdir,
            global_dir=global_root / cognitive_type.subdir if global_root else None,
        )
        for cognitive_type in definition.types
    }
    return AgentConfig(
        name=definition.name,
        display_name=definition.display_name,
        local_root=definition.local_root,
        dirs=dirs,
    )


class AgentRegistry:
    """
    Agent capability table (with injected base directories).

    Example:
        >>> registry = AgentRegistry(cwd=Path.cwd(), home=Path.home())
        >>> registry.get_dir("cursor", CognitiveType.SKILL, "local")
        PosixPath('.../.cursor/skills')
        >>> registry.is_universal("codex", CognitiveType.SKILL)
        True
    """

    def __init__(
        self,
        cwd: Path,
        home: Path | None = None,
        agents: tuple[AgentDefinition, ...] = DEFAULT_AGENTS,
    ):
        self.cwd = cwd
        self.home = home if home is not None else Path.home()
        self._agents: dict[str, AgentConfig] = {}
        for definition in agents:
            self.register(definition)

    def register(self, definition: AgentDefinition) -> AgentConfig:
        """Register an additional agent.

        Raises:
            ValueError: If an agent with the same name is already registered
        """
        if definition.name in self._agents:
            raise ValueError(f"Agent '{definition.name}' is already registered")
        config = build_agent_config(definition, self.cwd, self.home)
        self._agents[definition.name] = config
        logger.debug(f"Registered agent: {definition.name}")
        return config

    def get(self, agent: str) -> AgentConfig | None:
        return self._agents.get(agent)

    def get_all(self) -> dict[str, AgentConfig]:
        return dict(self._agents)

    def get_dir(
        self,
        agent: str,
        cognitive_type: CognitiveType,
        scope: Literal["local", "global"],
    ) -> Path | None:
        config = self._agents.get(agent)
        if config is None:
            return None
        dir_config = config.dirs.get(cognitive_type)
        if dir_config is None:
            return None
        return dir_config.local if scope == "local" else dir_config.global_dir

    def is_universal(self, agent: str, cognitive_type: CognitiveType | None = None) -> bool:
        config = self._agents.get(agent)
        if config is None:
            return False
        if cognitive_type is None:
            return config.local_root == AGENTS_DIR
        dir_config = config.dirs.get(cognitive_type)
        if dir_config is None:
            return False
        return dir_config.local == self.cwd / AGENTS_DIR / cognitive_type.subdir

    def get_universal_agents(self, cognitive_type: CognitiveType | None = None) -> list[str]:
        return [name for name in self._agents if self.is_universal(name, cognitive_type)]

    def get_non_universal_agents(self, cognitive_type: CognitiveType | None = None) -> list[str]:
        return [name for name in self._agents if not self.is_universal(name, cognitive_type)]
