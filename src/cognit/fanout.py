"""Agent fan-out - Which agents need their own link or copy."""

from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict

from .paths import get_agent_install_path
from .protocols import AgentRegistryProtocol
from .schema import CognitiveType
from .schema import InstallScope


class AgentSymlinkPath(BaseModel):
    model_config = ConfigDict(frozen=True)

    agent_type: str
    agent_path: Path


def should_skip_symlink(agent: str, cognitive_type: CognitiveType, registry: AgentRegistryProtocol) -> bool:
    """True for universal agents: their directory is the canonical directory."""
    return registry.is_universal(agent, cognitive_type)


def get_agent_symlink_paths(
    canonical_path: Path,
    name: str,
    cognitive_type: CognitiveType,
    agent_types: list[str],
    scope: InstallScope,
    registry: AgentRegistryProtocol,
) -> list[AgentSymlinkPath]:
    """Agent paths that need a link or copy, in the order of agent_types.

    Universal agents, agents without a directory for the type, and agents
    whose path equals the canonical path are left out.
    """
    results: list[AgentSymlinkPath] = []
    for agent in agent_types:
        if should_skip_symlink(agent, cognitive_type, registry):
            continue
        agent_path = get_agent_install_path(agent, cognitive_type, name, scope, registry)
        if agent_path is not None and agent_path != canonical_path:
            results.append(AgentSymlinkPath(agent_type=agent, agent_path=agent_path))
    return results
