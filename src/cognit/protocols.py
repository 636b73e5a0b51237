"""Protocols for installer collaborators.

Per KERNEL_PHILOSOPHY: Protocol-based extensibility over configuration.
Per IMPLEMENTATION_PHILOSOPHY: Composition over inheritance.
"""

from pathlib import Path
from typing import Any
from typing import Literal
from typing import Protocol
from typing import runtime_checkable

from .schema import CognitiveType


@runtime_checkable
class AgentRegistryProtocol(Protocol):
    """Resolves agent directories and the universal flag.

    Apps can provide any implementation; ``cognit.agents.AgentRegistry`` is the
    table-driven default.
    """

    def get(self, agent: str) -> Any | None:
        """Get the agent's configuration, or None if the agent is unknown."""
        ...

    def get_dir(
        self,
        agent: str,
        cognitive_type: CognitiveType,
        scope: Literal["local", "global"],
    ) -> Path | None:
        """Get configured directory for agent and cognitive type.

        Returns:
            Directory path, or None if the agent doesn't support that type/scope
        """
        ...

    def is_universal(self, agent: str, cognitive_type: CognitiveType | None = None) -> bool:
        """Check whether the agent reads the canonical directory directly."""
        ...


@runtime_checkable
class EventSinkProtocol(Protocol):
    """Receives lifecycle events. Purely observational."""

    def emit(self, event: str, payload: dict[str, Any]) -> None: ...
