"""Cognitive and installation schema - Types shared by installer and lock file.

Per KERNEL_PHILOSOPHY: Content parsing is policy, not mechanism. These models only
carry what the installer needs to materialize files; apps fill them in.
"""

from enum import Enum
from pathlib import Path
from typing import Annotated
from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic.alias_generators import to_camel


class CognitiveType(str, Enum):
    """Kind of installable artifact."""

    SKILL = "skill"
    AGENT = "agent"
    PROMPT = "prompt"
    RULE = "rule"

    @property
    def subdir(self) -> str:
        """Canonical subdirectory for this type (e.g. ``skills``)."""
        return COGNITIVE_SUBDIRS[self]

    @property
    def file_name(self) -> str:
        """Default content file name for this type (e.g. ``SKILL.md``)."""
        return COGNITIVE_FILE_NAMES[self]


COGNITIVE_SUBDIRS: dict[CognitiveType, str] = {
    CognitiveType.SKILL: "skills",
    CognitiveType.AGENT: "agents",
    CognitiveType.PROMPT: "prompts",
    CognitiveType.RULE: "rules",
}

COGNITIVE_FILE_NAMES: dict[CognitiveType, str] = {
    CognitiveType.SKILL: "SKILL.md",
    CognitiveType.AGENT: "AGENT.md",
    CognitiveType.PROMPT: "PROMPT.md",
    CognitiveType.RULE: "RULE.md",
}

# Directory under the project root (and home) that holds canonical content
AGENTS_DIR = ".agents"


class InstallScope(str, Enum):
    PROJECT = "project"
    GLOBAL = "global"


class InstallMode(str, Enum):
    SYMLINK = "symlink"
    COPY = "copy"


class Cognitive(BaseModel):
    """Cognitive discovered on the local filesystem.

    ``path`` is either the cognitive directory or its single content file.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    path: Path
    type: CognitiveType
    raw_content: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class RemoteCognitive(BaseModel):
    """Single-file cognitive fetched by a provider."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    content: str
    install_name: str
    source_url: str
    provider_id: str
    source_identifier: str
    type: CognitiveType
    metadata: dict[str, Any] = Field(default_factory=dict)


class WellKnownCognitive(BaseModel):
    """Multi-file cognitive: relative file path -> text content."""

    model_config = ConfigDict(frozen=True)

    name: str
    install_name: str
    description: str = ""
    type: CognitiveType
    source_url: str
    files: dict[str, str]
    metadata: dict[str, Any] = Field(default_factory=dict)


class LocalInstallRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["local"] = "local"
    cognitive: Cognitive


class RemoteInstallRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["remote"] = "remote"
    cognitive: RemoteCognitive


class WellKnownInstallRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["wellknown"] = "wellknown"
    cognitive: WellKnownCognitive


InstallRequest = Annotated[
    LocalInstallRequest | RemoteInstallRequest | WellKnownInstallRequest,
    Field(discriminator="kind"),
]


class InstallTarget(BaseModel):
    """Where and how to install for one agent."""

    model_config = ConfigDict(frozen=True)

    agent: str
    scope: InstallScope = InstallScope.PROJECT
    mode: InstallMode = InstallMode.SYMLINK


class InstallerOptions(BaseModel):
    """Base directories injected by the app (policy)."""

    model_config = ConfigDict(frozen=True)

    cwd: Path
    home: Path = Field(default_factory=Path.home)


class InstallResult(BaseModel):
    """Outcome of installing one cognitive for one agent target.

    ``canonical_path`` is set only when a real link was requested for a
    non-universal agent. ``error`` is filled by callers that aggregate results
    across several ``install`` calls; the installer itself raises on failure.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    agent: str
    cognitive_name: str
    cognitive_type: CognitiveType
    path: Path
    canonical_path: Path | None = None
    mode: InstallMode
    symlink_failed: bool | None = None
    error: str | None = None


# --- Lock file ---

CURRENT_LOCK_VERSION = 5


class LockEntry(BaseModel):
    """Provenance and integrity record for one installed cognitive.

    Persisted with camelCase keys (``sourceType``, ``contentHash``, ...).
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    source: str
    source_type: str
    source_url: str = ""
    cognitive_path: str | None = None
    content_hash: str = ""
    cognitive_type: CognitiveType
    category: str | None = None
    installed_at: str = ""
    updated_at: str = ""


class LockFile(BaseModel):
    """The whole manifest, always at CURRENT_LOCK_VERSION in memory."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    version: int = CURRENT_LOCK_VERSION
    cognitives: dict[str, LockEntry] = Field(default_factory=dict)
    last_selected_agents: list[str] | None = None

    def to_json(self) -> str:
        """Serialized document: 2-space indent, trailing newline."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2) + "\n"


class ParsedLockKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    cognitive_type: CognitiveType
    name: str


def make_lock_key(cognitive_type: CognitiveType | str, name: str) -> str:
    """Composite lock key: ``{cognitive_type}:{name}``.

    Raises:
        ValueError: If the type is unknown or the name is empty
    """
    if not name:
        raise ValueError("Lock key name must not be empty")
    return f"{CognitiveType(cognitive_type).value}:{name}"


def parse_lock_key(key: str) -> ParsedLockKey | None:
    """Inverse of make_lock_key.

    Returns None when the key has no ``:``, an empty name, or an unknown type.
    """
    type_value, separator, name = key.partition(":")
    if not separator or not name:
        return None
    try:
        cognitive_type = CognitiveType(type_value)
    except ValueError:
        return None
    return ParsedLockKey(cognitive_type=cognitive_type, name=name)
