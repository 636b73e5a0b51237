"""cognit - Install cognitives (skills, agents, prompts, rules) and track them in a lock file.

Public API exports.

Per KERNEL_PHILOSOPHY: This is library mechanism, apps inject policy (paths, agents).
"""

from .agents import AgentConfig
from .agents import AgentDefinition
from .agents import AgentRegistry
from .atomic import atomic_write_file
from .copier import deep_copy
from .copier import is_excluded
from .events import RecordingEventSink
from .exceptions import CognitError
from .exceptions import ConflictError
from .exceptions import EloopError
from .exceptions import FileWriteError
from .exceptions import InstallError
from .exceptions import LockCorruptedError
from .exceptions import LockError
from .exceptions import LockMigrationError
from .exceptions import LockReadError
from .exceptions import LockWriteError
from .exceptions import OperationError
from .exceptions import PathTraversalError
from .exceptions import SymlinkError
from .fanout import get_agent_symlink_paths
from .fanout import should_skip_symlink
from .installer import Installer
from .integrity import compute_content_hash
from .integrity import compute_directory_hash
from .integrity import verify_content_hash
from .lock import LockFileManager
from .lock import SourceGroup
from .lock import lock_file_path
from .migration import read_with_migration
from .protocols import AgentRegistryProtocol
from .protocols import EventSinkProtocol
from .rollback import InstallAction
from .rollback import RollbackResult
from .rollback import rollback
from .schema import CURRENT_LOCK_VERSION
from .schema import Cognitive
from .schema import CognitiveType
from .schema import InstallerOptions
from .schema import InstallMode
from .schema import InstallResult
from .schema import InstallScope
from .schema import InstallTarget
from .schema import LocalInstallRequest
from .schema import LockEntry
from .schema import LockFile
from .schema import RemoteCognitive
from .schema import RemoteInstallRequest
from .schema import WellKnownCognitive
from .schema import WellKnownInstallRequest
from .schema import make_lock_key
from .schema import parse_lock_key
from .security import is_path_safe
from .security import sanitize_name

__all__ = [
    # Types
    "CognitiveType",
    "InstallScope",
    "InstallMode",
    "Cognitive",
    "RemoteCognitive",
    "WellKnownCognitive",
    "LocalInstallRequest",
    "RemoteInstallRequest",
    "WellKnownInstallRequest",
    "InstallTarget",
    "InstallResult",
    "InstallerOptions",
    # Agents
    "AgentConfig",
    "AgentDefinition",
    "AgentRegistry",
    "AgentRegistryProtocol",
    "should_skip_symlink",
    "get_agent_symlink_paths",
    # Installation
    "Installer",
    "InstallAction",
    "RollbackResult",
    "rollback",
    "atomic_write_file",
    "deep_copy",
    "is_excluded",
    "sanitize_name",
    "is_path_safe",
    # Lock file
    "CURRENT_LOCK_VERSION",
    "LockEntry",
    "LockFile",
    "LockFileManager",
    "SourceGroup",
    "lock_file_path",
    "make_lock_key",
    "parse_lock_key",
    "read_with_migration",
    "compute_content_hash",
    "compute_directory_hash",
    "verify_content_hash",
    # Events
    "EventSinkProtocol",
    "RecordingEventSink",
    # Exceptions
    "CognitError",
    "InstallError",
    "PathTraversalError",
    "EloopError",
    "SymlinkError",
    "FileWriteError",
    "LockError",
    "LockReadError",
    "LockCorruptedError",
    "LockWriteError",
    "LockMigrationError",
    "OperationError",
    "ConflictError",
]

__version__ = "0.1.0"
