"""Cognit exceptions.

Per IMPLEMENTATION_PHILOSOPHY: Clear, actionable error messages.
Every error carries a machine-readable code and the path(s) involved in context.
"""


class CognitError(Exception):
    """Base exception for cognit operations."""

    code = "COGNIT_ERROR"

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (file paths, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict:
        """Structured representation for logs and callers."""
        return {
            "name": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "cause": repr(self.__cause__) if self.__cause__ else None,
        }


# --- Installer ---


class InstallError(CognitError):
    """Installation or removal failed."""

    code = "INSTALL_ERROR"


class PathTraversalError(InstallError):
    """Target path escapes its expected base directory."""

    code = "PATH_TRAVERSAL_ERROR"

    def __init__(self, attempted_path: str, base_path: str | None = None):
        super().__init__(
            f"Path traversal detected: {attempted_path}",
            context={"attempted_path": attempted_path, "base_path": base_path},
        )
        self.attempted_path = attempted_path


class EloopError(InstallError):
    """Circular symlink chain at the link path."""

    code = "ELOOP_ERROR"

    def __init__(self, symlink_path: str):
        super().__init__(f"Circular symlink detected: {symlink_path}", context={"symlink_path": symlink_path})
        self.symlink_path = symlink_path


class SymlinkError(InstallError):
    """Symlink could not be created (recoverable by copying)."""

    code = "SYMLINK_ERROR"

    def __init__(self, source: str, target: str):
        super().__init__(
            f"Failed to create symlink: {source} -> {target}",
            context={"source": source, "target": target},
        )
        self.source = source
        self.target = target


class FileWriteError(InstallError):
    """Underlying file write failed."""

    code = "FILE_WRITE_ERROR"

    def __init__(self, file_path: str):
        super().__init__(f"Failed to write file: {file_path}", context={"file_path": file_path})
        self.file_path = file_path


# --- Lock file ---


class LockError(CognitError):
    """Lock file operation failed."""

    code = "LOCK_ERROR"


class LockReadError(LockError):
    """Lock file exists but could not be read."""

    code = "LOCK_READ_ERROR"

    def __init__(self, lock_path: str, reason: str | None = None):
        message = f"Failed to read lock file: {lock_path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, context={"lock_path": lock_path})
        self.lock_path = lock_path


class LockCorruptedError(LockReadError):
    """Lock file content is not valid JSON or fails shape validation."""

    code = "LOCK_CORRUPTED_ERROR"


class LockWriteError(LockError):
    """Atomic write of the lock file failed. Previous file is untouched."""

    code = "LOCK_WRITE_ERROR"

    def __init__(self, lock_path: str):
        super().__init__(f"Failed to write lock file: {lock_path}", context={"lock_path": lock_path})
        self.lock_path = lock_path


class LockMigrationError(LockError):
    """A lock file version transition could not be completed."""

    code = "LOCK_MIGRATION_ERROR"

    def __init__(self, from_version: int, to_version: int, reason: str | None = None):
        message = f"Failed to migrate lock file from v{from_version} to v{to_version}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, context={"from_version": from_version, "to_version": to_version})
        self.from_version = from_version
        self.to_version = to_version


# --- Operations ---


class OperationError(CognitError):
    """Caller-level operation failed."""

    code = "OPERATION_ERROR"


class ConflictError(OperationError):
    """Cognitive is already installed from a different source."""

    code = "CONFLICT_ERROR"

    def __init__(self, cognitive_name: str, existing_source: str):
        super().__init__(
            f"Cognitive '{cognitive_name}' already exists from source: {existing_source}",
            context={"cognitive_name": cognitive_name, "existing_source": existing_source},
        )
        self.cognitive_name = cognitive_name
        self.existing_source = existing_source
