"""Cognitive installation mechanism (registry-based).

Per KERNEL_PHILOSOPHY: Mechanism not policy - the installer doesn't know which
agents a user wants or where the project lives; apps inject the registry and
InstallerOptions.

Per IMPLEMENTATION_PHILOSOPHY:
- All-or-nothing: every mutation is logged as an InstallAction and a failed
  install rolls the log back, leaving the filesystem as it was
- Graceful degradation: a failed symlink falls back to a copy
- Lock file is NOT touched here: callers persist provenance after success
"""

import asyncio
import logging
import os
import secrets
from pathlib import Path
from typing import assert_never

from . import events as lifecycle
from .atomic import atomic_write_file
from .copier import deep_copy
from .exceptions import CognitError
from .exceptions import FileWriteError
from .exceptions import InstallError
from .exceptions import PathTraversalError
from .exceptions import SymlinkError
from .fanout import get_agent_symlink_paths
from .fanout import should_skip_symlink
from .paths import get_agent_install_path
from .paths import get_canonical_base
from .paths import get_canonical_path
from .protocols import AgentRegistryProtocol
from .protocols import EventSinkProtocol
from .rollback import ActionKind
from .rollback import InstallAction
from .rollback import remove_path
from .rollback import rollback
from .schema import CognitiveType
from .schema import InstallerOptions
from .schema import InstallMode
from .schema import InstallRequest
from .schema import InstallResult
from .schema import InstallScope
from .schema import InstallTarget
from .schema import LocalInstallRequest
from .schema import RemoteInstallRequest
from .schema import WellKnownInstallRequest
from .security import is_path_safe
from .security import sanitize_name
from .symlink import create_symlink
from .symlink import detect_loop
from .symlink import points_to

logger = logging.getLogger(__name__)

BACKUP_MARKER = ".cognit-backup-"


def _request_info(request: InstallRequest) -> tuple[str, CognitiveType, str]:
    """Display name, cognitive type and install name of a request."""
    match request:
        case LocalInstallRequest(cognitive=cognitive):
            return cognitive.name, cognitive.type, sanitize_name(cognitive.name)
        case RemoteInstallRequest(cognitive=cognitive):
            return cognitive.name, cognitive.type, sanitize_name(cognitive.install_name)
        case WellKnownInstallRequest(cognitive=cognitive):
            return cognitive.name, cognitive.type, sanitize_name(cognitive.install_name)
        case _:
            assert_never(request)


def _backup_path_for(path: Path) -> Path:
    return path.parent / f"{BACKUP_MARKER}{path.name}.{secrets.token_hex(4)}"


def _first_missing_ancestor(path: Path) -> Path | None:
    """Topmost directory in path's chain that doesn't exist yet."""
    missing = None
    for candidate in (path, *path.parents):
        if os.path.lexists(candidate):
            break
        missing = candidate
    return missing


class Installer:
    """
    Installs cognitives into the canonical location and agent directories.

    Example:
        >>> registry = AgentRegistry(cwd=project_dir)
        >>> installer = Installer(registry)
        >>> result = await installer.install(
        ...     RemoteInstallRequest(cognitive=remote),
        ...     InstallTarget(agent="cursor", scope=InstallScope.PROJECT, mode=InstallMode.SYMLINK),
        ...     InstallerOptions(cwd=project_dir),
        ... )
        >>> print(result.path)
    """

    def __init__(self, registry: AgentRegistryProtocol, events: EventSinkProtocol | None = None):
        self.registry = registry
        self.events = events

    async def install(
        self,
        request: InstallRequest,
        target: InstallTarget,
        options: InstallerOptions,
    ) -> InstallResult:
        """
        Install one cognitive for one agent target.

        Returns:
            InstallResult for the target

        Raises:
            PathTraversalError: If a computed path escapes its base directory
            EloopError: If the agent path is a circular symlink chain
            InstallError: If any other step fails (after rollback)
        """
        results = await self.install_all(request, [target], options)
        return results[0]

    async def install_all(
        self,
        request: InstallRequest,
        targets: list[InstallTarget],
        options: InstallerOptions,
    ) -> list[InstallResult]:
        """
        Install one cognitive for several agent targets (all-or-nothing).

        Process:
        1. Compute and validate canonical and agent paths (before any write)
        2. Write canonical content once per scope
        3. Fan out agent links/copies concurrently
        4. On any failure, roll back every recorded action and re-raise

        Returns:
            One InstallResult per target, in target order
        """
        name, cognitive_type, install_name = _request_info(request)
        actions: list[InstallAction] = []

        seen = set()
        for target in targets:
            if (target.agent, target.scope) in seen:
                raise InstallError(
                    f"Duplicate install target: {target.agent} ({target.scope.value})",
                    context={"agent": target.agent, "scope": target.scope.value},
                )
            seen.add((target.agent, target.scope))

        for target in targets:
            lifecycle.emit(
                self.events, lifecycle.INSTALL_START, cognitive=name, agent=target.agent, mode=target.mode.value
            )

        try:
            canonical_paths = self._plan_canonical(request, cognitive_type, install_name, targets, options)
            agent_paths = self._plan_agents(cognitive_type, install_name, targets, canonical_paths)

            # Canonical content must be complete before any agent artifact references it
            for scope, canonical_path in canonical_paths.items():
                logger.info(f"Installing {cognitive_type.value} '{name}' to {canonical_path} ({scope.value})")
                await self._write_canonical(request, canonical_path, actions)

            outcomes = await asyncio.gather(
                *(
                    self._install_for_agent(
                        name,
                        cognitive_type,
                        target,
                        canonical_paths[target.scope],
                        agent_paths[target.agent, target.scope],
                        actions,
                    )
                    for target in targets
                ),
                return_exceptions=True,
            )
            failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
            if failures:
                raise failures[0]
            results = [outcome for outcome in outcomes if isinstance(outcome, InstallResult)]

        except asyncio.CancelledError:
            self._rollback(name, actions)
            raise
        except Exception as e:
            self._rollback(name, actions)
            logger.error(f"Failed to install {cognitive_type.value} '{name}': {e}")
            lifecycle.emit(self.events, lifecycle.INSTALL_ERROR, cognitive=name, error=str(e))
            if isinstance(e, CognitError):
                raise
            raise InstallError(
                f"Failed to install {cognitive_type.value} '{name}': {e}",
                context={"cognitive": name, "cognitive_type": cognitive_type.value},
            ) from e

        await self._discard_backups(actions)

        for result in results:
            lifecycle.emit(self.events, lifecycle.INSTALL_COMPLETE, cognitive=name, agent=result.agent, result=result)
        logger.info(f"Successfully installed {cognitive_type.value} '{name}' for {len(results)} agent(s)")
        return results

    async def remove(
        self,
        name: str,
        cognitive_type: CognitiveType,
        target: InstallTarget,
        options: InstallerOptions | None = None,
    ) -> bool:
        """
        Remove the agent-specific link or copy of a cognitive.

        Universal agents read the canonical location directly, so nothing is
        removed for them; canonical content is removed with remove_canonical
        once the caller knows no other agent references it.

        Args:
            options: When given, an agent path equal to the canonical path is
                left alone as well

        Returns:
            True if something was removed, False if nothing existed

        Raises:
            PathTraversalError: If the agent path escapes the agent directory
            InstallError: If deletion failed
        """
        if should_skip_symlink(target.agent, cognitive_type, self.registry):
            return False

        agent_path = get_agent_install_path(target.agent, cognitive_type, name, target.scope, self.registry)
        if agent_path is None:
            return False

        if options is not None:
            canonical_path = get_canonical_path(cognitive_type, name, target.scope, options.cwd, options.home)
            if agent_path == canonical_path:
                return False

        self._check_agent_path(target.agent, cognitive_type, target.scope, agent_path)

        removed = await self._remove_path(agent_path)
        if removed:
            logger.info(f"Removed {cognitive_type.value} '{name}' for {target.agent}: {agent_path}")
            lifecycle.emit(
                self.events, lifecycle.REMOVE_COMPLETE, cognitive=name, agent=target.agent, path=str(agent_path)
            )
        return removed

    async def remove_canonical(
        self,
        name: str,
        cognitive_type: CognitiveType,
        scope: InstallScope,
        options: InstallerOptions,
    ) -> bool:
        """
        Remove the canonical content of a cognitive.

        Returns:
            True if something was removed, False if nothing existed
        """
        base = get_canonical_base(scope, options.cwd, options.home)
        canonical_path = get_canonical_path(cognitive_type, name, scope, options.cwd, options.home)
        if not is_path_safe(base, canonical_path):
            raise PathTraversalError(str(canonical_path), str(base))

        removed = await self._remove_path(canonical_path)
        if removed:
            logger.info(f"Removed canonical {cognitive_type.value} '{name}': {canonical_path}")
            lifecycle.emit(self.events, lifecycle.REMOVE_COMPLETE, cognitive=name, agent=None, path=str(canonical_path))
        return removed

    # --- Planning (no filesystem mutations) ---

    def _plan_canonical(
        self,
        request: InstallRequest,
        cognitive_type: CognitiveType,
        install_name: str,
        targets: list[InstallTarget],
        options: InstallerOptions,
    ) -> dict[InstallScope, Path]:
        canonical_paths: dict[InstallScope, Path] = {}
        for target in targets:
            if target.scope in canonical_paths:
                continue
            base = get_canonical_base(target.scope, options.cwd, options.home)
            canonical_path = get_canonical_path(cognitive_type, install_name, target.scope, options.cwd, options.home)
            if not is_path_safe(base, canonical_path):
                raise PathTraversalError(str(canonical_path), str(base))
            if isinstance(request, WellKnownInstallRequest):
                for relative in request.cognitive.files:
                    file_path = canonical_path / relative
                    if not is_path_safe(canonical_path, file_path):
                        raise PathTraversalError(str(file_path), str(canonical_path))
            canonical_paths[target.scope] = canonical_path
        return canonical_paths

    def _plan_agents(
        self,
        cognitive_type: CognitiveType,
        install_name: str,
        targets: list[InstallTarget],
        canonical_paths: dict[InstallScope, Path],
    ) -> dict[tuple[str, InstallScope], Path | None]:
        """Agent path per target, or None where the canonical path serves the agent."""
        agent_paths: dict[tuple[str, InstallScope], Path | None] = {}
        for target in targets:
            if self.registry.get(target.agent) is None:
                raise InstallError(f"Unknown agent: {target.agent}", context={"agent": target.agent})
            planned = get_agent_symlink_paths(
                canonical_paths[target.scope],
                install_name,
                cognitive_type,
                [target.agent],
                target.scope,
                self.registry,
            )
            agent_path = planned[0].agent_path if planned else None
            if agent_path is not None:
                self._check_agent_path(target.agent, cognitive_type, target.scope, agent_path)
            agent_paths[target.agent, target.scope] = agent_path
        return agent_paths

    def _agent_dir(self, agent: str, cognitive_type: CognitiveType, scope: InstallScope) -> Path | None:
        return self.registry.get_dir(agent, cognitive_type, "local" if scope == InstallScope.PROJECT else "global")

    def _check_agent_path(
        self,
        agent: str,
        cognitive_type: CognitiveType,
        scope: InstallScope,
        agent_path: Path,
    ) -> None:
        """Agent path must lie strictly inside the registry's directory for the agent."""
        agent_dir = self._agent_dir(agent, cognitive_type, scope)
        if agent_dir is None or agent_path == agent_dir or not is_path_safe(agent_dir, agent_path):
            raise PathTraversalError(str(agent_path), str(agent_dir) if agent_dir else None)

    # --- Mutations (each one logged before it happens) ---

    async def _ensure_parent(self, path: Path, actions: list[InstallAction]) -> None:
        missing = _first_missing_ancestor(path.parent)
        if missing is None:
            return
        actions.append(InstallAction(kind=ActionKind.CREATE_DIRECTORY, path=missing))
        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)

    async def _move_aside(self, path: Path, actions: list[InstallAction]) -> None:
        """Move existing content out of the way so rollback can restore it."""
        if not os.path.lexists(path):
            return
        backup_path = _backup_path_for(path)
        actions.append(InstallAction(kind=ActionKind.REMOVE_EXISTING, path=path, backup_path=backup_path))
        try:
            await asyncio.to_thread(os.replace, path, backup_path)
        except OSError as e:
            raise FileWriteError(str(path)) from e
        logger.debug(f"Moved existing {path} aside to {backup_path}")

    async def _write_canonical(
        self,
        request: InstallRequest,
        canonical_path: Path,
        actions: list[InstallAction],
    ) -> None:
        await self._ensure_parent(canonical_path, actions)
        await self._move_aside(canonical_path, actions)

        actions.append(InstallAction(kind=ActionKind.CREATE_DIRECTORY, path=canonical_path))
        await asyncio.to_thread(canonical_path.mkdir, parents=True, exist_ok=True)

        match request:
            case LocalInstallRequest(cognitive=cognitive):
                if cognitive.path.is_dir():
                    actions.append(InstallAction(kind=ActionKind.COPY_DIRECTORY, path=canonical_path))
                    await self._copy_tree(cognitive.path, canonical_path)
                else:
                    file_path = canonical_path / cognitive.type.file_name
                    content = await asyncio.to_thread(cognitive.path.read_text, encoding="utf-8")
                    actions.append(InstallAction(kind=ActionKind.WRITE_FILE, path=file_path))
                    await atomic_write_file(file_path, content)
            case RemoteInstallRequest(cognitive=cognitive):
                file_path = canonical_path / cognitive.type.file_name
                actions.append(InstallAction(kind=ActionKind.WRITE_FILE, path=file_path))
                await atomic_write_file(file_path, cognitive.content)
            case WellKnownInstallRequest(cognitive=cognitive):
                writes = []
                for relative, content in cognitive.files.items():
                    file_path = canonical_path / relative
                    actions.append(InstallAction(kind=ActionKind.WRITE_FILE, path=file_path))
                    writes.append(atomic_write_file(file_path, content))
                outcomes = await asyncio.gather(*writes, return_exceptions=True)
                for outcome in outcomes:
                    if isinstance(outcome, BaseException):
                        raise outcome
            case _:
                assert_never(request)

    async def _install_for_agent(
        self,
        name: str,
        cognitive_type: CognitiveType,
        target: InstallTarget,
        canonical_path: Path,
        agent_path: Path | None,
        actions: list[InstallAction],
    ) -> InstallResult:
        if agent_path is None:
            # Canonical is the install path; only universal agents report a requested symlink
            universal = should_skip_symlink(target.agent, cognitive_type, self.registry)
            return InstallResult(
                success=True,
                agent=target.agent,
                cognitive_name=name,
                cognitive_type=cognitive_type,
                path=canonical_path,
                mode=target.mode if universal else InstallMode.COPY,
            )

        if target.mode == InstallMode.SYMLINK:
            if points_to(agent_path, canonical_path):
                logger.debug(f"{agent_path} already links to {canonical_path}")
                return self._linked_result(name, cognitive_type, target, agent_path, canonical_path)

            if agent_path.is_symlink():
                detect_loop(agent_path)

            await self._move_aside(agent_path, actions)
            await self._ensure_parent(agent_path, actions)

            actions.append(InstallAction(kind=ActionKind.CREATE_SYMLINK, path=agent_path))
            try:
                await asyncio.to_thread(create_symlink, canonical_path, agent_path)
            except SymlinkError as e:
                logger.warning(f"Symlink failed for {target.agent}, falling back to copy: {e}")
                await self._copy_to_agent(canonical_path, agent_path, target.agent, actions)
                return InstallResult(
                    success=True,
                    agent=target.agent,
                    cognitive_name=name,
                    cognitive_type=cognitive_type,
                    path=agent_path,
                    mode=InstallMode.COPY,
                    symlink_failed=True,
                )
            lifecycle.emit(self.events, lifecycle.INSTALL_SYMLINK, source=str(canonical_path), target=str(agent_path))
            return self._linked_result(name, cognitive_type, target, agent_path, canonical_path)

        await self._move_aside(agent_path, actions)
        await self._ensure_parent(agent_path, actions)
        await self._copy_to_agent(canonical_path, agent_path, target.agent, actions)
        return InstallResult(
            success=True,
            agent=target.agent,
            cognitive_name=name,
            cognitive_type=cognitive_type,
            path=agent_path,
            mode=InstallMode.COPY,
        )

    def _linked_result(
        self,
        name: str,
        cognitive_type: CognitiveType,
        target: InstallTarget,
        agent_path: Path,
        canonical_path: Path,
    ) -> InstallResult:
        return InstallResult(
            success=True,
            agent=target.agent,
            cognitive_name=name,
            cognitive_type=cognitive_type,
            path=agent_path,
            canonical_path=canonical_path,
            mode=InstallMode.SYMLINK,
        )

    async def _copy_to_agent(
        self,
        canonical_path: Path,
        agent_path: Path,
        agent: str,
        actions: list[InstallAction],
    ) -> None:
        actions.append(InstallAction(kind=ActionKind.COPY_DIRECTORY, path=agent_path))
        await self._copy_tree(canonical_path, agent_path)
        lifecycle.emit(
            self.events, lifecycle.INSTALL_COPY, source=str(canonical_path), target=str(agent_path), agent=agent
        )

    async def _copy_tree(self, src: Path, dest: Path) -> None:
        try:
            await deep_copy(src, dest)
        except OSError as e:
            raise FileWriteError(str(dest)) from e

    async def _remove_path(self, path: Path) -> bool:
        if not os.path.lexists(path):
            return False
        try:
            await asyncio.to_thread(remove_path, path)
        except OSError as e:
            raise InstallError(f"Failed to remove {path}: {e}", context={"path": str(path)}) from e
        return True

    # --- Failure / success housekeeping ---

    def _rollback(self, name: str, actions: list[InstallAction]) -> None:
        if not actions:
            return
        result = rollback(actions)
        if result.failed:
            logger.warning(f"Rollback for '{name}' left {result.failed} step(s) undone ({result.undone} reverted)")
        else:
            logger.debug(f"Rolled back {result.undone} action(s) for '{name}'")
        lifecycle.emit(
            self.events, lifecycle.INSTALL_ROLLBACK, cognitive=name, undone=result.undone, failed=result.failed
        )

    async def _discard_backups(self, actions: list[InstallAction]) -> None:
        for action in actions:
            if action.kind != ActionKind.REMOVE_EXISTING or action.backup_path is None:
                continue
            try:
                await asyncio.to_thread(remove_path, action.backup_path)
            except OSError as e:
                logger.debug(f"Could not discard backup {action.backup_path}: {e}")
