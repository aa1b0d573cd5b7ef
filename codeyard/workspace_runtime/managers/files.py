"""Workspace manager -- every operation the outside world performs on a tree.

The WorkspaceManager is a process-level singleton initialised in the app
lifespan.  It composes the lower layers for each mutation:

1. **PathGuard** resolves (tenant, branch, relative path) to a host path
2. the filesystem mutation runs in the thread pool
3. **HistoryStore** commits whatever changed in that tree
4. **SandboxUserManager** (optional) re-owns the written path for SSH access
5. **ChangeListenerRegistry** notifies listeners

Steps 4 and 5 are best-effort: their failures are logged, and the caller
still sees the mutation succeed because it already has.
"""

from __future__ import annotations

import mimetypes
import shutil
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

from anyio import to_thread
from loguru import logger

from codeyard.workspace_runtime.errors import BoundaryUnavailableError, RemoteCommandError
from codeyard.workspace_runtime.models.enums import ChangeType, EntryKind
from codeyard.workspace_runtime.models.events import FileChangeEvent
from codeyard.workspace_runtime.models.workspace import SavedEntry, TreeEntry
from codeyard.workspace_runtime.paths import is_default_branch, validate_relative_path

if TYPE_CHECKING:
    from codeyard.workspace_runtime.managers.branches import BranchManager
    from codeyard.workspace_runtime.models.history import CommitFile, CommitRecord, FileContentDiff
    from codeyard.workspace_runtime.paths import PathGuard
    from codeyard.workspace_runtime.registry import ChangeListenerRegistry
    from codeyard.workspace_runtime.sandbox.users import SandboxUserManager
    from codeyard.workspace_runtime.store.base import HistoryStore

IGNORED_ENTRIES = frozenset({".git", ".DS_Store", ".gitignore", "node_modules"})
"""Infrastructure entries never shown in a tree listing."""

DEFAULT_MEDIA_TYPE = "application/octet-stream"


class WorkspaceManager:
    """Reads and mutates tenant trees, keeping history and SSH ownership in step.

    ``branch`` arguments are branch selectors: ``None`` / ``""`` / ``"public"``
    select the default working copy, anything else a branch worktree.
    """

    def __init__(
        self,
        *,
        paths: PathGuard,
        store: HistoryStore,
        branches: BranchManager,
        listeners: ChangeListenerRegistry,
        sandbox: SandboxUserManager | None = None,
    ) -> None:
        self._paths = paths
        self._store = store
        self._branches = branches
        self._listeners = listeners
        self._sandbox = sandbox

    # -- Files -----------------------------------------------------------------

    async def read_file(self, tenant: str, branch: str | None, relative_path: str) -> tuple[bytes, str]:
        """Return ``(content, media_type)``.  Raises ``FileNotFoundError`` if missing."""
        path = self._paths.resolve(tenant, branch, relative_path)
        content = await to_thread.run_sync(path.read_bytes)
        return content, media_type_of(path)

    async def save_file(
        self,
        tenant: str,
        branch: str | None,
        relative_path: str,
        content: bytes,
        *,
        commit_message: str | None = None,
    ) -> SavedEntry:
        """Write ``content``, commit it, re-own it and notify listeners."""
        path = self._paths.resolve(tenant, branch, relative_path)
        base = self._paths.root(tenant, branch)

        previous = await to_thread.run_sync(partial(_write_file, path, content))
        entry = await to_thread.run_sync(partial(_stat_entry, path))
        logger.debug("Saved {} ({} bytes) for '{}'", path, entry.size, tenant)

        message = commit_message or f"Save file {path.relative_to(base).as_posix()}"
        await self._store.commit_pending(base, message)
        await self._reassert_ownership(tenant, path)

        self._emit(
            FileChangeEvent(
                tenant=tenant,
                path=path,
                relative_path=relative_path,
                change_type=ChangeType.SAVE,
                base_path=base,
                previous_content=previous,
                new_content=content,
            )
        )
        return entry

    async def delete_file(self, tenant: str, branch: str | None, relative_path: str) -> None:
        """Remove one file and commit the deletion.

        The previous content is read first, so a missing file raises
        ``FileNotFoundError`` before anything is committed.
        """
        path = self._paths.resolve(tenant, branch, relative_path)
        base = self._paths.root(tenant, branch)

        previous = await to_thread.run_sync(path.read_bytes)
        await to_thread.run_sync(path.unlink)
        await self._store.commit_pending(base, f"Delete file {path.relative_to(base).as_posix()}")
        logger.info("Deleted file {} for '{}'", path, tenant)

        self._emit(
            FileChangeEvent(
                tenant=tenant,
                path=path,
                relative_path=relative_path,
                change_type=ChangeType.DELETE,
                base_path=base,
                previous_content=previous,
            )
        )

    async def delete_directory(self, tenant: str, branch: str | None, relative_path: str) -> None:
        """Remove a directory tree and commit the deletion."""
        path = self._paths.resolve(tenant, branch, relative_path)
        base = self._paths.root(tenant, branch)

        await to_thread.run_sync(partial(_remove_directory, path))
        await self._store.commit_pending(base, f"Delete directory {path.relative_to(base).as_posix()}")
        logger.info("Deleted directory {} for '{}'", path, tenant)

        self._emit(
            FileChangeEvent(
                tenant=tenant,
                path=path,
                relative_path=relative_path,
                change_type=ChangeType.DELETE_DIR,
                base_path=base,
            )
        )

    async def create_directory(self, tenant: str, branch: str | None, relative_path: str) -> SavedEntry:
        """Create a directory (and parents).  Nothing is committed: git ignores empty directories."""
        path = self._paths.resolve(tenant, branch, relative_path)
        await to_thread.run_sync(partial(path.mkdir, parents=True, exist_ok=True))
        await self._reassert_ownership(tenant, path)
        return await to_thread.run_sync(partial(_stat_entry, path))

    async def list_tree(self, tenant: str, branch: str | None = None) -> list[TreeEntry]:
        """Recursive listing of the selected tree, infrastructure entries excluded."""
        root = self._paths.root(tenant, branch)
        if is_default_branch(branch):
            await to_thread.run_sync(partial(root.mkdir, parents=True, exist_ok=True))
        return await to_thread.run_sync(partial(_list_entries, root))

    # -- Branches --------------------------------------------------------------

    async def create_branch(self, tenant: str, new_name: str, source: str | None = None) -> list[str]:
        return await self._branches.create_branch(tenant, new_name, source)

    async def list_branches(self, tenant: str) -> list[str]:
        return await self._branches.list_branches(tenant)

    # -- History ---------------------------------------------------------------

    async def _history_root(self, tenant: str, branch: str | None) -> Path:
        root = self._paths.root(tenant, branch)
        await self._store.ensure_initialized(root)
        return root

    async def commit_count(self, tenant: str, branch: str | None = None) -> int:
        return await self._store.commit_count(await self._history_root(tenant, branch))

    async def list_commits(
        self,
        tenant: str,
        branch: str | None = None,
        *,
        offset: int = 0,
        limit: int = 10,
    ) -> list[CommitRecord]:
        root = await self._history_root(tenant, branch)
        return await self._store.list_commits(root, offset=offset, limit=limit)

    async def commit_files(self, tenant: str, branch: str | None, commit_hash: str) -> list[CommitFile]:
        root = await self._history_root(tenant, branch)
        return await self._store.commit_files(root, commit_hash)

    async def file_before_after(
        self, tenant: str, branch: str | None, commit_hash: str, file_path: str
    ) -> FileContentDiff:
        file_path = validate_relative_path(file_path)
        root = await self._history_root(tenant, branch)
        return await self._store.file_before_after(root, commit_hash, file_path)

    async def file_at_head_vs_commit(
        self, tenant: str, branch: str | None, commit_hash: str, file_path: str
    ) -> FileContentDiff:
        file_path = validate_relative_path(file_path)
        root = await self._history_root(tenant, branch)
        return await self._store.file_at_head_vs_commit(root, commit_hash, file_path)

    # -- Side effects ----------------------------------------------------------

    async def _reassert_ownership(self, tenant: str, path: Path) -> None:
        if self._sandbox is None:
            return
        relative = self._paths.home_relative(tenant, path)
        try:
            await self._sandbox.reassert_ownership(tenant, relative)
        except (BoundaryUnavailableError, RemoteCommandError) as exc:
            logger.warning("Failed to adjust ownership of {} for '{}': {}", relative, tenant, exc)

    def _emit(self, event: FileChangeEvent) -> None:
        self._listeners.notify(event)


# -- Sync helpers (run in thread pool) -----------------------------------------


def media_type_of(path: Path) -> str:
    media_type, _ = mimetypes.guess_type(path.name)
    return media_type or DEFAULT_MEDIA_TYPE


def _write_file(path: Path, content: bytes) -> bytes | None:
    """Write ``content``, creating parents.  Returns the replaced content, if any."""
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        previous = path.read_bytes()
    except FileNotFoundError:
        previous = None
    path.write_bytes(content)
    return previous


def _remove_directory(path: Path) -> None:
    if path.is_symlink() or not path.is_dir():
        msg = f"Directory not found: {path}"
        raise FileNotFoundError(msg)
    shutil.rmtree(path)


def _stat_entry(path: Path) -> SavedEntry:
    stat = path.stat()
    return SavedEntry(size=stat.st_size, last_modified=stat.st_mtime * 1000)


def _list_entries(directory: Path) -> list[TreeEntry]:
    entries = []
    for child in sorted(directory.iterdir(), key=lambda p: p.name):
        if child.name in IGNORED_ENTRIES:
            continue
        # Symlinks are listed as entries but never followed.
        if child.is_dir() and not child.is_symlink():
            entries.append(TreeEntry(name=child.name, type=EntryKind.DIRECTORY, children=_list_entries(child)))
        else:
            stat = child.lstat()
            entries.append(
                TreeEntry(
                    name=child.name,
                    type=EntryKind.FILE,
                    media_type=media_type_of(child),
                    size=stat.st_size,
                    last_modified=stat.st_mtime * 1000,
                )
            )
    return entries
