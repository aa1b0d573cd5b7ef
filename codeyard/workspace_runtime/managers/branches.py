"""Branch operations.

A branch is a linked git worktree of the tenant's default working copy,
checked out on its own git branch under ``apps/{tenant}/branches/{name}``.
Branches are created from the tip of an existing branch and are never
deleted here.
"""

from __future__ import annotations

import os
from functools import partial
from pathlib import Path

from anyio import to_thread
from git import Repo
from git.exc import GitCommandError
from loguru import logger

from codeyard.workspace_runtime.errors import BranchAlreadyExistsError, BranchCreationError
from codeyard.workspace_runtime.paths import PathGuard, is_default_branch, validate_branch_name
from codeyard.workspace_runtime.store.base import HistoryStore


class BranchManager:
    """Creates and lists branch worktrees for a tenant."""

    def __init__(self, paths: PathGuard, store: HistoryStore) -> None:
        self._paths = paths
        self._store = store

    async def create_branch(self, tenant: str, new_name: str, source: str | None = None) -> list[str]:
        """Fork ``new_name`` from ``source`` (default working copy if omitted).

        Returns the branch list after creation.  Raises
        ``InvalidBranchNameError`` / ``BranchAlreadyExistsError`` before any
        I/O happens, and ``BranchCreationError`` if git refuses.
        """
        validate_branch_name(new_name)
        if not is_default_branch(source):
            validate_branch_name(source)

        target = self._paths.branch_dir(tenant, new_name)
        if await to_thread.run_sync(target.exists):
            msg = f"Directory already exists: {target}"
            raise BranchAlreadyExistsError(msg)

        repo_path = self._paths.default_root(tenant)
        await self._store.ensure_initialized(repo_path)
        # An unborn history has no tip to fork from.
        if not await self._store.has_commits(repo_path):
            await self._store.create_initial_commit(repo_path)

        start_point = None if is_default_branch(source) else source
        await to_thread.run_sync(partial(_add_worktree, repo_path, target, new_name, start_point))
        logger.info("Created branch '{}' for '{}' from '{}' at {}", new_name, tenant, source or "public", target)
        return await self.list_branches(tenant)

    async def list_branches(self, tenant: str) -> list[str]:
        """Branch names, sorted.  Creates the (empty) branches root if needed."""
        root = self._paths.branches_root(tenant)
        return await to_thread.run_sync(partial(_list_branch_dirs, root))


# -- Sync helpers (run in thread pool) -----------------------------------------


def _add_worktree(repo_path: Path, target: Path, name: str, start_point: str | None) -> None:
    relative_target = os.path.relpath(target, repo_path)
    args = ["add", "-b", name, relative_target]
    if start_point:
        args.append(start_point)
    try:
        with Repo(repo_path) as repo:
            repo.git.worktree(*args)
    except GitCommandError as exc:
        detail = (exc.stderr or str(exc)).strip()
        msg = f"Failed to create branch: {detail}"
        raise BranchCreationError(msg) from exc


def _list_branch_dirs(root: Path) -> list[str]:
    root.mkdir(parents=True, exist_ok=True)
    return sorted(entry.name for entry in root.iterdir() if entry.is_dir())
