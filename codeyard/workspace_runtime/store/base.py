"""History store interface for tenant trees.

A history store treats a directory as a running version history: every
mutation of the tree is followed by ``commit_pending`` and the resulting
commits can be queried read-only.  The interface is async so that the
blocking history tool never runs on the event loop.

Read queries fail soft: a commit or file revision that does not exist
yields empty results, never an exception.  Only a directory that cannot be
opened as a history store at all raises ``StoreUnavailableError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from codeyard.workspace_runtime.models.history import CommitFile, CommitRecord, FileContentDiff


@runtime_checkable
class HistoryStore(Protocol):
    """Async protocol for a history-tracked directory."""

    async def ensure_initialized(self, path: Path) -> None:
        """Create the directory and its history metadata if missing.  Idempotent."""
        ...

    async def has_commits(self, path: Path) -> bool:
        """Whether the current branch has at least one commit."""
        ...

    async def create_initial_commit(self, path: Path) -> str:
        """Record an empty commit so an unborn branch gets a tip.  Returns its hash."""
        ...

    async def commit_pending(self, path: Path, message: str) -> str | None:
        """Stage every change and commit it.  Returns ``None`` if nothing changed."""
        ...

    async def list_commits(self, path: Path, offset: int = 0, limit: int = 10) -> list[CommitRecord]:
        """Commits newest-first, skipping ``offset`` and returning at most ``limit``."""
        ...

    async def commit_count(self, path: Path) -> int:
        """Number of commits reachable from the current tip."""
        ...

    async def commit_files(self, path: Path, commit_hash: str) -> list[CommitFile]:
        """Paths changed by one commit relative to its parent."""
        ...

    async def file_before_after(self, path: Path, commit_hash: str, file_path: str) -> FileContentDiff:
        """File content at the commit's parent and at the commit."""
        ...

    async def file_at_head_vs_commit(self, path: Path, commit_hash: str, file_path: str) -> FileContentDiff:
        """File content at the commit and at the current tip."""
        ...
