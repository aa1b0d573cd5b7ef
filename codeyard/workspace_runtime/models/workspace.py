"""File tree data models.

A tenant's tree is either its default working copy (``public``) or one of
its branch worktrees.  These models describe what the HTTP layer reports
about entries in that tree.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from codeyard.workspace_runtime.models.enums import EntryKind


class TreeEntry(BaseModel):
    """One file or directory in a listed tree."""

    name: str
    type: EntryKind
    media_type: str | None = None
    size: int | None = None
    last_modified: float | None = Field(default=None, description="Modification time in epoch milliseconds")
    children: list[TreeEntry] | None = None


class SavedEntry(BaseModel):
    """Stat of an entry right after it was written or created."""

    size: int
    last_modified: float


class BranchInfo(BaseModel):
    name: str
