"""History query results."""

from __future__ import annotations

from pydantic import BaseModel

from codeyard.workspace_runtime.models.enums import ChangeKind


class CommitRecord(BaseModel):
    """One entry of the commit log, newest first."""

    hash: str
    date: str
    message: str
    author_name: str
    author_email: str


class CommitFile(BaseModel):
    """A path touched by a commit, relative to its parent."""

    path: str
    type: ChangeKind
    old_path: str | None = None
    """Source path for renames and copies."""


class FileContentDiff(BaseModel):
    """File content on both sides of a comparison.

    A side is the empty string when the file did not exist there; that is
    reported through ``was_created`` / ``was_deleted`` rather than as an error.
    """

    before: str
    after: str
    was_created: bool
    was_deleted: bool

    @classmethod
    def from_sides(cls, before: str, after: str) -> FileContentDiff:
        return cls(before=before, after=after, was_created=before == "", was_deleted=after == "")
