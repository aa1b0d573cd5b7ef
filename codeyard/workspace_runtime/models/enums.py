"""Shared enumerations used across the workspace runtime."""

from __future__ import annotations

from enum import StrEnum

# -- File tree ---------------------------------------------------------------


class EntryKind(StrEnum):
    FILE = "file"
    DIRECTORY = "directory"


# -- History -----------------------------------------------------------------


class ChangeKind(StrEnum):
    """How a path changed in one commit (from ``git diff-tree --name-status``)."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    UNKNOWN = "unknown"

    @classmethod
    def from_status(cls, status: str) -> ChangeKind:
        """Map a git status letter (``A``, ``M``, ``R100``, ...) to a kind."""
        return _STATUS_KINDS.get(status[:1], cls.UNKNOWN)


_STATUS_KINDS = {
    "A": ChangeKind.ADDED,
    "M": ChangeKind.MODIFIED,
    "D": ChangeKind.DELETED,
    "R": ChangeKind.RENAMED,
    "C": ChangeKind.COPIED,
}


# -- Notifications -----------------------------------------------------------


class ChangeType(StrEnum):
    """Kind of mutation reported to change listeners."""

    SAVE = "save"
    DELETE = "delete"
    DELETE_DIR = "deleteDir"
