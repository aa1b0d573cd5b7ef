"""Data models for the workspace runtime."""

from codeyard.workspace_runtime.models.api import (
    AccountResponse,
    BranchCreate,
    BranchCreateResponse,
    CommitCountResponse,
    CommitFilesResponse,
    CredentialsResponse,
    PathRequest,
    PublicKeyUpload,
    SandboxStatusResponse,
    SaveFileResponse,
    SuccessResponse,
)
from codeyard.workspace_runtime.models.enums import ChangeKind, ChangeType, EntryKind
from codeyard.workspace_runtime.models.events import FileChangeEvent
from codeyard.workspace_runtime.models.history import CommitFile, CommitRecord, FileContentDiff
from codeyard.workspace_runtime.models.sandbox import CommandResult, ConnectionInfo
from codeyard.workspace_runtime.models.workspace import BranchInfo, SavedEntry, TreeEntry

__all__ = [
    # API schemas
    "AccountResponse",
    "BranchCreate",
    "BranchCreateResponse",
    # Workspace
    "BranchInfo",
    # Enums
    "ChangeKind",
    "ChangeType",
    # Sandbox
    "CommandResult",
    "CommitCountResponse",
    # History
    "CommitFile",
    "CommitFilesResponse",
    "CommitRecord",
    "ConnectionInfo",
    "CredentialsResponse",
    "EntryKind",
    "FileContentDiff",
    # Events
    "FileChangeEvent",
    "PathRequest",
    "PublicKeyUpload",
    "SandboxStatusResponse",
    "SaveFileResponse",
    "SavedEntry",
    "SuccessResponse",
    "TreeEntry",
]
