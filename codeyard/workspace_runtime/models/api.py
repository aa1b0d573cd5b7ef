"""API request / response schemas for the HTTP endpoints.

These thin schemas sit between HTTP and the managers.  Domain results
(``TreeEntry``, ``CommitRecord``, ``ConnectionInfo``, ...) are returned as-is
where they already have the right shape; the wrappers below only exist where
an endpoint adds envelope fields.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from codeyard.workspace_runtime.models.history import CommitFile
from codeyard.workspace_runtime.models.sandbox import ConnectionInfo
from codeyard.workspace_runtime.models.workspace import BranchInfo

# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class PathRequest(BaseModel):
    """Input naming one tenant-relative path."""

    path: str = Field(min_length=1)


class SaveFileResponse(BaseModel):
    success: bool = True
    size: int
    last_modified: float


class SuccessResponse(BaseModel):
    success: bool = True
    message: str | None = None


# ---------------------------------------------------------------------------
# Branches
# ---------------------------------------------------------------------------


class BranchCreate(BaseModel):
    """Input for forking a new branch worktree."""

    branch: str = Field(min_length=1)
    source: str | None = Field(default=None, description="Branch to fork from; default working copy if omitted.")


class BranchCreateResponse(BaseModel):
    success: bool = True
    branches: list[BranchInfo]


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class CommitCountResponse(BaseModel):
    count: int


class CommitFilesResponse(BaseModel):
    files: list[CommitFile]


# ---------------------------------------------------------------------------
# SSH sandbox
# ---------------------------------------------------------------------------


class PublicKeyUpload(BaseModel):
    public_key: str = Field(min_length=1)


class CredentialsResponse(BaseModel):
    success: bool = True
    connection: ConnectionInfo


class AccountResponse(BaseModel):
    """Describes a tenant's sandbox account without revealing credentials."""

    exists: bool
    connection: ConnectionInfo | None = None


class SandboxStatusResponse(BaseModel):
    reachable: bool
    output: str | None = None
    error: str | None = None
