"""Commit history endpoints (read-only)."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from codeyard.workspace_runtime.deps import WorkspaceMgr
from codeyard.workspace_runtime.models.api import CommitCountResponse, CommitFilesResponse
from codeyard.workspace_runtime.models.history import CommitRecord, FileContentDiff
from codeyard.workspace_runtime.routers.errors import DOMAIN_ERRORS, to_http

router = APIRouter(prefix="/history", tags=["history"])

BranchSelector = Annotated[str | None, Query(alias="dir", description="Branch whose history to read.")]


@router.get("/{tenant}/count", response_model=CommitCountResponse)
async def commit_count(tenant: str, manager: WorkspaceMgr, branch: BranchSelector = None) -> CommitCountResponse:
    try:
        count = await manager.commit_count(tenant, branch)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None
    return CommitCountResponse(count=count)


@router.get("/{tenant}/list", response_model=list[CommitRecord])
async def list_commits(
    tenant: str,
    manager: WorkspaceMgr,
    branch: BranchSelector = None,
    offset: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
) -> list[CommitRecord]:
    """Commits newest first, paginated."""
    try:
        return await manager.list_commits(tenant, branch, offset=offset, limit=limit)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None


@router.get("/{tenant}/commits/{commit_hash}/files", response_model=CommitFilesResponse)
async def commit_files(
    tenant: str,
    commit_hash: str,
    manager: WorkspaceMgr,
    branch: BranchSelector = None,
) -> CommitFilesResponse:
    """Files a commit touched.  Unknown hashes yield an empty list."""
    try:
        files = await manager.commit_files(tenant, branch, commit_hash)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None
    return CommitFilesResponse(files=files)


@router.get("/{tenant}/commits/{commit_hash}/diff", response_model=FileContentDiff)
async def file_diff(
    tenant: str,
    commit_hash: str,
    manager: WorkspaceMgr,
    path: str = Query(..., min_length=1),
    branch: BranchSelector = None,
) -> FileContentDiff:
    """A file's content in the commit's parent and in the commit."""
    try:
        return await manager.file_before_after(tenant, branch, commit_hash, path)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None


@router.get("/{tenant}/commits/{commit_hash}/diff-head", response_model=FileContentDiff)
async def file_diff_head(
    tenant: str,
    commit_hash: str,
    manager: WorkspaceMgr,
    path: str = Query(..., min_length=1),
    branch: BranchSelector = None,
) -> FileContentDiff:
    """A file's content in the commit (before) and at HEAD (after)."""
    try:
        return await manager.file_at_head_vs_commit(tenant, branch, commit_hash, path)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None
