"""Branch endpoints (RPC-style).

A branch is a linked git worktree forked from the default working copy or
from another branch.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from codeyard.workspace_runtime.deps import WorkspaceMgr
from codeyard.workspace_runtime.models.api import BranchCreate, BranchCreateResponse
from codeyard.workspace_runtime.models.workspace import BranchInfo
from codeyard.workspace_runtime.routers.errors import DOMAIN_ERRORS, to_http

router = APIRouter(prefix="/branches", tags=["branches"])


@router.get("/{tenant}/list", response_model=list[BranchInfo])
async def list_branches(tenant: str, manager: WorkspaceMgr) -> list[BranchInfo]:
    """Branch names, sorted.  The default working copy is not listed."""
    try:
        names = await manager.list_branches(tenant)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None
    return [BranchInfo(name=name) for name in names]


@router.post("/{tenant}/create", response_model=BranchCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_branch(tenant: str, body: BranchCreate, manager: WorkspaceMgr) -> BranchCreateResponse:
    """Fork a new branch.  409 if it already exists."""
    try:
        names = await manager.create_branch(tenant, body.branch, body.source)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None
    return BranchCreateResponse(branches=[BranchInfo(name=name) for name in names])
