"""Tenant tree endpoints (RPC-style).

All write operations use POST; reads use GET.  The ``dir`` query parameter
selects the branch: omitted (or ``public``) means the default working copy.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, Form, Query, Response, UploadFile, status

from codeyard.workspace_runtime.deps import WorkspaceMgr
from codeyard.workspace_runtime.models.api import PathRequest, SaveFileResponse, SuccessResponse
from codeyard.workspace_runtime.models.workspace import SavedEntry, TreeEntry
from codeyard.workspace_runtime.routers.errors import DOMAIN_ERRORS, to_http

router = APIRouter(prefix="/files", tags=["files"])

BranchSelector = Annotated[
    str | None,
    Query(alias="dir", description="Branch to operate on; the default working copy if omitted."),
]


@router.get("/{tenant}/tree", response_model=list[TreeEntry])
async def list_tree(tenant: str, manager: WorkspaceMgr, branch: BranchSelector = None) -> list[TreeEntry]:
    """Recursive listing of a tenant tree."""
    try:
        return await manager.list_tree(tenant, branch)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None


@router.get("/{tenant}/content")
async def get_content(
    tenant: str,
    manager: WorkspaceMgr,
    path: str = Query(..., min_length=1),
    branch: BranchSelector = None,
) -> Response:
    """Raw file content, served with a media type guessed from the name."""
    try:
        content, media_type = await manager.read_file(tenant, branch, path)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None
    return Response(content=content, media_type=media_type)


@router.post("/{tenant}/save", response_model=SaveFileResponse)
async def save_file(
    tenant: str,
    manager: WorkspaceMgr,
    file: Annotated[UploadFile, File()],
    path: Annotated[str, Form(min_length=1)],
    commit_message: Annotated[str | None, Form()] = None,
    branch: BranchSelector = None,
) -> SaveFileResponse:
    """Write an uploaded file and commit it."""
    content = await file.read()
    try:
        entry = await manager.save_file(tenant, branch, path, content, commit_message=commit_message)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None
    return SaveFileResponse(size=entry.size, last_modified=entry.last_modified)


@router.post("/{tenant}/create-dir", response_model=SavedEntry, status_code=status.HTTP_201_CREATED)
async def create_directory(
    tenant: str,
    body: PathRequest,
    manager: WorkspaceMgr,
    branch: BranchSelector = None,
) -> SavedEntry:
    """Create a directory.  Not committed until it holds a file."""
    try:
        return await manager.create_directory(tenant, branch, body.path)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None


@router.post("/{tenant}/delete", response_model=SuccessResponse)
async def delete_file(
    tenant: str,
    body: PathRequest,
    manager: WorkspaceMgr,
    branch: BranchSelector = None,
) -> SuccessResponse:
    """Delete one file and commit the deletion."""
    try:
        await manager.delete_file(tenant, branch, body.path)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None
    return SuccessResponse(message=f"Deleted {body.path}")


@router.post("/{tenant}/delete-dir", response_model=SuccessResponse)
async def delete_directory(
    tenant: str,
    body: PathRequest,
    manager: WorkspaceMgr,
    branch: BranchSelector = None,
) -> SuccessResponse:
    """Delete a directory tree and commit the deletion."""
    try:
        await manager.delete_directory(tenant, branch, body.path)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None
    return SuccessResponse(message=f"Deleted {body.path}")
