"""FastAPI dependency injection for managers and the access gate.

Usage in route handlers::

    @router.get("/{tenant}/tree")
    async def tree(tenant: str, manager: WorkspaceMgr) -> list[TreeEntry]:
        ...

Manager dependencies raise HTTP 503 if the backing component was not
initialised (lifespan not run, or ``CODEYARD_SSH_ENABLED`` unset for the
sandbox manager).  ``require_access`` is attached to every tenant router
in ``app.py``, so no handler can be reached without passing it.
"""

from __future__ import annotations

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from codeyard.workspace_runtime.managers.files import WorkspaceManager
from codeyard.workspace_runtime.sandbox.users import SandboxUserManager

_bearer = HTTPBearer(auto_error=False)


def get_workspace_manager(request: Request) -> WorkspaceManager:
    manager: WorkspaceManager | None = request.app.state.workspace_manager
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Workspace manager not initialised.",
        )
    return manager


def get_sandbox_manager(request: Request) -> SandboxUserManager:
    manager: SandboxUserManager | None = request.app.state.sandbox_manager
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="SSH sandbox not configured (CODEYARD_SSH_ENABLED is unset).",
        )
    return manager


def require_access(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> None:
    """Gate every tenant route on the service bearer token.

    Runs before the handler, so a denied request never touches tenant data.
    """
    expected: str | None = request.app.state.auth_token
    if expected is None:
        return
    if credentials is None or not secrets.compare_digest(credentials.credentials, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied.",
            headers={"WWW-Authenticate": "Bearer"},
        )


# -- Annotated type aliases for concise route signatures ---------------------

WorkspaceMgr = Annotated[WorkspaceManager, Depends(get_workspace_manager)]
"""Annotated dependency: the process-wide workspace manager."""

SandboxMgr = Annotated[SandboxUserManager, Depends(get_sandbox_manager)]
"""Annotated dependency: the sandbox account manager (503 when SSH is disabled)."""
