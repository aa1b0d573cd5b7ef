"""SSH sandbox account endpoints (RPC-style).

Only mounted usefully when ``CODEYARD_SSH_ENABLED`` is set; otherwise every
route answers 503.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from codeyard.workspace_runtime.deps import SandboxMgr
from codeyard.workspace_runtime.errors import BoundaryUnavailableError, RemoteCommandError
from codeyard.workspace_runtime.models.api import (
    AccountResponse,
    CredentialsResponse,
    PublicKeyUpload,
    SandboxStatusResponse,
    SuccessResponse,
)
from codeyard.workspace_runtime.routers.errors import DOMAIN_ERRORS, to_http
from codeyard.workspace_runtime.sandbox.users import generate_password

router = APIRouter(prefix="/ssh", tags=["ssh"])


@router.get("/status", response_model=SandboxStatusResponse)
async def sandbox_status(manager: SandboxMgr) -> SandboxStatusResponse:
    """Operator diagnostic: host name, admin user and uptime of the sandbox."""
    try:
        result = await manager.test_connection()
    except (BoundaryUnavailableError, RemoteCommandError) as exc:
        return SandboxStatusResponse(reachable=False, error=str(exc))
    return SandboxStatusResponse(reachable=True, output=result.stdout.strip())


@router.get("/{tenant}/account", response_model=AccountResponse)
async def get_account(tenant: str, manager: SandboxMgr) -> AccountResponse:
    """Whether the tenant has an account, and where to connect."""
    try:
        connection = await manager.describe_account(tenant)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None
    return AccountResponse(exists=connection is not None, connection=connection)


@router.post("/{tenant}/credentials", response_model=CredentialsResponse)
async def generate_credentials(tenant: str, manager: SandboxMgr) -> CredentialsResponse:
    """Provision the tenant's account, or issue a new password if it exists.

    The response is the only place the password is ever revealed.
    """
    try:
        connection = await manager.provision_account(tenant)
        if connection.password is None:
            connection = await manager.rotate_password(tenant, generate_password())
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None
    return CredentialsResponse(connection=connection)


@router.post("/{tenant}/keys/upload", response_model=SuccessResponse)
async def upload_key(tenant: str, body: PublicKeyUpload, manager: SandboxMgr) -> SuccessResponse:
    """Authorize a public key, provisioning the account first if needed."""
    try:
        await manager.authorize_key(tenant, body.public_key, auto_provision=True)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None
    return SuccessResponse(message="SSH key uploaded successfully")


@router.post("/{tenant}/delete", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(tenant: str, manager: SandboxMgr) -> None:
    """Remove the tenant's account.  Files in the tenant tree are untouched."""
    try:
        await manager.delete_account(tenant)
    except DOMAIN_ERRORS as exc:
        raise to_http(exc) from None
