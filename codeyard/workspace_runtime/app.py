from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.routing import APIRouter
from loguru import logger

from codeyard.workspace_runtime.deps import require_access
from codeyard.workspace_runtime.log import setup_logging
from codeyard.workspace_runtime.managers.branches import BranchManager
from codeyard.workspace_runtime.managers.files import WorkspaceManager
from codeyard.workspace_runtime.models.events import FileChangeEvent
from codeyard.workspace_runtime.paths import PathGuard
from codeyard.workspace_runtime.registry import ChangeListenerRegistry
from codeyard.workspace_runtime.sandbox.shell import RemoteShell
from codeyard.workspace_runtime.sandbox.users import SandboxUserManager
from codeyard.workspace_runtime.settings import CodeyardSettings, get_settings
from codeyard.workspace_runtime.store.git import GitHistoryStore

# ---------------------------------------------------------------------------
# Shared singletons initialised during lifespan
# ---------------------------------------------------------------------------
listeners = ChangeListenerRegistry()


def log_change(event: FileChangeEvent) -> None:
    """Default listener: one log line per mutation."""
    logger.info("Change: {} {} {}", event.tenant, event.change_type, event.relative_path)


def create_sandbox_manager(settings: CodeyardSettings) -> SandboxUserManager:
    shell = RemoteShell(
        host=settings.ssh_container_host,
        port=settings.ssh_container_port,
        username=settings.ssh_admin_user,
        key_file=settings.ssh_admin_key_file,
        connect_timeout=settings.ssh_connect_timeout,
    )
    return SandboxUserManager(
        shell,
        public_host=settings.ssh_public_host,
        public_port=settings.ssh_public_port,
        users_base=settings.ssh_users_base,
    )


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # -- Startup ---------------------------------------------------------------
    settings = get_settings()
    setup_logging(
        settings.log_level,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )

    auth_token = settings.resolve_auth_token()
    if not settings.auth_token:
        logger.warning("No CODEYARD_AUTH_TOKEN set -- generated token: {}", auth_token)
    _app.state.auth_token = auth_token

    logger.info("Workspace Runtime starting (host={}, port={})", settings.host, settings.port)
    prefix_info = f", prefix={settings.data_prefix}" if settings.data_prefix else ""
    logger.info("Data root: {}{}", settings.data_root, prefix_info)

    # -- Initialise state fields (always present, possibly None) ----------------
    _app.state.workspace_manager = None
    _app.state.sandbox_manager = None
    _app.state.listeners = listeners

    # -- History store and branches --------------------------------------------
    paths = PathGuard(settings.data_root, prefix=settings.data_prefix)
    store = GitHistoryStore(
        author_name=settings.git_author_name,
        author_email=settings.git_author_email,
        lock_root=paths.locks_base,
    )
    branches = BranchManager(paths, store)

    # -- SSH sandbox -----------------------------------------------------------
    if settings.ssh_enabled:
        _app.state.sandbox_manager = create_sandbox_manager(settings)
        logger.info(
            "SSH sandbox: {}@{}:{}",
            settings.ssh_admin_user,
            settings.ssh_container_host,
            settings.ssh_container_port,
        )
    else:
        logger.warning("CODEYARD_SSH_ENABLED not set -- sandbox accounts and ownership sync disabled")

    # -- Change listeners ------------------------------------------------------
    if log_change not in listeners.listeners():
        listeners.register(log_change)

    _app.state.workspace_manager = WorkspaceManager(
        paths=paths,
        store=store,
        branches=branches,
        listeners=listeners,
        sandbox=_app.state.sandbox_manager,
    )
    logger.info("WorkspaceManager: initialised")

    yield

    # -- Shutdown --------------------------------------------------------------
    logger.info("Workspace Runtime shutting down")
    listeners.unregister(log_change)


app = FastAPI(title="Codeyard Workspace Runtime", lifespan=lifespan)

# ---------------------------------------------------------------------------
# API router -- all backend endpoints live under /api
# ---------------------------------------------------------------------------
api = APIRouter(prefix="/api")


@api.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


# -- Tenant routers (all behind the access gate) -------------------------------
from codeyard.workspace_runtime.routers.branches import router as branches_router  # noqa: E402
from codeyard.workspace_runtime.routers.files import router as files_router  # noqa: E402
from codeyard.workspace_runtime.routers.history import router as history_router  # noqa: E402
from codeyard.workspace_runtime.routers.ssh import router as ssh_router  # noqa: E402

for _router in (files_router, branches_router, history_router, ssh_router):
    api.include_router(_router, dependencies=[Depends(require_access)])

app.include_router(api)
