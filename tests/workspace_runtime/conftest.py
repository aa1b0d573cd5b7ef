"""Shared fixtures for workspace-runtime tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from codeyard.workspace_runtime.app import app
from codeyard.workspace_runtime.managers.branches import BranchManager
from codeyard.workspace_runtime.managers.files import WorkspaceManager
from codeyard.workspace_runtime.paths import PathGuard
from codeyard.workspace_runtime.registry import ChangeListenerRegistry
from codeyard.workspace_runtime.store.git import GitHistoryStore

TEST_TOKEN = "test-token"  # noqa: S105


@pytest.fixture
def paths(tmp_path: Path) -> PathGuard:
    return PathGuard(tmp_path / "data")


@pytest.fixture
def store(paths: PathGuard) -> GitHistoryStore:
    return GitHistoryStore(
        author_name="Test Author",
        author_email="test@example.com",
        lock_root=paths.locks_base,
    )


@pytest.fixture
def branches(paths: PathGuard, store: GitHistoryStore) -> BranchManager:
    return BranchManager(paths, store)


@pytest.fixture
def listeners() -> ChangeListenerRegistry:
    return ChangeListenerRegistry()


@pytest.fixture
def manager(
    paths: PathGuard,
    store: GitHistoryStore,
    branches: BranchManager,
    listeners: ChangeListenerRegistry,
) -> WorkspaceManager:
    return WorkspaceManager(paths=paths, store=store, branches=branches, listeners=listeners)


@pytest.fixture
async def client(manager: WorkspaceManager) -> AsyncIterator[AsyncClient]:
    """Async HTTP client wired to the app with a tmp_path-backed manager.

    The app lifespan does NOT run under ``ASGITransport``, so state fields
    are pre-set here.  The sandbox is disabled unless a test installs one.
    """
    app.state.workspace_manager = manager
    app.state.sandbox_manager = None
    app.state.auth_token = TEST_TOKEN

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": f"Bearer {TEST_TOKEN}"},
    ) as ac:
        yield ac

    app.state.workspace_manager = None
    app.state.sandbox_manager = None
