"""Integration tests for BranchManager (git worktrees in tmp_path)."""

from __future__ import annotations

import pytest

from codeyard.workspace_runtime.errors import (
    BranchAlreadyExistsError,
    BranchCreationError,
    InvalidBranchNameError,
)
from codeyard.workspace_runtime.managers.branches import BranchManager
from codeyard.workspace_runtime.managers.files import WorkspaceManager
from codeyard.workspace_runtime.paths import PathGuard
from codeyard.workspace_runtime.store.git import GitHistoryStore

pytestmark = pytest.mark.integration


async def test_list_branches_empty(branches: BranchManager, paths: PathGuard) -> None:
    assert await branches.list_branches("acme") == []
    assert paths.branches_root("acme").is_dir()


async def test_create_branch_from_unborn_default(
    branches: BranchManager, store: GitHistoryStore, paths: PathGuard
) -> None:
    result = await branches.create_branch("acme", "feature-one")

    assert result == ["feature-one"]
    worktree = paths.branch_dir("acme", "feature-one")
    assert (worktree / ".git").is_file()

    default_root = paths.default_root("acme")
    [initial] = await store.list_commits(default_root)
    assert initial.message == "Initialize workspace"
    assert await store.commit_count(worktree) == 1


async def test_branch_starts_from_default_tip(manager: WorkspaceManager, paths: PathGuard) -> None:
    await manager.save_file("acme", None, "index.html", b"<p>main</p>")

    await manager.create_branch("acme", "feature-one")

    worktree = paths.branch_dir("acme", "feature-one")
    assert (worktree / "index.html").read_bytes() == b"<p>main</p>"


async def test_branches_are_isolated(manager: WorkspaceManager, paths: PathGuard) -> None:
    await manager.save_file("acme", None, "index.html", b"main")
    await manager.create_branch("acme", "feature-one")

    await manager.save_file("acme", "feature-one", "index.html", b"feature")
    await manager.save_file("acme", "feature-one", "extra.txt", b"only here")

    assert (paths.default_root("acme") / "index.html").read_bytes() == b"main"
    assert not (paths.default_root("acme") / "extra.txt").exists()
    assert await manager.commit_count("acme") == 1
    assert await manager.commit_count("acme", "feature-one") == 3


async def test_create_branch_from_other_branch(manager: WorkspaceManager, paths: PathGuard) -> None:
    await manager.create_branch("acme", "one")
    await manager.save_file("acme", "one", "draft.md", b"draft")

    result = await manager.create_branch("acme", "two", source="one")

    assert result == ["one", "two"]
    assert (paths.branch_dir("acme", "two") / "draft.md").read_bytes() == b"draft"
    assert not (paths.default_root("acme") / "draft.md").exists()


async def test_public_source_means_default(branches: BranchManager) -> None:
    assert await branches.create_branch("acme", "feature-one", source="public") == ["feature-one"]


async def test_create_existing_branch(branches: BranchManager) -> None:
    await branches.create_branch("acme", "feature-one")
    with pytest.raises(BranchAlreadyExistsError):
        await branches.create_branch("acme", "feature-one")


@pytest.mark.parametrize("name", ["bad name", "../escape", "under_score", "", "public", "Public"])
async def test_create_branch_invalid_name(branches: BranchManager, paths: PathGuard, name: str) -> None:
    with pytest.raises(InvalidBranchNameError):
        await branches.create_branch("acme", name)
    assert not paths.default_root("acme").exists()


async def test_create_branch_invalid_source(branches: BranchManager) -> None:
    with pytest.raises(InvalidBranchNameError):
        await branches.create_branch("acme", "feature-one", source="--orphan")


async def test_create_branch_unknown_source(branches: BranchManager) -> None:
    with pytest.raises(BranchCreationError, match="Failed to create branch"):
        await branches.create_branch("acme", "feature-one", source="ghost")


async def test_reserved_default_name_is_not_a_branch(manager: WorkspaceManager, paths: PathGuard) -> None:
    await manager.save_file("acme", None, "index.html", b"<h1>live</h1>")

    with pytest.raises(InvalidBranchNameError):
        await manager.create_branch("acme", "public")

    assert not (paths.branches_root("acme") / "public").exists()
    assert await manager.list_branches("acme") == []
    content, _ = await manager.read_file("acme", "public", "index.html")
    assert content == b"<h1>live</h1>"
