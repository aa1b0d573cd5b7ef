"""Tenant path resolution.

Maps a (tenant, branch selector, relative path) triple onto the real host
filesystem and refuses anything that could land outside the tenant's tree.

Layout
------

Real paths on the host:

- ``{data_root}/{prefix}/apps/{tenant}/public/``             -> default branch
- ``{data_root}/{prefix}/apps/{tenant}/branches/{branch}/``  -> branch worktree
- ``{data_root}/{prefix}/locks/{digest}.lock``               -> commit lock per tree

The SSH sandbox mounts ``apps/`` so a tenant's tree appears as the home
directory of its sandbox account; ``home_relative`` converts a host path
into the path relative to that home.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from codeyard.workspace_runtime.errors import BranchNotFoundError, InvalidBranchNameError, InvalidPathError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_BRANCH = "public"
"""Directory name of the default working copy; also accepted as a selector."""

APPS_DIR = "apps"
BRANCHES_DIR = "branches"
LOCKS_DIR = "locks"

PATH_PATTERN = re.compile(r"^[\w\s\-/.+]+$")
"""Letters, digits, whitespace, hyphen, underscore, slash, dot and plus."""

BRANCH_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9-]*$")
"""Alphanumerics and hyphens; never a leading hyphen, which git would read as an option."""
TENANT_PATTERN = re.compile(r"^[a-z_][a-z0-9_-]{0,31}$")
"""Tenant ids double as sandbox account names, so they follow the useradd rules."""

HISTORY_DIR = ".git"
"""Repository metadata (or the worktree pointer file); never addressable by a caller."""


def is_default_branch(branch: str | None) -> bool:
    return not branch or branch == DEFAULT_BRANCH


def validate_branch_name(name: str) -> str:
    """Return ``name`` unchanged or raise ``InvalidBranchNameError``."""
    if not BRANCH_NAME_PATTERN.match(name) or name.lower() == DEFAULT_BRANCH:
        msg = f"Invalid branch name: {name!r}"
        raise InvalidBranchNameError(msg)
    return name


def validate_relative_path(relative_path: str) -> str:
    """Check a caller-supplied path and strip leading slashes.

    Any ``..`` occurrence is refused outright, not only whole segments, and so
    is any ``.git`` segment in any letter case.
    """
    if not relative_path or not PATH_PATTERN.match(relative_path) or ".." in relative_path:
        msg = f"Forbidden path: {relative_path!r}"
        raise InvalidPathError(msg)
    stripped = relative_path.lstrip("/")
    if not stripped or any(part.lower() == HISTORY_DIR for part in stripped.split("/")):
        msg = f"Forbidden path: {relative_path!r}"
        raise InvalidPathError(msg)
    return stripped


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------


class PathGuard:
    """Resolves tenant-relative virtual paths into sandboxed host paths.

    Nothing is created here: branch worktrees must already exist.  Resolution
    reads the filesystem to follow symlinks, since the tenant can create them
    over SSH.
    """

    def __init__(self, data_root: str | Path, prefix: str | None = None) -> None:
        base = Path(os.path.abspath(data_root))
        if prefix:
            base = base / prefix
        self._apps_base = base / APPS_DIR
        self._locks_base = base / LOCKS_DIR

    @property
    def apps_base(self) -> Path:
        return self._apps_base

    def tenant_root(self, tenant: str) -> Path:
        """Real host path for a tenant: ``{base}/apps/{tenant}/``."""
        if not TENANT_PATTERN.match(tenant or ""):
            msg = f"Invalid tenant: {tenant!r}"
            raise InvalidPathError(msg)
        return self._apps_base / tenant

    def default_root(self, tenant: str) -> Path:
        return self.tenant_root(tenant) / DEFAULT_BRANCH

    def branches_root(self, tenant: str) -> Path:
        return self.tenant_root(tenant) / BRANCHES_DIR

    def branch_dir(self, tenant: str, branch: str) -> Path:
        """Where a branch worktree lives (or would live); no existence check."""
        return self.branches_root(tenant) / validate_branch_name(branch)

    def root(self, tenant: str, branch: str | None = None) -> Path:
        """Root of the tree selected by ``branch``.

        Raises ``BranchNotFoundError`` when a non-default branch has no worktree.
        """
        if is_default_branch(branch):
            return self.default_root(tenant)
        path = self.branch_dir(tenant, branch)
        if not path.is_dir():
            msg = f"Branch '{branch}' not found for '{tenant}'"
            raise BranchNotFoundError(msg)
        return path

    def resolve(self, tenant: str, branch: str | None, relative_path: str) -> Path:
        """Absolute host path of ``relative_path`` inside the selected tree."""
        relative = validate_relative_path(relative_path)
        root = self.root(tenant, branch)
        resolved = Path(os.path.normpath(root / relative))
        # Symlinks are followed: the real target must stay inside the real root.
        real_root = root.resolve()
        real_target = resolved.resolve()
        if (
            real_target == real_root
            or not real_target.is_relative_to(real_root)
            or any(part.lower() == HISTORY_DIR for part in real_target.relative_to(real_root).parts)
        ):
            msg = f"Forbidden path: {relative_path!r}"
            raise InvalidPathError(msg)
        return resolved

    def home_relative(self, tenant: str, path: Path) -> str:
        """Path relative to the tenant root, i.e. to the sandbox home directory."""
        return Path(os.path.normpath(path)).relative_to(self.tenant_root(tenant)).as_posix()

    @property
    def locks_base(self) -> Path:
        """Directory for commit lock files, outside every tenant tree."""
        return self._locks_base
