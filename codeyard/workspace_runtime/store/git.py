"""Git history store.

Implements the HistoryStore protocol with GitPython.  Every call opens a
short-lived ``Repo`` handle scoped to that call and closes it afterwards; no
handle is shared between requests.  Git plumbing commands are used rather
than GitPython's object model so that linked worktrees (branches) behave
exactly like the main repository.

Uses ``anyio.to_thread.run_sync`` so git never blocks the event loop.

``commit_pending`` holds a file lock per tree for the whole
stage -> status -> commit sequence, so two concurrent saves to the same
tree cannot interleave (also across worker processes).
"""

from __future__ import annotations

import hashlib
import re
from functools import partial
from pathlib import Path

from anyio import to_thread
from filelock import FileLock
from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError
from loguru import logger

from codeyard.workspace_runtime.errors import StoreUnavailableError
from codeyard.workspace_runtime.models.enums import ChangeKind
from codeyard.workspace_runtime.models.history import CommitFile, CommitRecord, FileContentDiff

INITIAL_COMMIT_MESSAGE = "Initialize workspace"

_COMMIT_HASH = re.compile(r"^[0-9a-fA-F]{4,64}$")
_FIELD_SEP = "\x1f"
_LOG_FORMAT = _FIELD_SEP.join(("%H", "%aI", "%s", "%an", "%ae"))


class GitHistoryStore:
    """Git implementation of the HistoryStore protocol.

    Commits are authored and committed as the configured identity; the host's
    git configuration is not consulted for it.
    """

    def __init__(
        self,
        *,
        author_name: str,
        author_email: str,
        lock_root: str | Path,
        lock_timeout: float = 60.0,
    ) -> None:
        self._identity = {
            "GIT_AUTHOR_NAME": author_name,
            "GIT_AUTHOR_EMAIL": author_email,
            "GIT_COMMITTER_NAME": author_name,
            "GIT_COMMITTER_EMAIL": author_email,
        }
        self._lock_root = Path(lock_root)
        self._lock_timeout = lock_timeout

    # -- Write -----------------------------------------------------------------

    async def ensure_initialized(self, path: Path) -> None:
        await to_thread.run_sync(partial(_ensure_initialized, Path(path)))

    async def create_initial_commit(self, path: Path) -> str:
        return await to_thread.run_sync(partial(self._create_initial_commit, Path(path)))

    async def commit_pending(self, path: Path, message: str) -> str | None:
        return await to_thread.run_sync(partial(self._commit_pending, Path(path), message))

    # -- Read ------------------------------------------------------------------

    async def has_commits(self, path: Path) -> bool:
        return await to_thread.run_sync(partial(_has_commits_at, Path(path)))

    async def list_commits(self, path: Path, offset: int = 0, limit: int = 10) -> list[CommitRecord]:
        return await to_thread.run_sync(partial(_list_commits, Path(path), offset, limit))

    async def commit_count(self, path: Path) -> int:
        return await to_thread.run_sync(partial(_commit_count, Path(path)))

    async def commit_files(self, path: Path, commit_hash: str) -> list[CommitFile]:
        return await to_thread.run_sync(partial(_commit_files, Path(path), commit_hash))

    async def file_before_after(self, path: Path, commit_hash: str, file_path: str) -> FileContentDiff:
        if not _COMMIT_HASH.match(commit_hash):
            return FileContentDiff.from_sides("", "")
        return await to_thread.run_sync(
            partial(_compare_revisions, Path(path), f"{commit_hash}^", commit_hash, file_path)
        )

    async def file_at_head_vs_commit(self, path: Path, commit_hash: str, file_path: str) -> FileContentDiff:
        if not _COMMIT_HASH.match(commit_hash):
            return FileContentDiff.from_sides("", "")
        return await to_thread.run_sync(partial(_compare_revisions, Path(path), commit_hash, "HEAD", file_path))

    # -- Sync implementations (run in thread pool) -----------------------------

    def _lock_for(self, path: Path) -> FileLock:
        digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:16]  # noqa: S324
        self._lock_root.mkdir(parents=True, exist_ok=True)
        return FileLock(self._lock_root / f"{digest}.lock", timeout=self._lock_timeout)

    def _commit_pending(self, path: Path, message: str) -> str | None:
        with self._lock_for(path):
            _ensure_initialized(path)
            with _open_repo(path) as repo:
                repo.git.add("-A")
                status = repo.git.status("--porcelain")
                if not status.strip():
                    logger.debug("No changes to commit in {}", path)
                    return None

                with repo.git.custom_environment(**self._identity):
                    repo.git.commit("-m", message)
                commit_hash = repo.git.rev_parse("HEAD")

        logger.info("Committed {} in {}: {}", commit_hash[:12], path, message)
        return commit_hash

    def _create_initial_commit(self, path: Path) -> str:
        with self._lock_for(path), _open_repo(path) as repo:
            with repo.git.custom_environment(**self._identity):
                repo.git.commit("--allow-empty", "-m", INITIAL_COMMIT_MESSAGE)
            commit_hash = repo.git.rev_parse("HEAD")
        logger.info("Created initial commit {} in {}", commit_hash[:12], path)
        return commit_hash


# -- Module-level helpers (run in thread pool) ----------------------------------


def _ensure_initialized(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)
    try:
        Repo(path).close()
    except InvalidGitRepositoryError:
        Repo.init(path).close()
        logger.info("Initialized new git repository in {}", path)
    else:
        logger.debug("Git repository already exists in {}", path)


def _open_repo(path: Path) -> Repo:
    """Open an existing repository.  Raises ``StoreUnavailableError`` otherwise."""
    try:
        return Repo(path)
    except (InvalidGitRepositoryError, NoSuchPathError) as exc:
        msg = f"Not a history store: {path}"
        raise StoreUnavailableError(msg) from exc


def _has_commits(repo: Repo) -> bool:
    try:
        repo.git.rev_parse("--verify", "--quiet", "HEAD")
    except GitCommandError:
        return False
    return True


def _has_commits_at(path: Path) -> bool:
    with _open_repo(path) as repo:
        return _has_commits(repo)


def _list_commits(path: Path, offset: int, limit: int) -> list[CommitRecord]:
    with _open_repo(path) as repo:
        if not _has_commits(repo) or limit <= 0:
            return []
        output = repo.git.log(f"--format={_LOG_FORMAT}", f"--max-count={limit}", f"--skip={max(offset, 0)}")

    commits = []
    for line in output.splitlines():
        if not line:
            continue
        commit_hash, date, message, author_name, author_email = line.split(_FIELD_SEP, 4)
        commits.append(
            CommitRecord(
                hash=commit_hash,
                date=date,
                message=message,
                author_name=author_name,
                author_email=author_email,
            )
        )
    return commits


def _commit_count(path: Path) -> int:
    with _open_repo(path) as repo:
        if not _has_commits(repo):
            return 0
        return int(repo.git.rev_list("--count", "HEAD").strip())


def _commit_files(path: Path, commit_hash: str) -> list[CommitFile]:
    if not _COMMIT_HASH.match(commit_hash):
        return []
    with _open_repo(path) as repo:
        try:
            output = repo.git.diff_tree("--root", "--no-commit-id", "--name-status", "-r", "-z", commit_hash)
        except GitCommandError:
            logger.debug("Commit {} not found in {}", commit_hash, path)
            return []
    return parse_name_status(output)


def parse_name_status(output: str) -> list[CommitFile]:
    """Parse NUL-separated ``--name-status -z`` output.

    Renames and copies carry two paths (source, destination); every other
    status carries one.
    """
    tokens = output.split("\0")
    files = []
    i = 0
    while i < len(tokens) and tokens[i]:
        status = tokens[i]
        kind = ChangeKind.from_status(status)
        if kind in (ChangeKind.RENAMED, ChangeKind.COPIED):
            files.append(CommitFile(path=tokens[i + 2], type=kind, old_path=tokens[i + 1]))
            i += 3
        else:
            files.append(CommitFile(path=tokens[i + 1], type=kind))
            i += 2
    return files


def _show(repo: Repo, revision: str, file_path: str) -> str:
    """File content at a revision, or the empty string if it does not exist there.

    Bytes that are not UTF-8 (images, legacy encodings) become U+FFFD so the
    result is always serialisable.
    """
    try:
        content = repo.git.show(f"{revision}:{file_path}", stdout_as_string=False, strip_newline_in_stdout=False)
    except GitCommandError:
        return ""
    return content.decode("utf-8", errors="replace")


def _compare_revisions(path: Path, before_rev: str, after_rev: str, file_path: str) -> FileContentDiff:
    with _open_repo(path) as repo:
        before = _show(repo, before_rev, file_path)
        after = _show(repo, after_rev, file_path)
    return FileContentDiff.from_sides(before, after)
