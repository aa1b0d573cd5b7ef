"""Domain exceptions for the workspace runtime.

Managers raise these; routers translate them into HTTP responses.  Each
class subclasses the builtin that names its category so callers can catch
broadly (``ValueError`` for rejected input, ``LookupError`` for absence,
``RuntimeError`` for an unavailable or failing backend).
"""

from __future__ import annotations


# -- Validation ----------------------------------------------------------------


class InvalidPathError(ValueError):
    """Raised when a tenant, path or branch selector cannot be resolved safely."""


class InvalidBranchNameError(ValueError):
    """Raised when a branch name is not alphanumeric-with-hyphens."""


class InvalidAccountNameError(ValueError):
    """Raised when a tenant identifier is not a valid sandbox account name."""


class InvalidPublicKeyError(ValueError):
    """Raised when uploaded key text is not a single-line OpenSSH public key."""


class InvalidPasswordError(ValueError):
    """Raised when a password contains characters ``chpasswd`` cannot take."""


# -- Branches ------------------------------------------------------------------


class BranchAlreadyExistsError(ValueError):
    """Raised when the target worktree directory already exists."""


class BranchNotFoundError(LookupError):
    """Raised when a branch selector names a worktree that does not exist."""


class BranchCreationError(RuntimeError):
    """Raised when git refuses to create the worktree; carries git's message."""


# -- History -------------------------------------------------------------------


class StoreUnavailableError(RuntimeError):
    """Raised when a directory cannot be opened as a history store."""


# -- Sandbox -------------------------------------------------------------------


class BoundaryUnavailableError(RuntimeError):
    """Raised when the sandbox host cannot be reached or refuses the admin key."""


class AccountNotFoundError(LookupError):
    """Raised when a sandbox account is required but does not exist."""


class RemoteCommandError(RuntimeError):
    """Raised when a remote command exits with a non-zero status."""

    def __init__(self, exit_status: int, stderr: str) -> None:
        self.exit_status = exit_status
        self.stderr = stderr
        super().__init__(f"Command failed with code {exit_status}: {stderr}")


# -- Notifications -------------------------------------------------------------


class ListenerError(RuntimeError):
    """A change listener raised.  Logged and reported, never propagated."""

    def __init__(self, listener_name: str, cause: BaseException) -> None:
        self.listener_name = listener_name
        self.cause = cause
        super().__init__(f"Listener '{listener_name}' failed: {cause}")
