"""Translation of domain exceptions into HTTP errors.

Handlers catch ``DOMAIN_ERRORS`` and re-raise ``to_http(exc)``.  The detail
is the exception message: validation and git/SSH diagnostics are meant for
the caller, and no exception in this package carries credentials.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from codeyard.workspace_runtime.errors import (
    BoundaryUnavailableError,
    BranchAlreadyExistsError,
    BranchCreationError,
    RemoteCommandError,
    StoreUnavailableError,
)

DOMAIN_ERRORS = (
    ValueError,
    LookupError,
    FileNotFoundError,
    IsADirectoryError,
    NotADirectoryError,
    StoreUnavailableError,
    BoundaryUnavailableError,
    BranchCreationError,
    RemoteCommandError,
)


def to_http(exc: Exception) -> HTTPException:
    if isinstance(exc, BranchAlreadyExistsError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, ValueError | IsADirectoryError | NotADirectoryError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, LookupError | FileNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, StoreUnavailableError | BoundaryUnavailableError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(code, detail=str(exc))
