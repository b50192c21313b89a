from fastapi import HTTPException, status

from ..domain.errors import (
    CapacityExceededError,
    DomainError,
    LockConflictError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    ValidationError,
)

RETRY_AFTER_SECONDS = "1"


def http_error(exc: DomainError) -> HTTPException:
    """Translate a domain error into the HTTP error the API exposes for it."""
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    if isinstance(exc, CapacityExceededError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message)
    if isinstance(exc, LockConflictError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=exc.message,
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        )
    if isinstance(exc, StorageError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="internal error")
