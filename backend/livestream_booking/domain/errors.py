from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base error carrying a caller-safe message and optional structured detail."""

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class ValidationError(DomainError):
    pass


class CapacityExceededError(DomainError):
    pass


class NotFoundError(DomainError):
    pass


class PermissionDeniedError(DomainError):
    pass


class StorageError(DomainError):
    """Transaction begin/commit/query failure. The message never carries driver detail."""

    def __init__(self, message: str = "storage unavailable, retry later") -> None:
        super().__init__(message)


class LockConflictError(StorageError):
    """Deadlock or lock-wait timeout while holding slot locks."""

    def __init__(self, message: str = "reservation is contended, retry later") -> None:
        super().__init__(message)
