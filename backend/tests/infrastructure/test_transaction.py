import asyncio
from typing import cast

import pytest
from livestream_booking.domain.errors import CapacityExceededError, LockConflictError, StorageError
from livestream_booking.infrastructure.transaction import is_lock_conflict, transaction
from sqlalchemy.exc import InvalidRequestError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession


class DummyBegin:
    def __init__(self, session: "DummySession") -> None:
        self.session = session

    async def __aenter__(self) -> "DummyBegin":
        self.session.began = True
        return self

    async def __aexit__(self, exc_type: object, exc: BaseException | None, tb: object) -> bool:
        if exc_type is not None:
            self.session.rolled_back = True
            return False
        if self.session.commit_error is not None:
            raise self.session.commit_error
        self.session.committed = True
        return False


class DummySession:
    def __init__(self, commit_error: BaseException | None = None) -> None:
        self.commit_error = commit_error
        self.began = False
        self.committed = False
        self.rolled_back = False

    def begin(self) -> DummyBegin:
        return DummyBegin(self)


def _operational(code: int, message: str) -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception(code, message))


@pytest.mark.asyncio
async def test_commits_when_block_succeeds() -> None:
    session = DummySession()
    async with transaction(cast(AsyncSession, session)):
        pass
    assert session.committed and not session.rolled_back


@pytest.mark.asyncio
async def test_domain_errors_roll_back_and_pass_through() -> None:
    session = DummySession()
    with pytest.raises(CapacityExceededError):
        async with transaction(cast(AsyncSession, session)):
            raise CapacityExceededError("full")
    assert session.rolled_back and not session.committed


@pytest.mark.asyncio
async def test_cancellation_rolls_back() -> None:
    session = DummySession()
    with pytest.raises(asyncio.CancelledError):
        async with transaction(cast(AsyncSession, session)):
            raise asyncio.CancelledError()
    assert session.rolled_back


@pytest.mark.asyncio
@pytest.mark.parametrize("code,message", [(1213, "Deadlock found"), (1205, "Lock wait timeout exceeded")])
async def test_lock_errors_surface_as_lock_conflict(code: int, message: str) -> None:
    session = DummySession()
    with pytest.raises(LockConflictError) as excinfo:
        async with transaction(cast(AsyncSession, session)):
            raise _operational(code, message)
    assert session.rolled_back
    assert message not in excinfo.value.message


@pytest.mark.asyncio
async def test_commit_failure_is_opaque_storage_error() -> None:
    session = DummySession(commit_error=_operational(2013, "Lost connection to MySQL server during query"))
    with pytest.raises(StorageError) as excinfo:
        async with transaction(cast(AsyncSession, session)):
            pass
    assert not isinstance(excinfo.value, LockConflictError)
    assert "MySQL" not in excinfo.value.message


@pytest.mark.asyncio
async def test_non_driver_sqlalchemy_errors_become_storage_errors() -> None:
    session = DummySession()
    with pytest.raises(StorageError):
        async with transaction(cast(AsyncSession, session)):
            raise InvalidRequestError("bad state")


def test_is_lock_conflict_recognises_sqlstate() -> None:
    class PgError(Exception):
        pgcode = "40P01"

    assert is_lock_conflict(OperationalError("SELECT 1", {}, PgError("conflict")))
    assert not is_lock_conflict(_operational(1045, "Access denied"))
