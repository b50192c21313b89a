from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import LockConflictError, StorageError

logger = logging.getLogger(__name__)

# MySQL: 1205 lock wait timeout, 1213 deadlock.
_MYSQL_LOCK_ERRORS = {1205, 1213}
# SQLSTATE: serialization failure, deadlock detected, lock not available.
_LOCK_SQLSTATES = {"40001", "40P01", "55P03"}


def is_lock_conflict(exc: DBAPIError) -> bool:
    orig = getattr(exc, "orig", None)
    args = getattr(orig, "args", None) or ()
    if args and args[0] in _MYSQL_LOCK_ERRORS:
        return True
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in _LOCK_SQLSTATES:
        return True
    return "deadlock" in str(exc).lower()


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run the block in one transaction: commit on success, roll back on any exception
    (cancellation included). Driver errors surface as StorageError / LockConflictError.
    """
    try:
        async with session.begin():
            yield session
    except DBAPIError as exc:
        if is_lock_conflict(exc):
            logger.warning("transaction aborted on lock conflict: %s", exc)
            raise LockConflictError() from exc
        logger.exception("transaction failed")
        raise StorageError() from exc
    except SQLAlchemyError as exc:
        logger.exception("transaction failed")
        raise StorageError() from exc
