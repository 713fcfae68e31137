"""
Atomic unit of work over an AsyncSession.

Every ledger mutation touches at least two rows: the transaction record and
one balance-bearing record (account, credit card or investment), sometimes
more when an update moves a transaction between accounts. They must commit
together or not at all.

    runner = SessionUnitRunner(session)
    txn = await runner.run(lambda unit: do_work(unit))

run() awaits the callback with the session as its unit, commits when it
returns and rolls back when it raises. Nothing written through the unit
survives a failure in a later step.

Timeout:
  When a timeout is configured, the callback is cancelled once it expires,
  the unit is rolled back and UnitOfWorkTimeoutError is raised.
"""

import asyncio
from typing import Awaitable, Callable, Protocol, TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import UnitOfWorkTimeoutError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

UnitCallback = Callable[[AsyncSession], Awaitable[T]]


class AtomicUnitRunner(Protocol):
    async def run(self, fn: UnitCallback[T]) -> T: ...


class SessionUnitRunner:
    """
    Runs a callback as one database transaction on the given session.

    The session is expected to be request-scoped (see app.database.get_db)
    with nothing uncommitted that the caller wants to keep separate.
    """

    def __init__(self, session: AsyncSession, timeout_seconds: float | None = None):
        self.session = session
        self.timeout_seconds = timeout_seconds

    async def run(self, fn: UnitCallback[T]) -> T:
        try:
            if self.timeout_seconds is None:
                result = await fn(self.session)
            else:
                result = await asyncio.wait_for(fn(self.session), self.timeout_seconds)
            await self.session.commit()
        except asyncio.TimeoutError:
            await self.session.rollback()
            logger.warning("unit_of_work_timeout", timeout_seconds=self.timeout_seconds)
            raise UnitOfWorkTimeoutError(self.timeout_seconds)
        except Exception:
            await self.session.rollback()
            raise
        return result
