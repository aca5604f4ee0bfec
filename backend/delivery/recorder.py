"""
Download counters.

Each successful access bumps ``download_access(order_id, product_id)`` with a
single INSERT ... ON CONFLICT DO UPDATE, so concurrent hits on the same pair
never lose an increment. Recording is best-effort: failures are logged and
dropped.
"""

import asyncio
import logging
from datetime import datetime, timezone

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models import DownloadAccess

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def build_upsert(dialect_name: str, order_id: int, product_id: int, now: datetime):
    """INSERT a fresh counter row or increment the existing one."""
    try:
        insert = _INSERTS[dialect_name]
    except KeyError:
        raise NotImplementedError(f"download counters need ON CONFLICT support, got {dialect_name}")
    table = DownloadAccess.__table__
    stmt = insert(table).values(
        order_id=order_id, product_id=product_id, downloads=1, last_download_at=now
    )
    return stmt.on_conflict_do_update(
        index_elements=[table.c.order_id, table.c.product_id],
        set_={"downloads": table.c.downloads + 1, "last_download_at": now},
    )


class AccessRecorder:
    """Records download events in their own DB session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._pending: set[asyncio.Task] = set()

    async def record(self, order_id: int, product_id: int) -> None:
        """Increment the counter for (order_id, product_id); never raises."""
        try:
            async with self._session_factory() as session:
                stmt = build_upsert(
                    session.get_bind().dialect.name, order_id, product_id, datetime.now(timezone.utc)
                )
                await session.execute(stmt)
                await session.commit()
        except Exception as e:
            logger.warning(
                "download_access update skipped for order=%s product=%s: %s", order_id, product_id, e
            )

    def schedule(self, order_id: int, product_id: int) -> asyncio.Task:
        """Fire-and-forget ``record``; the task is kept alive until it finishes."""
        task = asyncio.create_task(self.record(order_id, product_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled recording to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
