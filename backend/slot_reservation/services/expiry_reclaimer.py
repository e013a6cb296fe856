"""
Expiry reclaimer: returns capacity held by abandoned PENDING reservations.

Every reservation persists its deadline (expires_at). Two paths demote an
overdue PENDING reservation to FAILED:

  - a per-reservation asyncio timer armed right after admission commits
  - a periodic sweep over `status = 'PENDING' AND expires_at <= now`, which also
    runs once at startup, so deadlines survive a process restart

Both paths lock the reservation row before writing and skip anything that is
no longer PENDING, so a deadline firing after a confirmation is a no-op.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from slot_reservation.core.config import get_settings
from slot_reservation.core.logging import get_logger
from slot_reservation.core.metrics import record_expired
from slot_reservation.db.session import AsyncSessionLocal
from slot_reservation.models.reservation import Reservation
from slot_reservation.services.reservation_state import FAILED, PENDING, transition, utcnow
from slot_reservation.services.slot_ledger import get_reservation_for_update

logger = get_logger(__name__)

SWEEP_BATCH_SIZE = 100


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ExpiryReclaimer:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        grace_period: timedelta,
        sweep_interval: float,
        sweep_enabled: bool = True,
        batch_size: int = SWEEP_BATCH_SIZE,
    ):
        self._session_factory = session_factory
        self.grace_period = grace_period
        self.sweep_interval = sweep_interval
        self.sweep_enabled = sweep_enabled
        self.batch_size = batch_size
        self._timers: dict[UUID, asyncio.Task] = {}
        self._sweeper: Optional[asyncio.Task] = None

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def schedule(self, reservation_id: UUID, delay: Optional[float] = None) -> asyncio.Task:
        """Arm a timer that expires the reservation after `delay` seconds (default: grace period)."""
        if delay is None:
            delay = self.grace_period.total_seconds()

        existing = self._timers.pop(reservation_id, None)
        if existing is not None:
            existing.cancel()

        task = asyncio.create_task(self._expire_after(reservation_id, max(delay, 0.0)))
        self._timers[reservation_id] = task
        task.add_done_callback(lambda t, rid=reservation_id: self._forget(rid, t))
        return task

    def _forget(self, reservation_id: UUID, task: asyncio.Task) -> None:
        if self._timers.get(reservation_id) is task:
            del self._timers[reservation_id]

    async def _expire_after(self, reservation_id: UUID, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            await self.expire(reservation_id)
        except Exception:
            # The periodic sweep picks the reservation up again
            logger.exception("reservation_expiry_failed", reservation_id=str(reservation_id))

    async def expire(self, reservation_id: UUID) -> bool:
        """Demote one reservation to FAILED if it is still PENDING. Returns True if it was."""
        async with self._session_factory() as db:
            try:
                reservation = await get_reservation_for_update(db, reservation_id)
                if reservation is None or reservation.status != PENDING:
                    await db.rollback()
                    return False

                transition(reservation, FAILED)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        record_expired("timer")
        logger.info("reservation_expired", reservation_id=str(reservation_id), slot_id=str(reservation.slot_id))
        return True

    async def sweep(self, now: Optional[datetime] = None) -> int:
        """Fail every PENDING reservation whose deadline is at or before `now`."""
        now = now or utcnow()
        reclaimed = 0

        while True:
            async with self._session_factory() as db:
                try:
                    result = await db.execute(
                        select(Reservation)
                        .where(
                            Reservation.status == PENDING.value,
                            Reservation.expires_at <= now,
                        )
                        .order_by(Reservation.expires_at)
                        .limit(self.batch_size)
                        .with_for_update(skip_locked=True)
                    )
                    batch = list(result.scalars().all())
                    for reservation in batch:
                        transition(reservation, FAILED, now)
                    await db.commit()
                except Exception:
                    await db.rollback()
                    raise

            reclaimed += len(batch)
            if len(batch) < self.batch_size:
                break

        record_expired("sweep", reclaimed)
        logger.info("expiry_sweep_completed", reclaimed=reclaimed)
        return reclaimed

    async def rearm_pending(self, now: Optional[datetime] = None) -> int:
        """Re-create timers for PENDING reservations whose deadline is still ahead."""
        now = now or utcnow()
        async with self._session_factory() as db:
            result = await db.execute(
                select(Reservation.id, Reservation.expires_at).where(
                    Reservation.status == PENDING.value,
                    Reservation.expires_at > now,
                )
            )
            rows = result.all()

        for reservation_id, expires_at in rows:
            self.schedule(reservation_id, (_as_utc(expires_at) - now).total_seconds())
        return len(rows)

    async def start(self) -> None:
        """Recover deadlines missed while the process was down, then start the sweeper."""
        reclaimed = await self.sweep()
        rearmed = await self.rearm_pending()
        logger.info("expiry_reclaimer_started", reclaimed=reclaimed, rearmed=rearmed)

        if self.sweep_enabled and self._sweeper is None:
            self._sweeper = asyncio.create_task(self._run_sweeper())

    async def _run_sweeper(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                await self.sweep()
            except Exception:
                logger.exception("expiry_sweep_failed")

    async def stop(self) -> None:
        tasks = list(self._timers.values())
        if self._sweeper is not None:
            tasks.append(self._sweeper)
            self._sweeper = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._timers.clear()
        logger.info("expiry_reclaimer_stopped", cancelled=len(tasks))


_reclaimer: Optional[ExpiryReclaimer] = None


def get_reclaimer() -> ExpiryReclaimer:
    """Process-wide reclaimer singleton (FastAPI dependency)."""
    global _reclaimer
    if _reclaimer is None:
        settings = get_settings()
        _reclaimer = ExpiryReclaimer(
            AsyncSessionLocal,
            grace_period=timedelta(seconds=settings.RESERVATION_GRACE_SECONDS),
            sweep_interval=settings.EXPIRY_SWEEP_INTERVAL_SECONDS,
            sweep_enabled=settings.EXPIRY_SWEEPER_ENABLED,
        )
    return _reclaimer
