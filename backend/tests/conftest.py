"""
Pytest fixtures for test database, client, and engine collaborators.

Each test gets its own SQLite file database (tables created from the models),
opened through the same engine builder as production so transactions use
BEGIN IMMEDIATE and concurrent admissions really serialize. Every request and
every helper opens a short-lived session of its own.
"""

import os

# Must be set before the application settings are first read
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("EXPIRY_SWEEPER_ENABLED", "false")

from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator, Awaitable, Callable

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from slot_reservation.main import app
from slot_reservation.db.base import Base
from slot_reservation.db.session import build_engine, build_session_factory, get_db
from slot_reservation.models import Doctor, Reservation, ReservationStatus, Slot
from slot_reservation.services.expiry_reclaimer import ExpiryReclaimer, get_reclaimer

GRACE_PERIOD = timedelta(seconds=120)


@pytest_asyncio.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'slots.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(db_engine)


@pytest_asyncio.fixture
async def reclaimer(session_factory) -> AsyncGenerator[ExpiryReclaimer, None]:
    """Reclaimer with the production grace period and no background sweeper."""
    reclaimer = ExpiryReclaimer(
        session_factory,
        grace_period=GRACE_PERIOD,
        sweep_interval=3600,
        sweep_enabled=False,
    )
    yield reclaimer
    await reclaimer.stop()


@pytest_asyncio.fixture
async def client(session_factory, reclaimer) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client wired to the per-test database and reclaimer."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_reclaimer] = lambda: reclaimer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def doctor(session_factory) -> Doctor:
    async with session_factory() as session:
        doctor = Doctor(name="Dr. Test Specialist", specialization="Concurrency Testing")
        session.add(doctor)
        await session.commit()
        await session.refresh(doctor)
        return doctor


@pytest_asyncio.fixture
async def make_slot(session_factory, doctor) -> Callable[..., Awaitable[Slot]]:
    async def _make_slot(capacity: int = 3) -> Slot:
        now = datetime.now(timezone.utc)
        async with session_factory() as session:
            slot = Slot(
                doctor_id=doctor.id,
                start_time=now + timedelta(hours=1),
                end_time=now + timedelta(hours=2),
                capacity=capacity,
            )
            session.add(slot)
            await session.commit()
            await session.refresh(slot)
            return slot

    return _make_slot


@pytest_asyncio.fixture
async def slot(make_slot) -> Slot:
    """A slot with 3 seats."""
    return await make_slot(capacity=3)


@pytest_asyncio.fixture
async def count_reservations(session_factory) -> Callable[..., Awaitable[int]]:
    """Count reservations on a slot with a fresh session, optionally by status."""

    async def _count(slot_id, *statuses: ReservationStatus) -> int:
        query = select(func.count()).select_from(Reservation).where(Reservation.slot_id == slot_id)
        if statuses:
            query = query.where(Reservation.status.in_([s.value for s in statuses]))
        async with session_factory() as session:
            return (await session.execute(query)).scalar_one()

    return _count
