"""
Tests for administrative endpoints: doctors and slots.
"""

import uuid
from datetime import datetime, timezone, timedelta

import pytest
from httpx import AsyncClient


def _window(hours_from_now: int = 1, length_hours: int = 1):
    start = datetime.now(timezone.utc) + timedelta(hours=hours_from_now)
    return start.isoformat(), (start + timedelta(hours=length_hours)).isoformat()


@pytest.mark.asyncio
async def test_create_doctor(client: AsyncClient):
    response = await client.post("/api/v1/admin/doctors", json={
        "name": "  Dr. Ada Lovelace  ",
        "specialization": "Cardiology",
    })
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Dr. Ada Lovelace"  # Trimmed
    assert data["specialization"] == "Cardiology"
    assert uuid.UUID(data["id"])


@pytest.mark.asyncio
async def test_create_doctor_blank_name(client: AsyncClient):
    """Blank name returns 400."""
    response = await client.post("/api/v1/admin/doctors", json={"name": "   "})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_doctor_missing_name(client: AsyncClient):
    response = await client.post("/api/v1/admin/doctors", json={"specialization": "ENT"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_doctors(client: AsyncClient, doctor):
    response = await client.get("/api/v1/admin/doctors")
    assert response.status_code == 200
    doctors = response.json()["doctors"]
    assert [d["id"] for d in doctors] == [str(doctor.id)]


@pytest.mark.asyncio
async def test_create_slot(client: AsyncClient, doctor):
    start, end = _window()
    response = await client.post(
        f"/api/v1/admin/doctors/{doctor.id}/slots",
        json={"start_time": start, "end_time": end, "capacity": 3},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["doctor_id"] == str(doctor.id)
    assert data["capacity"] == 3


@pytest.mark.asyncio
async def test_create_slot_default_capacity(client: AsyncClient, doctor):
    start, end = _window()
    response = await client.post(
        f"/api/v1/admin/doctors/{doctor.id}/slots",
        json={"start_time": start, "end_time": end},
    )
    assert response.status_code == 201
    assert response.json()["capacity"] == 1


@pytest.mark.asyncio
async def test_create_slot_end_before_start(client: AsyncClient, doctor):
    """start_time must be before end_time."""
    start, end = _window()
    response = await client.post(
        f"/api/v1/admin/doctors/{doctor.id}/slots",
        json={"start_time": end, "end_time": start, "capacity": 1},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("capacity", [0, -2])
async def test_create_slot_invalid_capacity(client: AsyncClient, doctor, capacity):
    start, end = _window()
    response = await client.post(
        f"/api/v1/admin/doctors/{doctor.id}/slots",
        json={"start_time": start, "end_time": end, "capacity": capacity},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_slot_unknown_doctor(client: AsyncClient):
    start, end = _window()
    response = await client.post(
        f"/api/v1/admin/doctors/{uuid.uuid4()}/slots",
        json={"start_time": start, "end_time": end, "capacity": 1},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_slot_naive_time_is_utc(client: AsyncClient, doctor):
    """A timestamp without offset is read as UTC and compared with an aware one."""
    response = await client.post(
        f"/api/v1/admin/doctors/{doctor.id}/slots",
        json={"start_time": "2030-01-01T10:00:00", "end_time": "2030-01-01T11:00:00Z", "capacity": 2},
    )
    assert response.status_code == 201
    start = datetime.fromisoformat(response.json()["start_time"].replace("Z", "+00:00"))
    assert start.replace(tzinfo=timezone.utc) == datetime(2030, 1, 1, 10, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_create_slot_naive_end_before_aware_start(client: AsyncClient, doctor):
    response = await client.post(
        f"/api/v1/admin/doctors/{doctor.id}/slots",
        json={"start_time": "2030-01-01T11:00:00+00:00", "end_time": "2030-01-01T10:00:00"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_slot_large_capacity(client: AsyncClient, doctor):
    start, end = _window()
    response = await client.post(
        f"/api/v1/admin/doctors/{doctor.id}/slots",
        json={"start_time": start, "end_time": end, "capacity": 50000},
    )
    assert response.status_code == 201
    assert response.json()["capacity"] == 50000
