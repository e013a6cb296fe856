"""
Tests for slot browsing and booking endpoints, including concurrency.
"""

import asyncio
import uuid

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_list_slots(client: AsyncClient, slot, doctor):
    response = await client.get("/api/v1/slots")
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["id"] == str(slot.id)
    assert data[0]["doctor_name"] == doctor.name


@pytest.mark.asyncio
async def test_list_slots_filtered_by_doctor(client: AsyncClient, slot):
    response = await client.get("/api/v1/slots", params={"doctor_id": str(uuid.uuid4())})
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_get_slot_detail(client: AsyncClient, slot):
    await client.post(f"/api/v1/slots/{slot.id}/book", json={"patient_name": "Jane Roe"})

    response = await client.get(f"/api/v1/slots/{slot.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["slot"]["capacity"] == 3
    assert data["reservations_by_status"] == {"PENDING": 1, "CONFIRMED": 0, "FAILED": 0}
    assert data["active_reservations"] == 1
    assert data["available_seats"] == 2


@pytest.mark.asyncio
async def test_get_slot_not_found(client: AsyncClient):
    response = await client.get(f"/api/v1/slots/{uuid.uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_book_slot(client: AsyncClient, slot):
    response = await client.post(
        f"/api/v1/slots/{slot.id}/book",
        json={"patient_name": " Jane Roe ", "patient_contact": "jane@example.com"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["slot_id"] == str(slot.id)
    assert data["patient_name"] == "Jane Roe"
    assert data["patient_contact"] == "jane@example.com"
    assert data["status"] == "PENDING"
    assert "expires_at" in data


@pytest.mark.asyncio
async def test_book_slot_blank_contact_is_null(client: AsyncClient, slot):
    response = await client.post(
        f"/api/v1/slots/{slot.id}/book",
        json={"patient_name": "Jane Roe", "patient_contact": "   "},
    )
    assert response.status_code == 201
    assert response.json()["patient_contact"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"patient_name": ""}, {"patient_name": "   "}])
async def test_book_slot_requires_patient_name(client: AsyncClient, slot, body, count_reservations):
    """Missing or blank patient name returns 400 and books nothing."""
    response = await client.post(f"/api/v1/slots/{slot.id}/book", json=body)
    assert response.status_code == 400
    assert await count_reservations(slot.id) == 0


@pytest.mark.asyncio
async def test_book_unknown_slot(client: AsyncClient):
    response = await client.post(
        f"/api/v1/slots/{uuid.uuid4()}/book",
        json={"patient_name": "Jane Roe"},
    )
    assert response.status_code == 404
    assert response.json()["code"] == "SLOT_NOT_FOUND"


@pytest.mark.asyncio
async def test_book_full_slot(client: AsyncClient, make_slot):
    slot = await make_slot(capacity=1)
    first = await client.post(f"/api/v1/slots/{slot.id}/book", json={"patient_name": "First"})
    second = await client.post(f"/api/v1/slots/{slot.id}/book", json={"patient_name": "Second"})

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json() == {"detail": "No available seat", "code": "NO_AVAILABLE_SEAT"}


@pytest.mark.asyncio
async def test_concurrent_bookings(client: AsyncClient, slot, count_reservations):
    """10 patients race for 3 seats: 3 bookings, 7 conflicts, no overbooking."""
    responses = await asyncio.gather(*(
        client.post(
            f"/api/v1/slots/{slot.id}/book",
            json={"patient_name": f"Patient {i}", "patient_contact": f"patient{i}@example.com"},
        )
        for i in range(1, 11)
    ))
    codes = [r.status_code for r in responses]

    assert codes.count(201) == 3
    assert codes.count(409) == 7
    assert await count_reservations(slot.id) == 3

    detail = await client.get(f"/api/v1/slots/{slot.id}")
    assert detail.json()["available_seats"] == 0


@pytest.mark.asyncio
async def test_rejected_booking_leaves_counts_intact(client: AsyncClient, make_slot, reclaimer):
    """Failed holds free their seat; a rejection after the slot refills reports 409."""
    slot = await make_slot(capacity=1)
    first = await client.post(f"/api/v1/slots/{slot.id}/book", json={"patient_name": "First"})
    await reclaimer.expire(uuid.UUID(first.json()["id"]))

    second = await client.post(f"/api/v1/slots/{slot.id}/book", json={"patient_name": "Second"})
    third = await client.post(f"/api/v1/slots/{slot.id}/book", json={"patient_name": "Third"})
    assert second.status_code == 201
    assert third.status_code == 409
    assert third.json()["code"] == "NO_AVAILABLE_SEAT"

    data = (await client.get(f"/api/v1/slots/{slot.id}")).json()
    assert data["reservations_by_status"] == {"PENDING": 1, "CONFIRMED": 0, "FAILED": 1}
    assert data["active_reservations"] == 1
    assert data["available_seats"] == 0
