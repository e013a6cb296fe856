"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overbooking
  locust -f locustfile.py --tags browse       # Test slot listing cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import uuid
from datetime import datetime, timezone, timedelta

import httpx
from locust import HttpUser, task, between, tag, events

CONCURRENCY_CAPACITY = 10

# Shared state
SLOT_IDS = []
CONCURRENCY_SLOT_ID = None


def _window(hours_from_now: int):
    start = datetime.now(timezone.utc) + timedelta(hours=hours_from_now)
    return start.isoformat(), (start + timedelta(minutes=30)).isoformat()


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Create one doctor and one contended slot before users spawn."""
    global CONCURRENCY_SLOT_ID
    if not environment.host:
        return

    with httpx.Client(base_url=environment.host) as http:
        doctor = http.post("/api/v1/admin/doctors", json={
            "name": "Dr. Load Test",
            "specialization": "Concurrency Testing",
        })
        if doctor.status_code != 201:
            print(f"Setup failed: {doctor.status_code} {doctor.text}")
            return

        start, end = _window(1)
        slot = http.post(f"/api/v1/admin/doctors/{doctor.json()['id']}/slots", json={
            "start_time": start,
            "end_time": end,
            "capacity": CONCURRENCY_CAPACITY,
        })
        if slot.status_code == 201:
            CONCURRENCY_SLOT_ID = slot.json()["id"]
            SLOT_IDS.append(CONCURRENCY_SLOT_ID)
            print(f"\n✓ Created slot {CONCURRENCY_SLOT_ID} with {CONCURRENCY_CAPACITY} seats\n")


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many patients, one slot

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      GET /api/v1/slots/{id} -> active_reservations <= capacity
      SELECT COUNT(*) FROM reservations
        WHERE slot_id = X AND status IN ('PENDING', 'CONFIRMED');
    """
    wait_time = between(0, 0.1)

    @tag("concurrency")
    @task
    def book_and_confirm(self):
        if not CONCURRENCY_SLOT_ID:
            return

        with self.client.post(
            f"/api/v1/slots/{CONCURRENCY_SLOT_ID}/book",
            json={"patient_name": f"Patient {random.randint(1, 100000)}"},
            name="/api/v1/slots/{id}/book",
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                resp.success()
                reservation_id = resp.json()["id"]
            elif resp.status_code == 409:
                resp.success()  # Expected: slot full
                return
            else:
                resp.failure(f"Unexpected: {resp.status_code}")
                return

        with self.client.post(
            f"/api/v1/reservations/{reservation_id}/confirm",
            name="/api/v1/reservations/{id}/confirm",
            catch_response=True,
        ) as resp:
            if resp.status_code == 200 and resp.json()["outcome"] in ("CONFIRMED", "FAILED", "ALREADY_PROCESSED"):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class BrowsingUser(HttpUser):
    """
    TEST 2: Throughput - slot listing cache

    Run twice, with and without Redis:
      locust -f locustfile.py --tags browse -u 100 -r 20 --run-time 60s
    """
    wait_time = between(0.1, 0.5)

    @tag("browse")
    @task(10)
    def list_slots(self):
        resp = self.client.get("/api/v1/slots", name="/api/v1/slots [cached]")
        if resp.status_code == 200:
            for slot in resp.json():
                if slot["id"] not in SLOT_IDS:
                    SLOT_IDS.append(slot["id"])

    @tag("browse")
    @task(3)
    def slot_detail(self):
        if SLOT_IDS:
            self.client.get(f"/api/v1/slots/{random.choice(SLOT_IDS)}", name="/api/v1/slots/{id}")

    @tag("browse")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, *codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_slot(self):
        with self.client.post(
            f"/api/v1/slots/{uuid.uuid4()}/book",
            json={"patient_name": "Nobody"},
            name="/api/v1/slots/{unknown}/book",
            catch_response=True,
        ) as resp:
            self._expect(resp, 404)

    @tag("edge")
    @task
    def blank_patient_name(self):
        if not SLOT_IDS:
            return
        with self.client.post(
            f"/api/v1/slots/{random.choice(SLOT_IDS)}/book",
            json={"patient_name": "   "},
            name="/api/v1/slots/{id}/book [blank]",
            catch_response=True,
        ) as resp:
            self._expect(resp, 400)

    @tag("edge")
    @task
    def malformed_slot_id(self):
        with self.client.post(
            "/api/v1/slots/not-a-uuid/book",
            json={"patient_name": "Jane"},
            name="/api/v1/slots/{malformed}/book",
            catch_response=True,
        ) as resp:
            self._expect(resp, 400)

    @tag("edge")
    @task
    def confirm_unknown_reservation(self):
        with self.client.post(
            f"/api/v1/reservations/{uuid.uuid4()}/confirm",
            name="/api/v1/reservations/{unknown}/confirm",
            catch_response=True,
        ) as resp:
            self._expect(resp, 404)

    @tag("edge")
    @task
    def malformed_json(self):
        if not SLOT_IDS:
            return
        with self.client.post(
            f"/api/v1/slots/{random.choice(SLOT_IDS)}/book",
            data="not json at all",
            name="/api/v1/slots/{id}/book [garbage]",
            catch_response=True,
        ) as resp:
            self._expect(resp, 400)
