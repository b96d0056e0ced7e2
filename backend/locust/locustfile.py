"""
Locust Load Test Suite

Needs a seeded database: one active venue (LOAD_VENUE_ID, default 1) and
users 1..LOAD_USER_COUNT. Tokens are minted locally with the app's
SECRET_KEY, so run from backend/ with the same environment as the API.

Run scenarios:
  locust -f locust/locustfile.py --tags contention  # Many users, one slot
  locust -f locust/locustfile.py --tags throughput  # Slot grid cache
  locust -f locust/locustfile.py --tags edge        # Bad input
  locust -f locust/locustfile.py                    # All tests
"""

import os
import random
from datetime import date, timedelta

from locust import HttpUser, task, between, tag, events

from arena.core.security import create_access_token

VENUE_ID = int(os.getenv("LOAD_VENUE_ID", "1"))
USER_COUNT = int(os.getenv("LOAD_USER_COUNT", "200"))
CONTENDED_DATE = (date.today() + timedelta(days=1)).isoformat()
CONTENDED_SLOT = "18:00"


def auth_headers() -> dict:
    user_id = random.randint(1, USER_COUNT)
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user_id)})}"}


def booking_payload(booking_date: str, slot_start: str) -> dict:
    return {
        "venue_id": VENUE_ID,
        "date": booking_date,
        "slot_start": slot_start,
        "duration": 1,
        "customer_details": {
            "name": "Load Test",
            "phone_number": f"+92300{random.randint(1000000, 9999999)}",
        },
    }


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"Venue {VENUE_ID}, contended slot {CONTENDED_DATE} {CONTENDED_SLOT}")
    print("=" * 60)


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    print("\nVerify exclusivity with:")
    print(
        "  SELECT venue_id, booking_date, slot_hour, COUNT(*) FROM bookings "
        "WHERE status != 'cancelled' GROUP BY 1, 2, 3 HAVING COUNT(*) > 1;"
    )
    print("Expected: no rows\n")


class ContentionUser(HttpUser):
    """
    TEST 1: Contention - every user fights for one prime-time slot

    Run: locust -f locust/locustfile.py --tags contention -u 100 -r 50 --run-time 30s

    Exactly one 201 is expected; everything else must be 409.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = auth_headers()

    @tag("contention")
    @task
    def book_prime_time(self):
        with self.client.post(
            "/api/v1/bookings/",
            json=booking_payload(CONTENDED_DATE, CONTENDED_SLOT),
            headers=self.headers,
            name="/api/v1/bookings/ [contended]",
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - slot grid cache effectiveness

    Run twice (with REDIS_ENABLED=true, then false) and compare
    requests/sec and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_slots(self):
        day = (date.today() + timedelta(days=random.randint(0, 6))).isoformat()
        self.client.get(
            f"/api/v1/venues/{VENUE_ID}/slots?date={day}",
            name="/api/v1/venues/{id}/slots",
        )

    @tag("throughput", "read")
    @task(3)
    def venue_detail(self):
        self.client.get(f"/api/v1/venues/{VENUE_ID}", name="/api/v1/venues/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - bad input must produce 4xx, never 5xx

    Run: locust -f locust/locustfile.py --tags edge -u 20 -r 5 --run-time 30s
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = auth_headers()

    def _expect(self, payload, expected, name):
        with self.client.post(
            "/api/v1/bookings/",
            json=payload,
            headers=self.headers,
            name=name,
            catch_response=True,
        ) as resp:
            if resp.status_code in expected:
                resp.success()
            else:
                resp.failure(f"Expected {expected}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_venue(self):
        payload = {**booking_payload(CONTENDED_DATE, "10:00"), "venue_id": 999999}
        self._expect(payload, (404,), "edge: unknown venue")

    @tag("edge")
    @task
    def bad_time_format(self):
        self._expect(booking_payload(CONTENDED_DATE, "25:61"), (400,), "edge: bad time")

    @tag("edge")
    @task
    def past_date(self):
        past = (date.today() - timedelta(days=3)).isoformat()
        self._expect(booking_payload(past, "10:00"), (400,), "edge: past date")

    @tag("edge")
    @task
    def huge_duration(self):
        payload = {**booking_payload(CONTENDED_DATE, "10:00"), "duration": 48}
        self._expect(payload, (400,), "edge: duration")

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            "/api/v1/bookings/",
            data="not json at all",
            headers=self.headers,
            name="edge: malformed",
            catch_response=True,
        ) as resp:
            if resp.status_code in (400, 422):
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post(
            "/api/v1/bookings/",
            json=booking_payload(CONTENDED_DATE, "10:00"),
            name="edge: no auth",
            catch_response=True,
        ) as resp:
            if resp.status_code == 401:
                resp.success()
            else:
                resp.failure(f"Expected 401, got {resp.status_code}")


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locust/locustfile.py -u 200 -r 20 --run-time 120s

    Mostly browsing slot grids, some bookings, occasional cancellations.
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = auth_headers()
        self.my_bookings = []

    @task(50)
    def browse_slots(self):
        day = (date.today() + timedelta(days=random.randint(1, 14))).isoformat()
        resp = self.client.get(
            f"/api/v1/venues/{VENUE_ID}/slots?date={day}",
            name="/api/v1/venues/{id}/slots",
        )
        if resp.status_code != 200:
            return
        free = [s["start"] for s in resp.json()["slots"] if s["available"]]
        if free and random.random() < 0.2:
            self._book(day, random.choice(free))

    def _book(self, day: str, slot_start: str):
        with self.client.post(
            "/api/v1/bookings/",
            json=booking_payload(day, slot_start),
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                self.my_bookings.append(resp.json()["id"])
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Someone else got it first
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @task(10)
    def my_booking_list(self):
        self.client.get("/api/v1/bookings/", headers=self.headers)

    @task(3)
    def cancel_one(self):
        if self.my_bookings:
            booking_id = self.my_bookings.pop()
            self.client.delete(
                f"/api/v1/bookings/{booking_id}",
                headers=self.headers,
                name="/api/v1/bookings/{id} [cancel]",
            )
