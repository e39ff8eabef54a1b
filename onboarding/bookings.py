"""
Altegio Onboarding — Test Booking Distributor

Deterministic round-robin over the staff and services created earlier
in the session. Booking i goes to staff[i % len(staff)] with
services[i % len(services)], i.e. 1 + (i % 7) days from today at 10:00.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

MIN_BOOKINGS = 1
MAX_BOOKINGS = 10
DEFAULT_BOOKINGS = 5

BOOKING_TIME = time(10, 0)
SEANCE_LENGTH_SECONDS = 3600
SPREAD_DAYS = 7


@dataclass(frozen=True)
class PlannedBooking:
    index: int
    staff_id: int
    service_id: int
    starts_at: datetime
    client_name: str
    client_phone: str

    def label(self) -> str:
        return f"{self.client_name} @ {self.starts_at:%Y-%m-%d %H:%M}"

    def to_payload(self) -> dict[str, Any]:
        """Body for POST /records/{company_id}."""
        return {
            "staff_id": self.staff_id,
            "services": [{"id": self.service_id}],
            "datetime": self.starts_at.strftime("%Y-%m-%d %H:%M:%S"),
            "seance_length": SEANCE_LENGTH_SECONDS,
            "client": {
                "name": self.client_name,
                "phone": self.client_phone,
            },
            "comment": "Test booking created during onboarding",
            "send_sms": 0,
        }


def plan_bookings(
    staff_ids: list[int],
    service_ids: list[int],
    count: int,
    today: date,
) -> list[PlannedBooking]:
    """
    Build the booking plan. Pure: no I/O, same inputs give the same plan.

    Raises:
        ValueError: empty staff/service lists or count outside 1–10
    """
    if not staff_ids or not service_ids:
        raise ValueError("staff_ids and service_ids must both be non-empty")
    if not MIN_BOOKINGS <= count <= MAX_BOOKINGS:
        raise ValueError(f"count must be between {MIN_BOOKINGS} and {MAX_BOOKINGS}, got {count}")

    plan = []
    for i in range(count):
        day = today + timedelta(days=1 + (i % SPREAD_DAYS))
        plan.append(PlannedBooking(
            index=i,
            staff_id=staff_ids[i % len(staff_ids)],
            service_id=service_ids[i % len(service_ids)],
            starts_at=datetime.combine(day, BOOKING_TIME),
            client_name=f"Test Client {i + 1}",
            client_phone=f"+100000000{i % 10}",
        ))
    return plan
