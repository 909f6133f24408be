"""Reservation slot arbitration.

Capacity is checked and committed optimistically: read the slot's occupancy
and version, and commit only if the version is unchanged.  A lost race is
re-read and re-validated, so committed occupancy never exceeds capacity no
matter how many calls book the same slot at once.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from hostline.business import BusinessProfile
from hostline.errors import CapacityConflict
from hostline.store import Store

logger = logging.getLogger(__name__)

CONFIRMED = "CONFIRMED"
NOT_AVAILABLE = "NOT_AVAILABLE"


@dataclass(frozen=True)
class ReservationResult:
    status: str
    date: str
    time_bucket: str
    party_size: int
    occupancy: int
    remaining_capacity: int
    reservation_id: Optional[str] = None
    conflict: bool = False

    @property
    def confirmed(self) -> bool:
        return self.status == CONFIRMED


def time_bucket(time_slot: str, slot_minutes: int = 30) -> str:
    """Round an "HH:MM" time down to the start of its slot.

    >>> time_bucket("19:45", 30)
    '19:30'
    """
    hours, minutes = (int(part) for part in time_slot.split(":")[:2])
    total = hours * 60 + minutes
    if slot_minutes > 0:
        total -= total % slot_minutes
    return f"{total // 60:02d}:{total % 60:02d}"


class ReservationArbitrator:
    def __init__(self, store: Store, attempts: int = 3):
        self.store = store
        self.attempts = max(1, attempts)

    async def check_and_reserve(
        self,
        business: BusinessProfile,
        date: str,
        time_slot: str,
        party_size: int,
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
        special_requests: Optional[str] = None,
        call_id: Optional[str] = None,
    ) -> ReservationResult:
        capacity = business.reservations.max_party_size
        bucket = time_bucket(time_slot, business.reservations.slot_minutes)
        occupancy = 0

        for attempt in range(1, self.attempts + 1):
            slot = await self.store.get_slot_state(business.id, date, bucket)
            occupancy = slot.occupancy
            remaining = capacity - occupancy
            if remaining < party_size:
                logger.info(
                    "Slot %s %s full for business %s: %d/%d, requested %d",
                    date, bucket, business.id, occupancy, capacity, party_size,
                )
                return ReservationResult(
                    status=NOT_AVAILABLE,
                    date=date,
                    time_bucket=bucket,
                    party_size=party_size,
                    occupancy=occupancy,
                    remaining_capacity=max(remaining, 0),
                )

            record = {
                "business_id": business.id,
                "call_id": call_id,
                "date": date,
                "time": time_slot,
                "time_bucket": bucket,
                "party_size": party_size,
                "customer_name": customer_name,
                "customer_phone": customer_phone,
                "special_requests": special_requests,
                "status": "confirmed",
                "source": "phone_call",
            }
            try:
                reservation_id = await self.store.create_reservation(record, slot.version)
            except CapacityConflict as e:
                logger.warning(
                    "Reservation race on %s %s (attempt %d/%d): %s",
                    date, bucket, attempt, self.attempts, e,
                )
                continue

            logger.info(
                "Reservation %s confirmed: business=%s %s %s party=%d",
                reservation_id, business.id, date, bucket, party_size,
            )
            return ReservationResult(
                status=CONFIRMED,
                date=date,
                time_bucket=bucket,
                party_size=party_size,
                occupancy=occupancy + party_size,
                remaining_capacity=remaining - party_size,
                reservation_id=reservation_id,
            )

        logger.warning("Gave up booking %s %s after %d conflicts", date, bucket, self.attempts)
        return ReservationResult(
            status=NOT_AVAILABLE,
            date=date,
            time_bucket=bucket,
            party_size=party_size,
            occupancy=occupancy,
            remaining_capacity=max(capacity - occupancy, 0),
            conflict=True,
        )
