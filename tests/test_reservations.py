import asyncio

import pytest

from conftest import make_business
from hostline.business import ReservationSettings
from hostline.errors import CapacityConflict
from hostline.reservations import CONFIRMED, NOT_AVAILABLE, ReservationArbitrator, time_bucket
from hostline.store import InMemoryStore


class TestTimeBucket:
    def test_rounds_down_to_slot(self):
        assert time_bucket("19:45", 30) == "19:30"
        assert time_bucket("19:29", 30) == "19:00"
        assert time_bucket("08:05", 15) == "08:00"

    def test_exact_boundary_unchanged(self):
        assert time_bucket("20:00", 30) == "20:00"

    def test_zero_slot_keeps_time(self):
        assert time_bucket("19:45", 0) == "19:45"


class TestCheckAndReserve:
    @pytest.mark.asyncio
    async def test_books_when_capacity_allows(self, business):
        store = InMemoryStore()
        result = await ReservationArbitrator(store).check_and_reserve(
            business, "2025-10-10", "19:10", 4, customer_name="Dana", call_id="CA1",
        )
        assert result.status == CONFIRMED
        assert result.time_bucket == "19:00"
        assert result.occupancy == 4
        assert result.remaining_capacity == 46
        booked = store.reservations_for("biz-1", "2025-10-10", "19:00")
        assert booked[0]["id"] == result.reservation_id
        assert booked[0]["call_id"] == "CA1"

    @pytest.mark.asyncio
    async def test_rejects_when_full(self):
        business = make_business(reservations=ReservationSettings(max_party_size=10))
        store = InMemoryStore()
        arbitrator = ReservationArbitrator(store)
        await arbitrator.check_and_reserve(business, "2025-10-10", "19:00", 8)
        result = await arbitrator.check_and_reserve(business, "2025-10-10", "19:00", 3)
        assert result.status == NOT_AVAILABLE
        assert result.occupancy == 8
        assert result.remaining_capacity == 2
        assert result.conflict is False

    @pytest.mark.asyncio
    async def test_two_concurrent_large_parties_only_one_fits(self, business):
        store = InMemoryStore()
        arbitrator = ReservationArbitrator(store)
        results = await asyncio.gather(
            arbitrator.check_and_reserve(business, "2025-10-10", "20:00", 30, customer_name="A"),
            arbitrator.check_and_reserve(business, "2025-10-10", "20:00", 30, customer_name="B"),
        )
        statuses = sorted(r.status for r in results)
        assert statuses == [CONFIRMED, NOT_AVAILABLE]
        assert sum(r["party_size"] for r in store.reservations_for("biz-1", "2025-10-10", "20:00")) == 30

    @pytest.mark.asyncio
    @pytest.mark.parametrize("party_size,callers", [(8, 10), (5, 12), (1, 60)])
    async def test_concurrent_bookings_never_exceed_capacity(self, business, party_size, callers):
        store = InMemoryStore()
        arbitrator = ReservationArbitrator(store, attempts=callers + 1)
        results = await asyncio.gather(*[
            arbitrator.check_and_reserve(business, "2025-10-10", "19:00", party_size)
            for _ in range(callers)
        ])
        committed = sum(r["party_size"] for r in store.reservations_for("biz-1", "2025-10-10", "19:00"))
        confirmed = [r for r in results if r.status == CONFIRMED]
        assert committed <= 50
        assert committed == len(confirmed) * party_size
        assert len(confirmed) == min(callers, 50 // party_size)

    @pytest.mark.asyncio
    async def test_exhausted_retries_flag_conflict(self, business):
        class AlwaysConflicting(InMemoryStore):
            async def create_reservation(self, record, expected_version):
                raise CapacityConflict("moved")

        result = await ReservationArbitrator(AlwaysConflicting(), attempts=2).check_and_reserve(
            business, "2025-10-10", "19:00", 2,
        )
        assert result.status == NOT_AVAILABLE
        assert result.conflict is True

    @pytest.mark.asyncio
    async def test_cancelled_bookings_free_capacity(self):
        business = make_business(reservations=ReservationSettings(max_party_size=10))
        store = InMemoryStore()
        await store.create_reservation(
            {"business_id": "biz-1", "date": "2025-10-10", "time_bucket": "19:00",
             "party_size": 10, "status": "cancelled"},
            expected_version=0,
        )
        result = await ReservationArbitrator(store).check_and_reserve(business, "2025-10-10", "19:00", 10)
        assert result.status == CONFIRMED
