"""Durable store collaborator.

``create_reservation`` is a compare-and-swap on the slot's version: the
write only lands if nobody committed to the slot since the caller read it,
otherwise it raises CapacityConflict and the caller re-validates.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

import httpx

from hostline.business import BusinessProfile
from hostline.circuit_breaker import CircuitBreaker
from hostline.error_log import DEDUP_WINDOW_SECONDS
from hostline.errors import CapacityConflict, PersistenceError

logger = logging.getLogger(__name__)

ACTIVE_RESERVATION_STATUSES = frozenset({"pending", "confirmed"})


@dataclass(frozen=True)
class SlotState:
    occupancy: int
    version: int


class Store(Protocol):
    async def get_business(self, phone_number: str) -> Optional[BusinessProfile]: ...

    async def save_call(self, record: dict) -> None: ...

    async def upsert_business_stats(self, business_id: str, delta: dict) -> None: ...

    async def get_slot_state(self, business_id: str, date: str, time_bucket: str) -> SlotState: ...

    async def create_reservation(self, record: dict, expected_version: int) -> str: ...

    async def log_error(self, record: dict) -> None: ...


@dataclass
class _Slot:
    version: int = 0
    reservations: list[dict] = field(default_factory=list)

    @property
    def occupancy(self) -> int:
        return sum(
            r["party_size"] for r in self.reservations
            if r.get("status", "confirmed") in ACTIVE_RESERVATION_STATUSES
        )


class InMemoryStore:
    """Single-process store used for local runs and tests.

    Reads yield to the event loop so concurrent bookings interleave the way
    they would against a remote database.
    """

    def __init__(self, businesses: Optional[list[BusinessProfile]] = None):
        self.businesses: dict[str, BusinessProfile] = {}
        for b in businesses or []:
            self.add_business(b)
        self.calls: dict[str, dict] = {}
        self.stats: dict[str, dict] = {}
        self.errors: list[dict] = []
        self._slots: dict[tuple[str, str, str], _Slot] = {}

    def add_business(self, business: BusinessProfile) -> None:
        self.businesses[business.phone_number] = business

    async def get_business(self, phone_number: str) -> Optional[BusinessProfile]:
        await asyncio.sleep(0)
        return self.businesses.get(phone_number)

    async def save_call(self, record: dict) -> None:
        await asyncio.sleep(0)
        self.calls[record["call_id"]] = dict(record)

    async def upsert_business_stats(self, business_id: str, delta: dict) -> None:
        await asyncio.sleep(0)
        stats = self.stats.setdefault(business_id, {
            "total_calls": 0,
            "completed_calls": 0,
            "total_duration_seconds": 0,
            "total_cost": 0.0,
            "total_reservations": 0,
            "missing_info": [],
        })
        stats["total_calls"] += delta.get("calls", 0)
        stats["completed_calls"] += delta.get("completed_calls", 0)
        stats["total_duration_seconds"] += delta.get("duration_seconds", 0)
        stats["total_cost"] = round(stats["total_cost"] + delta.get("cost", 0.0), 6)
        stats["total_reservations"] += delta.get("reservations", 0)
        stats["missing_info"].extend(delta.get("missing_info", []))
        if stats["total_calls"]:
            stats["avg_call_duration"] = stats["total_duration_seconds"] / stats["total_calls"]
            stats["success_rate"] = stats["completed_calls"] / stats["total_calls"] * 100
        stats["total_minutes"] = round(stats["total_duration_seconds"] / 60)
        if "last_call_at" in delta:
            stats["last_call_at"] = delta["last_call_at"]

    async def get_slot_state(self, business_id: str, date: str, time_bucket: str) -> SlotState:
        slot = self._slots.get((business_id, date, time_bucket)) or _Slot()
        state = SlotState(occupancy=slot.occupancy, version=slot.version)
        await asyncio.sleep(0)
        return state

    async def create_reservation(self, record: dict, expected_version: int) -> str:
        key = (record["business_id"], record["date"], record["time_bucket"])
        slot = self._slots.setdefault(key, _Slot())
        # check-and-write with no await in between
        if slot.version != expected_version:
            raise CapacityConflict(
                f"slot {key} moved from version {expected_version} to {slot.version}"
            )
        reservation_id = uuid.uuid4().hex
        slot.reservations.append({**record, "id": reservation_id})
        slot.version += 1
        return reservation_id

    def reservations_for(self, business_id: str, date: str, time_bucket: str) -> list[dict]:
        slot = self._slots.get((business_id, date, time_bucket))
        return list(slot.reservations) if slot else []

    async def log_error(self, record: dict) -> None:
        """Group repeats of a fingerprint seen within the last hour."""
        await asyncio.sleep(0)
        occurred = datetime.fromisoformat(record["occurred_at"])
        for existing in reversed(self.errors):
            if existing["fingerprint"] != record["fingerprint"]:
                continue
            first = datetime.fromisoformat(existing["first_occurrence"])
            if (occurred - first).total_seconds() <= DEDUP_WINDOW_SECONDS:
                existing["occurrence_count"] += 1
                existing["last_occurrence"] = record["occurred_at"]
                existing["details"] = {**existing.get("details", {}), **record.get("details", {})}
                return
            break
        self.errors.append({
            **record,
            "occurrence_count": 1,
            "first_occurrence": record["occurred_at"],
            "last_occurrence": record["occurred_at"],
        })


class HttpStore:
    """HTTP client for the persistence API.

    Wraps each call with a circuit breaker; every transport or status failure
    surfaces as PersistenceError, except a 409 on reservation commit which
    means the slot moved (CapacityConflict).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._circuit = CircuitBreaker(failure_threshold=3, cooldown_seconds=60.0, label="store API")
        if client is not None:
            self._client = client
        else:
            headers = {"Content-Type": "application/json"}
            if api_key:
                headers["X-API-Key"] = api_key
            self._client = httpx.AsyncClient(base_url=self.base_url, headers=headers, timeout=timeout)

    async def close(self):
        await self._client.aclose()

    async def _request(self, method: str, path: str, label: str, **kwargs) -> httpx.Response:
        if not self._circuit.should_try():
            raise PersistenceError(f"{label}: store circuit breaker open")
        try:
            resp = await self._client.request(method, path, **kwargs)
            if resp.status_code not in (404, 409):
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._circuit.record_failure()
            logger.error("%s returned %s: %s", label, e.response.status_code, e.response.text[:500])
            raise PersistenceError(f"{label} failed with {e.response.status_code}") from e
        except httpx.HTTPError as e:
            self._circuit.record_failure()
            logger.error("%s failed: %s", label, e)
            raise PersistenceError(f"{label} failed: {e}") from e
        self._circuit.record_success()
        return resp

    async def get_business(self, phone_number: str) -> Optional[BusinessProfile]:
        resp = await self._request("GET", f"/businesses/by-number/{phone_number}", "get_business")
        if resp.status_code == 404:
            return None
        return BusinessProfile.from_dict(resp.json())

    async def save_call(self, record: dict) -> None:
        await self._request("POST", "/calls", "save_call", json=record)

    async def upsert_business_stats(self, business_id: str, delta: dict) -> None:
        await self._request("POST", f"/businesses/{business_id}/stats", "upsert_business_stats", json=delta)

    async def get_slot_state(self, business_id: str, date: str, time_bucket: str) -> SlotState:
        resp = await self._request(
            "GET",
            f"/businesses/{business_id}/slots",
            "get_slot_state",
            params={"date": date, "time": time_bucket},
        )
        if resp.status_code == 404:
            return SlotState(occupancy=0, version=0)
        body = resp.json()
        return SlotState(occupancy=int(body.get("occupancy", 0)), version=int(body.get("version", 0)))

    async def create_reservation(self, record: dict, expected_version: int) -> str:
        resp = await self._request(
            "POST",
            "/reservations",
            "create_reservation",
            json={"reservation": record, "expected_version": expected_version},
        )
        if resp.status_code == 409:
            raise CapacityConflict(resp.text[:200])
        if resp.status_code == 404:
            raise PersistenceError("create_reservation: endpoint not found")
        return str(resp.json()["id"])

    async def log_error(self, record: dict) -> None:
        try:
            await self._request("POST", "/errors", "log_error", json=record)
        except PersistenceError as e:
            logger.warning("Dropping error report %s: %s", record.get("fingerprint"), e)
