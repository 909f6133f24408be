import asyncio
import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

CALL_STARTED = "call:started"
CALL_TURN = "call:turn"
CALL_ENDED = "call:ended"
RESERVATION_CREATED = "reservation:created"

ADMIN_TOPIC = "admin"


def business_topic(business_id: str) -> str:
    return f"business:{business_id}"


class EventBus(Protocol):
    async def publish(self, topic: str, event: dict) -> None: ...


class InMemoryEventBus:
    """Collects published events; used locally and in tests."""

    def __init__(self):
        self.published: list[tuple[str, dict]] = []

    async def publish(self, topic: str, event: dict) -> None:
        self.published.append((topic, event))

    def events(self, name: str, topic: str = ADMIN_TOPIC) -> list[dict]:
        return [e for t, e in self.published if t == topic and e.get("event") == name]


class WebhookEventBus:
    """Pushes events to the realtime relay over HTTP."""

    def __init__(self, url: str, webhook_secret: str = "", timeout: float = 5.0):
        self.url = url
        self.secret = webhook_secret
        self.timeout = timeout

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "X-Webhook-Secret": self.secret,
        }

    async def publish(self, topic: str, event: dict) -> None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                self.url, json={"topic": topic, **event}, headers=self._headers()
            )
            resp.raise_for_status()


class EventPublisher:
    """Fire-and-forget fan-out to the admin and per-business topics.

    ``publish`` schedules delivery and returns immediately; delivery errors
    are logged and never reach the call path.
    """

    def __init__(self, bus: EventBus):
        self.bus = bus
        self._pending: set[asyncio.Task] = set()

    def publish(self, name: str, payload: dict) -> None:
        event = {"event": name, **payload}
        topics = [ADMIN_TOPIC]
        if payload.get("businessId"):
            topics.append(business_topic(payload["businessId"]))
        for topic in topics:
            task = asyncio.create_task(self._deliver(topic, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _deliver(self, topic: str, event: dict) -> None:
        try:
            await self.bus.publish(topic, event)
        except Exception as e:
            logger.warning("Event %s to %s failed: %s", event.get("event"), topic, e)

    async def drain(self) -> None:
        """Wait for all outstanding deliveries."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
