"""Keyed session storage with per-session locking.

The orchestrator only mutates a session while holding its lock, so events
for one call are processed one at a time while different calls never wait
on each other.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Protocol

from hostline.errors import LockTimeout
from hostline.session import CallSession


class SessionStore(Protocol):
    async def get(self, call_id: str) -> Optional[CallSession]: ...

    async def set(self, session: CallSession) -> None: ...

    async def delete(self, call_id: str) -> None: ...

    def lock(self, call_id: str, timeout: Optional[float] = None): ...

    def values(self) -> list[CallSession]: ...


class InMemorySessionStore:
    def __init__(self):
        self._sessions: dict[str, CallSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    async def get(self, call_id: str) -> Optional[CallSession]:
        return self._sessions.get(call_id)

    async def set(self, session: CallSession) -> None:
        self._sessions[session.id] = session

    async def delete(self, call_id: str) -> None:
        self._sessions.pop(call_id, None)
        # holders and waiters keep their reference; later events see no session
        self._locks.pop(call_id, None)

    def values(self) -> list[CallSession]:
        return list(self._sessions.values())

    @asynccontextmanager
    async def lock(self, call_id: str, timeout: Optional[float] = None) -> AsyncIterator[None]:
        """Hold the call's lock. Raises LockTimeout if not acquired in time."""
        lock = self._locks.setdefault(call_id, asyncio.Lock())
        try:
            await asyncio.wait_for(lock.acquire(), timeout)
        except asyncio.TimeoutError:
            raise LockTimeout(f"lock for call {call_id} not acquired within {timeout}s") from None
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        return len(self._sessions)
