"""Fake correlation store for testing."""

from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Tuple

from postloom.domains.oauth1.types import CorrelationEntry, RequestToken


class FakeCorrelationStore:
    """In-memory fake for CorrelationStoreProtocol.

    Entries never expire on their own; tests call ``seed`` with an entry
    whose ``expires_at`` is in the past, or ``expire_all``, to simulate it.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CorrelationEntry] = {}
        self._calls: List[Tuple[Any, ...]] = []
        self._counter = 0

    def seed(self, entry: CorrelationEntry) -> None:
        self._entries[entry.state_value] = entry

    def expire_all(self) -> None:
        self._entries.clear()

    def pending(self) -> List[CorrelationEntry]:
        return list(self._entries.values())

    def call_names(self) -> List[str]:
        return [call[0] for call in self._calls]

    async def put(
        self, owner_id: str, request_token: RequestToken, ttl_seconds: Optional[int] = None
    ) -> str:
        self._calls.append(("put", owner_id, request_token.token, ttl_seconds))
        self._counter += 1
        state_value = f"fake-state-{self._counter}"
        self._entries[state_value] = CorrelationEntry(
            state_value=state_value,
            owner_id=owner_id,
            request_token=request_token,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds or 600),
        )
        return state_value

    async def take_by_state_or_token(self, key: str) -> Optional[CorrelationEntry]:
        self._calls.append(("take_by_state_or_token", key))
        entry = self._entries.pop(key, None)
        if entry is None:
            for state_value, candidate in list(self._entries.items()):
                if candidate.request_token.token == key:
                    entry = self._entries.pop(state_value)
                    break
        if entry is None or entry.is_expired(datetime.now(timezone.utc)):
            return None
        return entry
