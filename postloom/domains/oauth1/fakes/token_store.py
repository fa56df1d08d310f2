"""Fake token store for testing."""

from typing import Any, List, Optional, Tuple

from postloom.domains.oauth1.types import AccessToken


class FakeTokenStore:
    """In-memory fake for TokenStoreProtocol that records every call."""

    def __init__(self) -> None:
        self._store: dict[str, AccessToken] = {}
        self._calls: List[Tuple[Any, ...]] = []
        self._saved: List[AccessToken] = []

    def seed(self, access_token: AccessToken) -> None:
        self._store[access_token.owner_id] = access_token

    @property
    def saved(self) -> List[AccessToken]:
        return list(self._saved)

    def call_names(self) -> List[str]:
        return [call[0] for call in self._calls]

    async def save(self, access_token: AccessToken) -> None:
        self._calls.append(("save", access_token.owner_id))
        self._saved.append(access_token)
        self._store[access_token.owner_id] = access_token

    async def get(self, owner_id: str) -> Optional[AccessToken]:
        self._calls.append(("get", owner_id))
        return self._store.get(owner_id)

    async def delete(self, owner_id: str) -> bool:
        self._calls.append(("delete", owner_id))
        return self._store.pop(owner_id, None) is not None
