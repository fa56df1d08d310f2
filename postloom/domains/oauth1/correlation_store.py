"""Callback correlation stores.

A pending authorization is remembered between leg 1 and the provider's
callback. Each entry can be found by its opaque state value or by its request
token (X only echoes the token back), is removed on first read, and expires
after a bounded TTL. Nothing else cleans up an abandoned flow.

Two implementations:
- ``InMemoryCorrelationStore``: single-process, guarded by an asyncio lock.
- ``RedisCorrelationStore``: shared across replicas; ``GETDEL`` makes each
  read single-use and Redis expiry enforces the TTL. The request token secret
  is encrypted at rest.
"""

from __future__ import annotations

import asyncio
import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

import redis.asyncio as redis
from pydantic import SecretStr

from postloom.core.logging import logger
from postloom.core.protocols.encryption import CredentialEncryptor
from postloom.domains.oauth1.types import CorrelationEntry, RequestToken, utc_now

DEFAULT_TTL_SECONDS = 600
STATE_VALUE_BYTES = 32


def generate_state_value() -> str:
    """Opaque, unguessable identifier for one flow instance."""
    return secrets.token_urlsafe(STATE_VALUE_BYTES)


class InMemoryCorrelationStore:
    """In-memory implementation of CorrelationStoreProtocol.

    Entries live in a dict keyed by state value, with a second index from
    request token to state value. Expired entries are purged lazily on write
    and are never returned.

    Attributes:
        ttl_seconds: Default lifetime of an entry.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the store.

        Args:
            ttl_seconds: Default lifetime of an entry. Defaults to 10 minutes.
            clock: Source of the current UTC time. Tests pass a fake.
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CorrelationEntry] = {}  # state value → entry
        self._by_token: dict[str, str] = {}  # request token → state value
        self._lock = asyncio.Lock()

    async def put(
        self, owner_id: str, request_token: RequestToken, ttl_seconds: Optional[int] = None
    ) -> str:
        now = self._clock()
        state_value = generate_state_value()
        entry = CorrelationEntry(
            state_value=state_value,
            owner_id=owner_id,
            request_token=request_token,
            expires_at=now + timedelta(seconds=ttl_seconds or self.ttl_seconds),
        )

        async with self._lock:
            self._purge_expired(now)
            self._entries[state_value] = entry
            self._by_token[request_token.token] = state_value

        return state_value

    async def take_by_state_or_token(self, key: str) -> Optional[CorrelationEntry]:
        async with self._lock:
            state_value = key if key in self._entries else self._by_token.get(key)
            if state_value is None:
                return None

            entry = self._entries.pop(state_value, None)
            if entry is None:
                self._by_token.pop(key, None)
                return None
            if self._by_token.get(entry.request_token.token) == state_value:
                del self._by_token[entry.request_token.token]

        if entry.is_expired(self._clock()):
            logger.info("[CorrelationStore] Discarded expired OAuth1 flow on callback")
            return None
        return entry

    def _purge_expired(self, now: datetime) -> None:
        expired = [state for state, entry in self._entries.items() if entry.is_expired(now)]
        for state in expired:
            entry = self._entries.pop(state)
            if self._by_token.get(entry.request_token.token) == state:
                del self._by_token[entry.request_token.token]

    def __len__(self) -> int:
        """Number of stored entries, including expired ones not yet purged."""
        return len(self._entries)


class RedisCorrelationStore:
    """Redis-backed implementation of CorrelationStoreProtocol.

    Layout:
        ``oauth1:correlation:state:<state>``  → encrypted entry
        ``oauth1:correlation:token:<sha256(request token)>`` → state value

    Both keys carry the entry TTL.
    """

    KEY_PREFIX = "oauth1:correlation"

    def __init__(
        self,
        client: redis.Redis,
        encryptor: CredentialEncryptor,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize with a ``decode_responses=True`` Redis client."""
        self._redis = client
        self._encryptor = encryptor
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def _state_key(self, state_value: str) -> str:
        return f"{self.KEY_PREFIX}:state:{state_value}"

    def _token_key(self, token: str) -> str:
        digest = hashlib.sha256(token.encode("utf-8")).hexdigest()
        return f"{self.KEY_PREFIX}:token:{digest}"

    async def put(
        self, owner_id: str, request_token: RequestToken, ttl_seconds: Optional[int] = None
    ) -> str:
        ttl = ttl_seconds or self.ttl_seconds
        now = self._clock()
        state_value = generate_state_value()
        entry = CorrelationEntry(
            state_value=state_value,
            owner_id=owner_id,
            request_token=request_token,
            expires_at=now + timedelta(seconds=ttl),
        )

        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.set(self._state_key(state_value), self._serialize(entry), ex=ttl)
            pipe.set(self._token_key(request_token.token), state_value, ex=ttl)
            await pipe.execute()

        return state_value

    async def take_by_state_or_token(self, key: str) -> Optional[CorrelationEntry]:
        indexed_state = await self._redis.getdel(self._token_key(key))
        state_value = indexed_state or key

        blob = await self._redis.getdel(self._state_key(state_value))
        if blob is None:
            return None

        entry = self._deserialize(blob)
        if indexed_state is None:
            # A later put for the same request token owns the index now.
            token_key = self._token_key(entry.request_token.token)
            if await self._redis.get(token_key) == state_value:
                await self._redis.delete(token_key)

        if entry.is_expired(self._clock()):
            return None
        return entry

    def _serialize(self, entry: CorrelationEntry) -> str:
        return self._encryptor.encrypt(
            {
                "state_value": entry.state_value,
                "owner_id": entry.owner_id,
                "token": entry.request_token.token,
                "secret": entry.request_token.secret.get_secret_value(),
                "callback_confirmed": entry.request_token.callback_confirmed,
                "obtained_at": entry.request_token.obtained_at.isoformat(),
                "expires_at": entry.expires_at.isoformat(),
            }
        )

    def _deserialize(self, blob: str) -> CorrelationEntry:
        data = self._encryptor.decrypt(blob)
        return CorrelationEntry(
            state_value=data["state_value"],
            owner_id=data["owner_id"],
            request_token=RequestToken(
                token=data["token"],
                secret=SecretStr(data["secret"]),
                callback_confirmed=data["callback_confirmed"],
                obtained_at=datetime.fromisoformat(data["obtained_at"]),
            ),
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )
