"""Access token stores, keyed by owner id.

Access credentials live as long as the user's connection to the provider;
removal happens on disconnect. Pending request tokens never land here, they
belong to the correlation store.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

import redis.asyncio as redis
from pydantic import SecretStr

from postloom.core.protocols.encryption import CredentialEncryptor
from postloom.domains.oauth1.types import AccessToken


class InMemoryTokenStore:
    """In-memory implementation of TokenStoreProtocol. Single process only."""

    def __init__(self) -> None:
        self._tokens: dict[str, AccessToken] = {}
        self._lock = asyncio.Lock()

    async def save(self, access_token: AccessToken) -> None:
        async with self._lock:
            self._tokens[access_token.owner_id] = access_token

    async def get(self, owner_id: str) -> Optional[AccessToken]:
        async with self._lock:
            return self._tokens.get(owner_id)

    async def delete(self, owner_id: str) -> bool:
        async with self._lock:
            return self._tokens.pop(owner_id, None) is not None


class RedisTokenStore:
    """Redis-backed implementation of TokenStoreProtocol.

    One key per owner (``oauth1:access_token:<owner_id>``) holding the
    encrypted credentials. No expiry.
    """

    KEY_PREFIX = "oauth1:access_token"

    def __init__(self, client: redis.Redis, encryptor: CredentialEncryptor) -> None:
        self._redis = client
        self._encryptor = encryptor

    def _key(self, owner_id: str) -> str:
        return f"{self.KEY_PREFIX}:{owner_id}"

    async def save(self, access_token: AccessToken) -> None:
        blob = self._encryptor.encrypt(
            {
                "token": access_token.token,
                "secret": access_token.secret.get_secret_value(),
                "owner_id": access_token.owner_id,
                "obtained_at": access_token.obtained_at.isoformat(),
                "provider_user_id": access_token.provider_user_id,
                "screen_name": access_token.screen_name,
            }
        )
        await self._redis.set(self._key(access_token.owner_id), blob)

    async def get(self, owner_id: str) -> Optional[AccessToken]:
        blob = await self._redis.get(self._key(owner_id))
        if blob is None:
            return None
        data = self._encryptor.decrypt(blob)
        return AccessToken(
            token=data["token"],
            secret=SecretStr(data["secret"]),
            owner_id=data["owner_id"],
            obtained_at=datetime.fromisoformat(data["obtained_at"]),
            provider_user_id=data.get("provider_user_id"),
            screen_name=data.get("screen_name"),
        )

    async def delete(self, owner_id: str) -> bool:
        return bool(await self._redis.delete(self._key(owner_id)))
