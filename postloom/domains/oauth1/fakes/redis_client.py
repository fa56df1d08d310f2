"""Fake asyncio Redis client for store testing.

Implements only the commands the stores use: ``set`` (with ``ex``), ``get``,
``getdel``, ``delete`` and transactional ``pipeline``. Values are kept as
``str`` like a ``decode_responses=True`` client returns them.
"""

from typing import Any, Dict, List, Optional, Tuple


class _FakePipeline:
    def __init__(self, client: "FakeRedis") -> None:
        self._client = client
        self._queued: List[Tuple[str, str, Optional[int]]] = []

    async def __aenter__(self) -> "_FakePipeline":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self._queued.clear()

    def set(self, key: str, value: str, ex: Optional[int] = None) -> "_FakePipeline":
        self._queued.append((key, value, ex))
        return self

    async def execute(self) -> List[bool]:
        if self._client.fail_next_execute:
            self._client.fail_next_execute = False
            raise ConnectionError("redis unavailable")
        results = [await self._client.set(key, value, ex=ex) for key, value, ex in self._queued]
        self._queued.clear()
        return results


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis``."""

    def __init__(self) -> None:
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, Optional[int]] = {}
        self.fail_next_execute = False

    def expire_all(self) -> None:
        """Simulate every key with a TTL reaching expiry."""
        for key, ttl in list(self.ttls.items()):
            if ttl is not None:
                self.data.pop(key, None)
                self.ttls.pop(key, None)

    def pipeline(self, transaction: bool = True) -> _FakePipeline:
        return _FakePipeline(self)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def getdel(self, key: str) -> Optional[str]:
        self.ttls.pop(key, None)
        return self.data.pop(key, None)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            self.ttls.pop(key, None)
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed
