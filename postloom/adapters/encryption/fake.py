"""Fake credential encryptor for testing.

Keeps plaintext payloads in memory behind opaque handles so stores can
round-trip data without real crypto. Records calls for assertions.
"""

from __future__ import annotations

import json
from typing import Any


class FakeCredentialEncryptor:
    """Test implementation of CredentialEncryptor.

    Usage::

        fake = FakeCredentialEncryptor()
        blob = fake.encrypt({"secret": "s3cr3t"})
        assert "s3cr3t" not in blob
        assert fake.decrypt(blob) == {"secret": "s3cr3t"}
    """

    def __init__(self) -> None:
        self._payloads: dict[str, str] = {}
        self.encrypt_calls: list[dict[str, Any]] = []
        self.decrypt_calls: list[str] = []

    def encrypt(self, data: dict[str, Any]) -> str:
        self.encrypt_calls.append(data)
        handle = f"encrypted:{len(self._payloads)}"
        self._payloads[handle] = json.dumps(data)
        return handle

    def decrypt(self, encrypted: str) -> dict[str, Any]:
        self.decrypt_calls.append(encrypted)
        return json.loads(self._payloads[encrypted])
