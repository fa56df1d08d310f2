"""Fernet-based credential encryption adapter."""

from __future__ import annotations

import json
from typing import Any

from cryptography.fernet import Fernet
from pydantic import SecretStr

from postloom.core.exceptions import ConfigurationError


class FernetCredentialEncryptor:
    """Encrypt/decrypt credential dicts using Fernet symmetric encryption."""

    def __init__(self, encryption_key: str | SecretStr) -> None:
        if isinstance(encryption_key, SecretStr):
            encryption_key = encryption_key.get_secret_value()
        try:
            self._fernet = Fernet(encryption_key.encode())
        except ValueError as e:
            raise ConfigurationError("ENCRYPTION_KEY", "Not a valid Fernet key") from e

    def encrypt(self, data: dict[str, Any]) -> str:
        return self._fernet.encrypt(json.dumps(data).encode()).decode()

    def decrypt(self, encrypted: str) -> dict[str, Any]:
        return json.loads(self._fernet.decrypt(encrypted).decode())
