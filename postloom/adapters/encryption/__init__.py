"""Credential encryption adapters."""

from postloom.adapters.encryption.fake import FakeCredentialEncryptor
from postloom.adapters.encryption.fernet import FernetCredentialEncryptor

__all__ = ["FernetCredentialEncryptor", "FakeCredentialEncryptor"]
