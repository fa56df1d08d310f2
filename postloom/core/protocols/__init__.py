"""Core protocols for dependency injection.

Domain-specific protocols (stores, OAuth1 services) live in their
respective domains/ directories. This module keeps cross-cutting
infrastructure protocols only.
"""

from postloom.core.protocols.encryption import CredentialEncryptor

__all__ = [
    "CredentialEncryptor",
]
