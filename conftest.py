"""Root conftest for pytest configuration and shared fixtures.

Loaded before the colocated test directories under postloom/, so its
fixtures are available to every domain and adapter test.
"""

import os

import pytest

# Register pytest-asyncio plugin at the root level
pytest_plugins = ("pytest_asyncio",)

# ---------------------------------------------------------------------------
# Environment variables: must be set before any postloom module import
# Uses setdefault so real env vars (CI) are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("ENCRYPTION_KEY", "SpgLrrEEgJ/7QdhSMSvagL1juEY5eoyCG0tZN7OSQV0=")


# ---------------------------------------------------------------------------
# Shared fake fixtures: individual protocol fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_encryptor():
    """Fake CredentialEncryptor that keeps payloads in memory."""
    from postloom.adapters.encryption.fake import FakeCredentialEncryptor

    return FakeCredentialEncryptor()


@pytest.fixture
def fake_redis():
    """Fake asyncio Redis client supporting the commands the stores use."""
    from postloom.domains.oauth1.fakes import FakeRedis

    return FakeRedis()
