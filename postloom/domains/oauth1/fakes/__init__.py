"""Fake implementations for OAuth1 domain testing."""

from postloom.domains.oauth1.fakes.clock import FakeClock
from postloom.domains.oauth1.fakes.correlation_store import FakeCorrelationStore
from postloom.domains.oauth1.fakes.oauth1_service import FakeOAuth1Service
from postloom.domains.oauth1.fakes.provider import FakeProvider, parse_authorization_header
from postloom.domains.oauth1.fakes.redis_client import FakeRedis
from postloom.domains.oauth1.fakes.token_store import FakeTokenStore

__all__ = [
    "FakeClock",
    "FakeCorrelationStore",
    "FakeOAuth1Service",
    "FakeProvider",
    "FakeRedis",
    "FakeTokenStore",
    "parse_authorization_header",
]
