"""Fixtures for OAuth1 domain tests."""

from typing import Callable

import pytest
from pydantic import SecretStr

from postloom.core.config import Settings
from postloom.domains.oauth1.fakes import (
    FakeClock,
    FakeCorrelationStore,
    FakeOAuth1Service,
    FakeProvider,
    FakeTokenStore,
)
from postloom.domains.oauth1.types import OAuth1Credentials

CONSUMER_KEY = "ck-test"
CONSUMER_SECRET = "cs-test-secret"
CALLBACK_URL = "https://app.example.com/oauth/callback"

REQUEST_TOKEN_URL = "https://api.provider.test/oauth/request_token"
AUTHORIZE_URL = "https://api.provider.test/oauth/authorize"
ACCESS_TOKEN_URL = "https://api.provider.test/oauth/access_token"


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider(consumer_secret=CONSUMER_SECRET)


@pytest.fixture
def credentials() -> OAuth1Credentials:
    return OAuth1Credentials(
        consumer_key=CONSUMER_KEY,
        consumer_secret=SecretStr(CONSUMER_SECRET),
        callback_url=CALLBACK_URL,
    )


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Settings wired to the fake provider's endpoints; overrides win."""

    def _make(**overrides) -> Settings:
        values = dict(
            OAUTH1_CONSUMER_KEY=CONSUMER_KEY,
            OAUTH1_CONSUMER_SECRET=CONSUMER_SECRET,
            OAUTH1_CALLBACK_URL=CALLBACK_URL,
            OAUTH1_REQUEST_TOKEN_URL=REQUEST_TOKEN_URL,
            OAUTH1_AUTHORIZE_URL=AUTHORIZE_URL,
            OAUTH1_ACCESS_TOKEN_URL=ACCESS_TOKEN_URL,
            OAUTH1_BACKOFF_SECONDS=0,
        )
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_oauth1_service() -> FakeOAuth1Service:
    return FakeOAuth1Service()


@pytest.fixture
def fake_correlation_store() -> FakeCorrelationStore:
    return FakeCorrelationStore()


@pytest.fixture
def fake_token_store() -> FakeTokenStore:
    return FakeTokenStore()
