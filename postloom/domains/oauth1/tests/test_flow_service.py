"""Unit tests for OAuth1FlowService.

End-to-end cases run the real OAuth1Service against a FakeProvider with the
in-memory correlation store; the rest use protocol fakes to pin down which
collaborators are (and are not) touched.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlsplit

import pytest
from pydantic import SecretStr

from postloom.core.exceptions import ConfigurationError, InvalidStateError
from postloom.domains.oauth1.correlation_store import InMemoryCorrelationStore
from postloom.domains.oauth1.exceptions import (
    AuthorizationDenied,
    CorrelationNotFound,
    MissingCallbackParameters,
    ProviderRejection,
    RejectionReason,
    TokenExpired,
    VerifierMismatch,
)
from postloom.domains.oauth1.flow_service import OAuth1FlowService
from postloom.domains.oauth1.oauth1_service import OAuth1Service
from postloom.domains.oauth1.token_store import InMemoryTokenStore
from postloom.domains.oauth1.types import (
    AccessToken,
    CorrelationEntry,
    FlowState,
    OAuth1Flow,
    OAuth1TokenResponse,
    RequestToken,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _request_token(token: str = "req-tok", confirmed: bool = True) -> RequestToken:
    return RequestToken(token=token, secret=SecretStr("req-sec"), callback_confirmed=confirmed)


def _entry(state: str = "state-1", owner_id: str = "owner-1", token: str = "req-tok"):
    return CorrelationEntry(
        state_value=state,
        owner_id=owner_id,
        request_token=_request_token(token),
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=10),
    )


@pytest.fixture
def faked_service(fake_oauth1_service, fake_correlation_store, fake_token_store, settings):
    return OAuth1FlowService(
        oauth1_service=fake_oauth1_service,
        correlation_store=fake_correlation_store,
        token_store=fake_token_store,
        settings=settings,
    )


@pytest.fixture
def live(provider, settings, clock):
    """Flow service over the real HTTP legs and in-memory stores."""
    correlation_store = InMemoryCorrelationStore(ttl_seconds=600, clock=clock)
    token_store = InMemoryTokenStore()
    service = OAuth1FlowService(
        oauth1_service=OAuth1Service(backoff_seconds=0, transport=provider.transport()),
        correlation_store=correlation_store,
        token_store=token_store,
        settings=settings,
    )
    return service, correlation_store, token_store


def _script_happy_provider(provider, settings, token="tok123", secret="sec123"):
    provider.token_secrets[token] = secret
    provider.reply(
        settings.OAUTH1_REQUEST_TOKEN_URL,
        200,
        f"oauth_token={token}&oauth_token_secret={secret}&oauth_callback_confirmed=true",
    )
    provider.reply(
        settings.OAUTH1_ACCESS_TOKEN_URL,
        200,
        "oauth_token=acc-tok&oauth_token_secret=acc-sec&user_id=42&screen_name=alice",
    )


# ===========================================================================
# End to end
# ===========================================================================


@pytest.mark.asyncio
async def test_full_flow_persists_access_token(live, provider, settings):
    service, correlation_store, token_store = live
    _script_happy_provider(provider, settings)

    started = await service.start_flow("owner-1")

    query = parse_qs(urlsplit(started.authorize_url).query)
    assert started.authorize_url.startswith(settings.OAUTH1_AUTHORIZE_URL)
    assert query["oauth_token"] == ["tok123"]
    assert started.state
    assert "sec123" not in started.model_dump_json()

    access_token = await service.complete_callback(oauth_token="tok123", oauth_verifier="v-1")

    assert access_token.owner_id == "owner-1"
    assert access_token.token == "acc-tok"
    assert access_token.provider_user_id == "42"
    assert access_token.screen_name == "alice"
    assert await token_store.get("owner-1") == access_token
    assert len(correlation_store) == 0
    assert all(r.signature_valid for r in provider.requests)
    assert provider.requests[1].oauth_params["oauth_verifier"] == "v-1"


@pytest.mark.asyncio
async def test_callback_with_state_value(live, provider, settings):
    service, _, token_store = live
    _script_happy_provider(provider, settings)

    started = await service.start_flow("owner-1")
    await service.complete_callback(
        oauth_token="tok123", oauth_verifier="v-1", state=started.state
    )

    assert await token_store.get("owner-1") is not None


@pytest.mark.asyncio
async def test_replayed_callback_is_rejected_without_exchange(live, provider, settings):
    service, _, _ = live
    _script_happy_provider(provider, settings)

    await service.start_flow("owner-1")
    await service.complete_callback(oauth_token="tok123", oauth_verifier="v-1")

    with pytest.raises(CorrelationNotFound):
        await service.complete_callback(oauth_token="tok123", oauth_verifier="v-1")

    assert len(provider.requests) == 2


@pytest.mark.asyncio
async def test_callback_after_ttl_is_rejected(live, provider, settings, clock):
    service, _, token_store = live
    _script_happy_provider(provider, settings)

    await service.start_flow("owner-1")
    clock.advance(601)

    with pytest.raises(CorrelationNotFound):
        await service.complete_callback(oauth_token="tok123", oauth_verifier="v-1")

    assert await token_store.get("owner-1") is None


@pytest.mark.asyncio
async def test_concurrent_flows_do_not_interfere(live, provider, settings):
    service, _, token_store = live
    for owner in ("a", "b"):
        provider.token_secrets[f"tok-{owner}"] = f"sec-{owner}"
        provider.reply(
            settings.OAUTH1_REQUEST_TOKEN_URL,
            200,
            f"oauth_token=tok-{owner}&oauth_token_secret=sec-{owner}&oauth_callback_confirmed=true",
        )

    first, second = await asyncio.gather(
        service.start_flow("owner-a"), service.start_flow("owner-b")
    )
    assert first.state != second.state

    provider.reply(
        settings.OAUTH1_ACCESS_TOKEN_URL, 200, "oauth_token=at-1&oauth_token_secret=as-1"
    )
    provider.reply(
        settings.OAUTH1_ACCESS_TOKEN_URL, 200, "oauth_token=at-2&oauth_token_secret=as-2"
    )

    # complete in reverse order of starting
    for started, owner in ((second, "owner-b"), (first, "owner-a")):
        token = parse_qs(urlsplit(started.authorize_url).query)["oauth_token"][0]
        access_token = await service.complete_callback(oauth_token=token, oauth_verifier="v")
        assert access_token.owner_id == owner

    assert (await token_store.get("owner-b")).token == "at-1"
    assert (await token_store.get("owner-a")).token == "at-2"


# ===========================================================================
# start_flow
# ===========================================================================


@pytest.mark.parametrize(
    "overrides, setting",
    [
        ({"OAUTH1_CONSUMER_KEY": ""}, "OAUTH1_CONSUMER_KEY"),
        ({"OAUTH1_CONSUMER_SECRET": "  "}, "OAUTH1_CONSUMER_SECRET"),
        ({"OAUTH1_CALLBACK_URL": None}, "OAUTH1_CALLBACK_URL"),
        ({"OAUTH1_CALLBACK_URL": "http://app.example.com/cb"}, "OAUTH1_CALLBACK_URL"),
        ({"OAUTH1_CALLBACK_URL": "https://app.example.com/c b"}, "OAUTH1_CALLBACK_URL"),
    ],
    ids=["no key", "blank secret", "no callback", "plain http", "space in callback"],
)
@pytest.mark.asyncio
async def test_start_flow_fails_fast_on_bad_configuration(
    fake_oauth1_service, fake_correlation_store, fake_token_store, make_settings, overrides, setting
):
    service = OAuth1FlowService(
        oauth1_service=fake_oauth1_service,
        correlation_store=fake_correlation_store,
        token_store=fake_token_store,
        settings=make_settings(**overrides),
    )

    with pytest.raises(ConfigurationError) as exc_info:
        await service.start_flow("owner-1")

    assert exc_info.value.setting == setting
    assert fake_oauth1_service.call_names() == []


@pytest.mark.asyncio
async def test_start_flow_stores_request_token_with_configured_ttl(
    faked_service, fake_oauth1_service, fake_correlation_store, settings
):
    fake_oauth1_service.seed_request_token(_request_token("tok-9"))

    result = await faked_service.start_flow("owner-1")

    [pending] = fake_correlation_store.pending()
    assert pending.state_value == result.state
    assert pending.owner_id == "owner-1"
    assert pending.request_token.token == "tok-9"
    assert fake_correlation_store._calls[0][3] == settings.OAUTH1_CORRELATION_TTL_SECONDS
    assert "tok-9" in result.authorize_url


@pytest.mark.asyncio
async def test_start_flow_requires_callback_confirmation(
    faked_service, fake_oauth1_service, fake_correlation_store
):
    fake_oauth1_service.seed_request_token(_request_token(confirmed=False))

    with pytest.raises(ProviderRejection) as exc_info:
        await faked_service.start_flow("owner-1")

    assert exc_info.value.reason == RejectionReason.CALLBACK_NOT_CONFIRMED
    assert fake_correlation_store.pending() == []


@pytest.mark.asyncio
async def test_start_flow_leg_one_failure_stores_nothing(
    faked_service, fake_oauth1_service, fake_correlation_store
):
    fake_oauth1_service.seed_request_token_error(
        ProviderRejection("nope", status_code=401, reason=RejectionReason.INVALID_CREDENTIALS)
    )

    with pytest.raises(ProviderRejection):
        await faked_service.start_flow("owner-1")

    assert fake_correlation_store.call_names() == []


# ===========================================================================
# complete_callback
# ===========================================================================


@pytest.mark.parametrize(
    "token, verifier, missing",
    [
        (None, "v", ["oauth_token"]),
        ("tok", "", ["oauth_verifier"]),
        (None, None, ["oauth_token", "oauth_verifier"]),
    ],
)
@pytest.mark.asyncio
async def test_callback_missing_parameters(
    faked_service, fake_correlation_store, token, verifier, missing
):
    fake_correlation_store.seed(_entry())

    with pytest.raises(MissingCallbackParameters) as exc_info:
        await faked_service.complete_callback(oauth_token=token, oauth_verifier=verifier)

    assert exc_info.value.missing == missing
    assert len(fake_correlation_store.pending()) == 1


@pytest.mark.asyncio
async def test_denied_callback_consumes_flow_without_exchange(
    faked_service, fake_oauth1_service, fake_correlation_store, fake_token_store
):
    fake_correlation_store.seed(_entry(token="req-tok"))

    with pytest.raises(AuthorizationDenied):
        await faked_service.complete_callback(
            oauth_token=None, oauth_verifier=None, denied="req-tok"
        )

    assert fake_correlation_store.pending() == []
    assert "exchange_token" not in fake_oauth1_service.call_names()
    assert fake_token_store.saved == []


@pytest.mark.asyncio
async def test_unknown_callback_token(faked_service, fake_oauth1_service):
    with pytest.raises(CorrelationNotFound):
        await faked_service.complete_callback(oauth_token="forged", oauth_verifier="v")

    assert "exchange_token" not in fake_oauth1_service.call_names()


@pytest.mark.asyncio
async def test_state_resolving_to_other_token_is_mismatch(
    faked_service, fake_oauth1_service, fake_correlation_store, fake_token_store
):
    fake_correlation_store.seed(_entry(state="state-1", token="req-tok"))

    with pytest.raises(VerifierMismatch):
        await faked_service.complete_callback(
            oauth_token="other-tok", oauth_verifier="v", state="state-1"
        )

    assert "exchange_token" not in fake_oauth1_service.call_names()
    assert fake_token_store.saved == []


@pytest.mark.asyncio
async def test_callback_for_other_owner_is_mismatch(
    faked_service, fake_oauth1_service, fake_correlation_store, fake_token_store
):
    fake_correlation_store.seed(_entry(owner_id="owner-1"))

    with pytest.raises(VerifierMismatch):
        await faked_service.complete_callback(
            oauth_token="req-tok", oauth_verifier="v", expected_owner_id="owner-2"
        )

    assert "exchange_token" not in fake_oauth1_service.call_names()
    assert fake_token_store.saved == []


@pytest.mark.parametrize(
    "error",
    [
        VerifierMismatch(status_code=401),
        TokenExpired(status_code=401),
        ProviderRejection("forbidden", status_code=403),
    ],
    ids=lambda e: type(e).__name__,
)
@pytest.mark.asyncio
async def test_exchange_failure_leaves_token_store_untouched(
    faked_service, fake_oauth1_service, fake_correlation_store, fake_token_store, error
):
    fake_correlation_store.seed(_entry())
    fake_oauth1_service.seed_exchange_error(error)

    with pytest.raises(type(error)):
        await faked_service.complete_callback(oauth_token="req-tok", oauth_verifier="v")

    assert fake_token_store.call_names() == []
    # the flow is spent; a retry must restart at leg 1
    assert fake_correlation_store.pending() == []


@pytest.mark.asyncio
async def test_exchange_receives_stored_request_token_and_verifier(
    faked_service, fake_oauth1_service, fake_correlation_store
):
    fake_correlation_store.seed(_entry())
    fake_oauth1_service.seed_token_response(
        OAuth1TokenResponse(oauth_token="at", oauth_token_secret=SecretStr("as"))
    )

    result = await faked_service.complete_callback(oauth_token="req-tok", oauth_verifier="v-7")

    sent = fake_oauth1_service._last_exchange_kwargs
    assert sent["oauth_verifier"] == "v-7"
    assert sent["request_token"].secret.get_secret_value() == "req-sec"
    assert result.provider_user_id is None


# ===========================================================================
# disconnect / connection_status
# ===========================================================================


@pytest.mark.asyncio
async def test_disconnect(faked_service, fake_token_store):
    fake_token_store.seed(AccessToken(token="t", secret=SecretStr("s"), owner_id="owner-1"))

    assert await faked_service.disconnect("owner-1") is True
    assert await faked_service.disconnect("owner-1") is False


@pytest.mark.asyncio
async def test_connection_status_never_exposes_secrets(faked_service, fake_token_store, settings):
    fake_token_store.seed(AccessToken(token="t", secret=SecretStr("acc-sec"), owner_id="owner-1"))

    status = await faked_service.connection_status("owner-1")

    assert status["has_consumer_key"] is True
    assert status["has_consumer_secret"] is True
    assert status["configuration_error"] is None
    assert status["has_access_token"] is True
    rendered = repr(status)
    assert settings.OAUTH1_CONSUMER_SECRET.get_secret_value() not in rendered
    assert settings.OAUTH1_CONSUMER_KEY not in rendered
    assert "acc-sec" not in rendered


@pytest.mark.asyncio
async def test_connection_status_reports_configuration_error(
    fake_oauth1_service, fake_correlation_store, fake_token_store, make_settings
):
    service = OAuth1FlowService(
        oauth1_service=fake_oauth1_service,
        correlation_store=fake_correlation_store,
        token_store=fake_token_store,
        settings=make_settings(OAUTH1_CONSUMER_KEY=None),
    )

    status = await service.connection_status("owner-1")

    assert status["has_consumer_key"] is False
    assert "consumer key" in status["configuration_error"]
    assert status["has_access_token"] is False


# ===========================================================================
# OAuth1Flow state machine
# ===========================================================================


def test_flow_happy_path_history():
    flow = OAuth1Flow("owner-1")
    for target in (
        FlowState.REQUEST_TOKEN_OBTAINED,
        FlowState.AWAITING_CALLBACK,
        FlowState.ACCESS_TOKEN_OBTAINED,
    ):
        flow.advance(target)

    assert flow.is_terminal
    assert flow.history[0] == FlowState.INITIATED


@pytest.mark.parametrize(
    "start, target",
    [
        (FlowState.INITIATED, FlowState.AWAITING_CALLBACK),
        (FlowState.INITIATED, FlowState.ACCESS_TOKEN_OBTAINED),
        (FlowState.AWAITING_CALLBACK, FlowState.REQUEST_TOKEN_OBTAINED),
        (FlowState.FAILED, FlowState.AWAITING_CALLBACK),
        (FlowState.ACCESS_TOKEN_OBTAINED, FlowState.FAILED),
    ],
)
def test_flow_rejects_invalid_transitions(start, target):
    with pytest.raises(InvalidStateError):
        OAuth1Flow("owner-1", state=start).advance(target)


def test_fail_is_noop_once_terminal():
    flow = OAuth1Flow("owner-1", state=FlowState.ACCESS_TOKEN_OBTAINED)
    flow.fail()
    assert flow.state == FlowState.ACCESS_TOKEN_OBTAINED
