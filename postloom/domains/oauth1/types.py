"""Value types for the OAuth1 domain.

These live in a separate module to avoid circular imports between
service implementations and protocol definitions.

Secrets are ``SecretStr`` throughout: ``repr`` and log formatting show
``**********``, and the raw value is read with ``get_secret_value()`` only
where a request is signed or a record is encrypted for storage.
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from postloom.core.config import Settings
from postloom.core.exceptions import ConfigurationError
from postloom.domains.oauth1.exceptions import InvalidFlowTransition

# Characters allowed in a URI (RFC 3986), including percent-escapes
_URI_CHARS = re.compile(r"^[a-zA-Z0-9\-._~:/?#\[\]@!$&'()*+,;=%]+$")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class OAuth1Credentials(BaseModel):
    """Consumer credentials and registered callback for one provider app."""

    model_config = ConfigDict(frozen=True)

    consumer_key: str
    consumer_secret: SecretStr
    callback_url: str

    @classmethod
    def from_settings(cls, settings: Settings) -> "OAuth1Credentials":
        """Validate configured credentials, failing before any network call."""
        if not settings.OAUTH1_CONSUMER_KEY:
            raise ConfigurationError(
                "OAUTH1_CONSUMER_KEY", "OAuth 1.0a consumer key not configured"
            )
        if settings.OAUTH1_CONSUMER_SECRET is None:
            raise ConfigurationError(
                "OAUTH1_CONSUMER_SECRET", "OAuth 1.0a consumer secret not configured"
            )
        if not settings.OAUTH1_CALLBACK_URL:
            raise ConfigurationError(
                "OAUTH1_CALLBACK_URL", "OAuth 1.0a callback URL not configured"
            )

        validate_callback_url(settings.OAUTH1_CALLBACK_URL)

        return cls(
            consumer_key=settings.OAUTH1_CONSUMER_KEY,
            consumer_secret=settings.OAUTH1_CONSUMER_SECRET,
            callback_url=settings.OAUTH1_CALLBACK_URL,
        )


def validate_callback_url(callback_url: str) -> None:
    """Require an absolute HTTPS URL made only of RFC 3986 URI characters.

    Providers compare the callback byte-for-byte with the registered value,
    so it is passed through untouched once it validates.
    """
    try:
        parts = urlsplit(callback_url)
    except ValueError as e:
        raise ConfigurationError("OAUTH1_CALLBACK_URL", f"Callback URL is malformed: {e}") from e

    if parts.scheme != "https" or not parts.netloc:
        raise ConfigurationError(
            "OAUTH1_CALLBACK_URL", "Callback URL must be an absolute https URL"
        )
    if not _URI_CHARS.match(callback_url):
        raise ConfigurationError(
            "OAUTH1_CALLBACK_URL", "Callback URL contains characters outside the URI character set"
        )


class RequestToken(BaseModel):
    """Temporary credentials from leg 1. Single use."""

    model_config = ConfigDict(frozen=True)

    token: str
    secret: SecretStr
    callback_confirmed: bool = False
    obtained_at: datetime = Field(default_factory=utc_now)


class AccessToken(BaseModel):
    """Long-lived token credentials from leg 3, owned by one user."""

    model_config = ConfigDict(frozen=True)

    token: str
    secret: SecretStr
    owner_id: str
    obtained_at: datetime = Field(default_factory=utc_now)
    provider_user_id: Optional[str] = None
    screen_name: Optional[str] = None


class CorrelationEntry(BaseModel):
    """A pending authorization waiting for its provider callback."""

    model_config = ConfigDict(frozen=True)

    state_value: str
    owner_id: str
    request_token: RequestToken
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class OAuth1TokenResponse(BaseModel):
    """Response from an OAuth1 token endpoint."""

    oauth_token: str
    oauth_token_secret: SecretStr
    additional_params: Dict[str, str] = Field(default_factory=dict)


class StartFlowResult(BaseModel):
    """What the start-flow handler hands to the browser. No token material."""

    authorize_url: str
    state: str


class FlowState(str, Enum):
    """Lifecycle of one authorization flow instance."""

    INITIATED = "initiated"
    REQUEST_TOKEN_OBTAINED = "request_token_obtained"
    AWAITING_CALLBACK = "awaiting_callback"
    ACCESS_TOKEN_OBTAINED = "access_token_obtained"
    FAILED = "failed"


_TRANSITIONS: Dict[FlowState, frozenset] = {
    FlowState.INITIATED: frozenset({FlowState.REQUEST_TOKEN_OBTAINED, FlowState.FAILED}),
    FlowState.REQUEST_TOKEN_OBTAINED: frozenset({FlowState.AWAITING_CALLBACK, FlowState.FAILED}),
    FlowState.AWAITING_CALLBACK: frozenset({FlowState.ACCESS_TOKEN_OBTAINED, FlowState.FAILED}),
    FlowState.ACCESS_TOKEN_OBTAINED: frozenset(),
    FlowState.FAILED: frozenset(),
}


class OAuth1Flow:
    """State holder for one flow instance. Moves forward only."""

    def __init__(self, owner_id: str, state: FlowState = FlowState.INITIATED) -> None:
        self.owner_id = owner_id
        self.state = state
        self.history: List[FlowState] = [state]

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self.state]

    def advance(self, target: FlowState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidFlowTransition(self.state.value, target.value)
        self.state = target
        self.history.append(target)

    def fail(self) -> None:
        """Move to FAILED. A flow that already ended stays where it is."""
        if not self.is_terminal:
            self.advance(FlowState.FAILED)
