"""Protocols for OAuth1 domain dependencies."""

from typing import Any, Mapping, Optional, Protocol

import httpx

from postloom.core.logging import ContextualLogger
from postloom.domains.oauth1.encoding import OAuthParameterSet
from postloom.domains.oauth1.types import (
    AccessToken,
    CorrelationEntry,
    OAuth1Credentials,
    OAuth1TokenResponse,
    RequestToken,
    StartFlowResult,
)


class OAuth1ServiceProtocol(Protocol):
    """OAuth1 authentication flow capability (the three legs)."""

    async def get_request_token(
        self,
        *,
        request_token_url: str,
        credentials: OAuth1Credentials,
        logger: ContextualLogger,
    ) -> RequestToken:
        """Obtain temporary credentials (request token)."""
        ...

    async def exchange_token(
        self,
        *,
        access_token_url: str,
        credentials: OAuth1Credentials,
        request_token: RequestToken,
        oauth_verifier: str,
        logger: ContextualLogger,
    ) -> OAuth1TokenResponse:
        """Exchange temporary credentials for access token credentials."""
        ...

    def build_authorization_url(
        self,
        *,
        authorization_url: str,
        oauth_token: str,
        force_login: bool = False,
        screen_name: Optional[str] = None,
    ) -> str:
        """Build the authorization URL for user consent."""
        ...


class CorrelationStoreProtocol(Protocol):
    """Short-lived, single-use mapping from a pending flow to its owner.

    Entries are reachable by their state value and by their request token.
    """

    async def put(
        self, owner_id: str, request_token: RequestToken, ttl_seconds: Optional[int] = None
    ) -> str:
        """Store a pending flow and return its new opaque state value."""
        ...

    async def take_by_state_or_token(self, key: str) -> Optional[CorrelationEntry]:
        """Remove and return the entry for ``key``; None if absent or expired."""
        ...


class TokenStoreProtocol(Protocol):
    """Durable storage of access credentials, keyed by owner id."""

    async def save(self, access_token: AccessToken) -> None:
        """Store (or replace) the owner's access credentials."""
        ...

    async def get(self, owner_id: str) -> Optional[AccessToken]:
        """Return the owner's access credentials, or None."""
        ...

    async def delete(self, owner_id: str) -> bool:
        """Remove the owner's access credentials. True if something was removed."""
        ...


class SignedRequestBuilderProtocol(Protocol):
    """Signs calls made with stored access credentials."""

    def build_authorization_header(
        self,
        method: str,
        url: str,
        extra_params: Optional[OAuthParameterSet],
        access_token: AccessToken,
    ) -> str:
        """Return a ready-to-send ``Authorization`` header value."""
        ...

    async def header_for_owner(
        self,
        method: str,
        url: str,
        owner_id: str,
        extra_params: Optional[OAuthParameterSet] = None,
    ) -> str:
        """Load the owner's access token and sign with it."""
        ...

    async def send(
        self,
        method: str,
        url: str,
        access_token: AccessToken,
        *,
        params: Optional[Mapping[str, str]] = None,
        data: Optional[Mapping[str, str]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Perform a signed request, retrying transient failures."""
        ...


class OAuth1FlowServiceProtocol(Protocol):
    """Start-flow and callback operations for the web layer."""

    async def start_flow(self, owner_id: str) -> StartFlowResult:
        """Run leg 1, remember the flow, and return the authorize URL."""
        ...

    async def complete_callback(
        self,
        *,
        oauth_token: Optional[str],
        oauth_verifier: Optional[str],
        state: Optional[str] = None,
        denied: Optional[str] = None,
        expected_owner_id: Optional[str] = None,
    ) -> AccessToken:
        """Resolve the flow, run leg 3, and persist the access token."""
        ...

    async def disconnect(self, owner_id: str) -> bool:
        """Forget the owner's stored access credentials."""
        ...

    async def connection_status(self, owner_id: str) -> dict:
        """Non-secret configuration and connection diagnostics."""
        ...
