"""Fake OAuth1Service for testing."""

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

from pydantic import SecretStr

from postloom.core.logging import ContextualLogger
from postloom.domains.oauth1.types import OAuth1Credentials, OAuth1TokenResponse, RequestToken


class FakeOAuth1Service:
    """In-memory fake for OAuth1ServiceProtocol."""

    def __init__(self) -> None:
        self._calls: List[Tuple[Any, ...]] = []
        self._request_token = RequestToken(
            token="fake_request_token",
            secret=SecretStr("fake_request_secret"),
            callback_confirmed=True,
        )
        self._token_response = OAuth1TokenResponse(
            oauth_token="fake_access_token",
            oauth_token_secret=SecretStr("fake_access_secret"),
        )
        self._request_token_error: Optional[Exception] = None
        self._exchange_error: Optional[Exception] = None
        self._last_exchange_kwargs: Dict[str, Any] = {}

    def seed_request_token(self, request_token: RequestToken) -> None:
        self._request_token = request_token

    def seed_token_response(self, response: OAuth1TokenResponse) -> None:
        self._token_response = response

    def seed_request_token_error(self, error: Exception) -> None:
        self._request_token_error = error

    def seed_exchange_error(self, error: Exception) -> None:
        self._exchange_error = error

    def call_names(self) -> List[str]:
        return [call[0] for call in self._calls]

    async def get_request_token(
        self,
        *,
        request_token_url: str,
        credentials: OAuth1Credentials,
        logger: ContextualLogger,
    ) -> RequestToken:
        self._calls.append(("get_request_token", request_token_url, credentials.consumer_key))
        if self._request_token_error is not None:
            raise self._request_token_error
        return self._request_token

    async def exchange_token(
        self,
        *,
        access_token_url: str,
        credentials: OAuth1Credentials,
        request_token: RequestToken,
        oauth_verifier: str,
        logger: ContextualLogger,
    ) -> OAuth1TokenResponse:
        self._calls.append(("exchange_token", access_token_url, request_token.token))
        self._last_exchange_kwargs = {
            "access_token_url": access_token_url,
            "request_token": request_token,
            "oauth_verifier": oauth_verifier,
        }
        if self._exchange_error is not None:
            raise self._exchange_error
        return self._token_response

    def build_authorization_url(
        self,
        *,
        authorization_url: str,
        oauth_token: str,
        force_login: bool = False,
        screen_name: Optional[str] = None,
    ) -> str:
        self._calls.append(("build_authorization_url", authorization_url, oauth_token))
        return f"{authorization_url}?oauth_token={quote(oauth_token, safe='')}"
