"""Signing for API calls made with stored OAuth 1.0a access credentials.

Used by the media upload client. Every header gets a fresh nonce and
timestamp, including each retry of the same request.
"""

from typing import Any, Mapping, Optional

import httpx

from postloom.core.logging import ContextualLogger, logger
from postloom.domains.oauth1.encoding import OAuthParameterSet, iter_params
from postloom.domains.oauth1.exceptions import AccessTokenNotFound
from postloom.domains.oauth1.http_client import send_request
from postloom.domains.oauth1.protocol_params import signed_protocol_params
from postloom.domains.oauth1.protocols import SignedRequestBuilderProtocol, TokenStoreProtocol
from postloom.domains.oauth1.retry_helpers import network_retrying
from postloom.domains.oauth1.signature import build_authorization_header
from postloom.domains.oauth1.types import AccessToken, OAuth1Credentials

_NON_FORM_BODY_KWARGS = ("files", "content", "json")


class SignedRequestBuilder(SignedRequestBuilderProtocol):
    """Builds ``Authorization`` headers from an access token and sends signed calls."""

    def __init__(
        self,
        *,
        credentials: OAuth1Credentials,
        token_store: TokenStoreProtocol,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: ContextualLogger = logger,
    ) -> None:
        self._credentials = credentials
        self._token_store = token_store
        self._max_attempts = max_attempts
        self._backoff_seconds = backoff_seconds
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._logger = logger.with_context(component="oauth1_signed_request")

    def build_authorization_header(
        self,
        method: str,
        url: str,
        extra_params: Optional[OAuthParameterSet],
        access_token: AccessToken,
    ) -> str:
        """Sign ``method url`` with the access token.

        ``extra_params`` are the form-body or query fields of the call; they
        are signed but only protocol parameters appear in the header.
        """
        oauth_params = signed_protocol_params(
            method,
            url,
            consumer_key=self._credentials.consumer_key,
            consumer_secret=self._credentials.consumer_secret.get_secret_value(),
            token=access_token.token,
            token_secret=access_token.secret.get_secret_value(),
            request_params=extra_params,
        )
        return build_authorization_header(oauth_params)

    async def header_for_owner(
        self,
        method: str,
        url: str,
        owner_id: str,
        extra_params: Optional[OAuthParameterSet] = None,
    ) -> str:
        access_token = await self._token_store.get(owner_id)
        if access_token is None:
            raise AccessTokenNotFound(owner_id)
        return self.build_authorization_header(method, url, extra_params, access_token)

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
        """Send a signed request and return the provider's response.

        ``params`` (query) are always signed. ``data`` is signed only when it
        is the whole body, sent as ``application/x-www-form-urlencoded``; with
        ``files``, ``content`` or ``json`` the body is not a single-part form
        and RFC 5849 section 3.4.1.3.1 leaves its fields out of the signature.
        5xx and timeouts are retried with a new signature; 4xx responses are
        returned untouched.
        """
        signed_fields = list(iter_params(params or {}))
        if not any(kwargs.get(name) is not None for name in _NON_FORM_BODY_KWARGS):
            signed_fields += list(iter_params(data or {}))
        extra_headers = dict(kwargs.pop("headers", None) or {})

        async for attempt in network_retrying(
            max_attempts=self._max_attempts,
            backoff_seconds=self._backoff_seconds,
            logger=self._logger,
            operation=f"Signed {method.upper()} {url}",
        ):
            with attempt:
                headers = {
                    **extra_headers,
                    "Authorization": self.build_authorization_header(
                        method, url, signed_fields, access_token
                    ),
                }
                response = await send_request(
                    method.upper(),
                    url,
                    headers=headers,
                    timeout=self._timeout_seconds,
                    transport=self._transport,
                    params=params,
                    data=data,
                    **kwargs,
                )

        self._logger.debug(f"Signed {method.upper()} {url} returned {response.status_code}")
        return response
