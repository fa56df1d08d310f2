"""OAuth1 authentication service for providers that use the OAuth 1.0a protocol.

This service handles the HTTP side of the 3-legged OAuth1 flow:
1. Obtain temporary credentials (request token)
2. Redirect user for authorization
3. Exchange for access token

Reference: RFC 5849 - The OAuth 1.0 Protocol
"""

from typing import Optional
from urllib.parse import parse_qsl, quote, urlencode, urlsplit

import httpx
from pydantic import SecretStr

from postloom.core.logging import ContextualLogger
from postloom.domains.oauth1.exceptions import (
    ProviderRejection,
    RejectionReason,
    TokenExpired,
    VerifierMismatch,
)
from postloom.domains.oauth1.http_client import send_request
from postloom.domains.oauth1.protocol_params import signed_protocol_params
from postloom.domains.oauth1.protocols import OAuth1ServiceProtocol
from postloom.domains.oauth1.rejection import classify_rejection, redact_secrets
from postloom.domains.oauth1.retry_helpers import network_retrying
from postloom.domains.oauth1.signature import build_authorization_header
from postloom.domains.oauth1.types import OAuth1Credentials, OAuth1TokenResponse, RequestToken

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
_TOKEN_FIELDS = ("oauth_token", "oauth_token_secret")


class OAuth1Service(OAuth1ServiceProtocol):
    """Service for handling OAuth1 authentication flows."""

    def __init__(
        self,
        *,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Configure retry bounds and the HTTP transport (swappable for tests)."""
        self._max_attempts = max_attempts
        self._backoff_seconds = backoff_seconds
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def _post_signed(self, url: str, oauth_params: dict) -> httpx.Response:
        return await send_request(
            "POST",
            url,
            headers={
                "Authorization": build_authorization_header(oauth_params),
                "Content-Type": _FORM_CONTENT_TYPE,
            },
            timeout=self._timeout_seconds,
            transport=self._transport,
        )

    async def get_request_token(
        self,
        *,
        request_token_url: str,
        credentials: OAuth1Credentials,
        logger: ContextualLogger,
    ) -> RequestToken:
        """Obtain temporary credentials (request token) from OAuth1 provider.

        Args:
            request_token_url: Provider's request token endpoint
            credentials: Consumer key/secret and the registered callback URL
            logger: Logger for debugging

        Returns:
            RequestToken with the temporary credentials

        Raises:
            ProviderRejection: If the provider refuses the request (4xx) or
                answers without a token and secret
            NetworkError: If every attempt timed out or hit a 5xx
        """
        consumer_secret = credentials.consumer_secret.get_secret_value()

        logger.info(f"Requesting OAuth1 temporary credentials from {request_token_url}")

        async for attempt in network_retrying(
            max_attempts=self._max_attempts,
            backoff_seconds=self._backoff_seconds,
            logger=logger,
            operation="OAuth1 request token",
        ):
            with attempt:
                # Fresh nonce and timestamp on every attempt
                oauth_params = signed_protocol_params(
                    "POST",
                    request_token_url,
                    consumer_key=credentials.consumer_key,
                    consumer_secret=consumer_secret,
                    extra={"oauth_callback": credentials.callback_url},
                )
                response = await self._post_signed(request_token_url, oauth_params)

        body = redact_secrets(response.text, [consumer_secret])

        if response.status_code >= 400:
            reason, troubleshooting = classify_rejection(
                response.status_code, body, credentials.callback_url
            )
            logger.error(
                f"HTTP error obtaining request token: {response.status_code} "
                f"({reason.value}) - {body}"
            )
            raise ProviderRejection(
                f"Failed to obtain request token: provider returned {response.status_code}",
                status_code=response.status_code,
                provider_body=body,
                reason=reason,
                troubleshooting=troubleshooting,
            )

        response_params = dict(parse_qsl(response.text))

        if not all(response_params.get(field) for field in _TOKEN_FIELDS):
            logger.error(f"Invalid response from OAuth1 provider: {body}")
            raise ProviderRejection(
                "Invalid request token response: missing oauth_token or oauth_token_secret",
                status_code=response.status_code,
                provider_body=body,
                reason=RejectionReason.MALFORMED_RESPONSE,
            )

        logger.info("Successfully obtained OAuth1 temporary credentials")

        return RequestToken(
            token=response_params["oauth_token"],
            secret=SecretStr(response_params["oauth_token_secret"]),
            callback_confirmed=response_params.get("oauth_callback_confirmed", "").lower()
            == "true",
        )

    async def exchange_token(
        self,
        *,
        access_token_url: str,
        credentials: OAuth1Credentials,
        request_token: RequestToken,
        oauth_verifier: str,
        logger: ContextualLogger,
    ) -> OAuth1TokenResponse:
        """Exchange temporary credentials for access token credentials.

        Sent exactly once. A request token is single-use, so a retry after an
        ambiguous failure would only produce a misleading rejection.

        Args:
            access_token_url: Provider's access token endpoint
            credentials: Consumer key/secret
            request_token: Temporary credentials from step 1
            oauth_verifier: Verification code from user authorization
            logger: Logger for debugging

        Returns:
            OAuth1TokenResponse with access token credentials

        Raises:
            VerifierMismatch: If the provider refuses the verifier or token
            TokenExpired: If the provider reports the request token expired
            ProviderRejection: For any other 4xx or an unusable body
            NetworkError: On timeout or 5xx (not retried)
        """
        consumer_secret = credentials.consumer_secret.get_secret_value()
        request_secret = request_token.secret.get_secret_value()

        oauth_params = signed_protocol_params(
            "POST",
            access_token_url,
            consumer_key=credentials.consumer_key,
            consumer_secret=consumer_secret,
            token=request_token.token,
            token_secret=request_secret,
            extra={"oauth_verifier": oauth_verifier},
        )

        logger.info(
            f"Exchanging OAuth1 temporary credentials for access token at {access_token_url}"
        )

        response = await self._post_signed(access_token_url, oauth_params)
        body = redact_secrets(response.text, [consumer_secret, request_secret])

        if response.status_code >= 400:
            logger.error(f"HTTP error exchanging token: {response.status_code} - {body}")
            raise self._classify_exchange_error(response.status_code, body)

        response_params = dict(parse_qsl(response.text))

        if not all(response_params.get(field) for field in _TOKEN_FIELDS):
            logger.error(f"Invalid access token response: {body}")
            raise ProviderRejection(
                "Invalid access token response: missing oauth_token or oauth_token_secret",
                status_code=response.status_code,
                provider_body=body,
                reason=RejectionReason.MALFORMED_RESPONSE,
            )

        logger.info("Successfully obtained OAuth1 access token")

        return OAuth1TokenResponse(
            oauth_token=response_params["oauth_token"],
            oauth_token_secret=SecretStr(response_params["oauth_token_secret"]),
            additional_params={
                k: v for k, v in response_params.items() if k not in _TOKEN_FIELDS
            },
        )

    def _classify_exchange_error(self, status_code: int, body: str) -> Exception:
        lowered = body.lower()
        if "expired" in lowered:
            return TokenExpired(status_code=status_code, provider_body=body)
        if status_code == 401 or "verifier" in lowered:
            return VerifierMismatch(
                f"Provider rejected the OAuth verifier ({status_code})",
                status_code=status_code,
                provider_body=body,
            )
        reason, troubleshooting = classify_rejection(status_code, body)
        return ProviderRejection(
            f"Failed to exchange OAuth1 token: provider returned {status_code}",
            status_code=status_code,
            provider_body=body,
            reason=reason,
            troubleshooting=troubleshooting,
        )

    def build_authorization_url(
        self,
        *,
        authorization_url: str,
        oauth_token: str,
        force_login: bool = False,
        screen_name: Optional[str] = None,
    ) -> str:
        """Build the authorization URL for user consent (step 2 of OAuth1 flow).

        Args:
            authorization_url: Provider's authorization endpoint
            oauth_token: Temporary token from step 1
            force_login: Ask the provider to re-prompt for login
            screen_name: Optional account name to prefill on the login form

        Returns:
            Complete authorization URL for user redirect
        """
        params = {"oauth_token": oauth_token}

        if force_login:
            params["force_login"] = "true"
        if screen_name:
            params["screen_name"] = screen_name

        separator = "&" if urlsplit(authorization_url).query else "?"
        return f"{authorization_url}{separator}{urlencode(params, quote_via=quote)}"
