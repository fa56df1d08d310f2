"""OAuth1 flow service: the start-flow and callback operations.

Owns the per-flow state machine:

    INITIATED → REQUEST_TOKEN_OBTAINED → AWAITING_CALLBACK → ACCESS_TOKEN_OBTAINED
        └──────────────┴─────────────────────┴──→ FAILED

Between the two HTTP requests the flow lives only in the correlation store;
the callback rebuilds it at AWAITING_CALLBACK from the stored entry. Does NOT
know about web handlers, sessions, or what is done with the token later.
"""

from typing import Any, Dict, Optional

from postloom.core.config import Settings
from postloom.core.exceptions import ConfigurationError
from postloom.core.logging import ContextualLogger, logger
from postloom.domains.oauth1.exceptions import (
    AuthorizationDenied,
    CorrelationNotFound,
    MissingCallbackParameters,
    OAuth1Error,
    ProviderRejection,
    RejectionReason,
    VerifierMismatch,
)
from postloom.domains.oauth1.protocols import (
    CorrelationStoreProtocol,
    OAuth1FlowServiceProtocol,
    OAuth1ServiceProtocol,
    TokenStoreProtocol,
)
from postloom.domains.oauth1.types import (
    AccessToken,
    FlowState,
    OAuth1Credentials,
    OAuth1Flow,
    StartFlowResult,
)


class OAuth1FlowService(OAuth1FlowServiceProtocol):
    """Runs three-legged OAuth 1.0a authorizations end to end.

    Responsibilities:
    - Start: request token, remember the flow, authorize URL
    - Callback: resolve the flow, exchange the verifier, persist the token
    - Disconnect and non-secret diagnostics

    Holds no per-flow state itself; concurrent flows share only the stores.
    """

    def __init__(
        self,
        *,
        oauth1_service: OAuth1ServiceProtocol,
        correlation_store: CorrelationStoreProtocol,
        token_store: TokenStoreProtocol,
        settings: Settings,
        logger: ContextualLogger = logger,
    ) -> None:
        """Store dependencies for OAuth1 initiation/callback orchestration."""
        self._oauth1_service = oauth1_service
        self._correlation_store = correlation_store
        self._token_store = token_store
        self._settings = settings
        self._logger = logger.with_context(flow="oauth1")

    def _credentials(self) -> OAuth1Credentials:
        return OAuth1Credentials.from_settings(self._settings)

    def _transition(self, flow: OAuth1Flow, target: FlowState, log: ContextualLogger) -> None:
        flow.advance(target)
        log.info(f"OAuth1 flow -> {target.value}")

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    async def start_flow(self, owner_id: str) -> StartFlowResult:
        """Start OAuth1 flow: get request token and build authorization URL.

        Raises:
            ConfigurationError: Consumer key, secret or callback URL missing
                or invalid. Raised before any network call.
            ProviderRejection, NetworkError: Leg 1 failed.
        """
        log = self._logger.with_context(owner_id=owner_id)
        credentials = self._credentials()

        flow = OAuth1Flow(owner_id)
        try:
            request_token = await self._oauth1_service.get_request_token(
                request_token_url=self._settings.OAUTH1_REQUEST_TOKEN_URL,
                credentials=credentials,
                logger=log,
            )
            if not request_token.callback_confirmed:
                raise ProviderRejection(
                    "Provider did not confirm the callback URL (oauth_callback_confirmed)",
                    reason=RejectionReason.CALLBACK_NOT_CONFIRMED,
                )
            self._transition(flow, FlowState.REQUEST_TOKEN_OBTAINED, log)

            state_value = await self._correlation_store.put(
                owner_id,
                request_token,
                ttl_seconds=self._settings.OAUTH1_CORRELATION_TTL_SECONDS,
            )
            authorize_url = self._oauth1_service.build_authorization_url(
                authorization_url=self._settings.OAUTH1_AUTHORIZE_URL,
                oauth_token=request_token.token,
            )
            self._transition(flow, FlowState.AWAITING_CALLBACK, log)
        except Exception as e:
            flow.fail()
            log.warning(f"OAuth1 flow -> {FlowState.FAILED.value}: {type(e).__name__}")
            raise

        return StartFlowResult(authorize_url=authorize_url, state=state_value)

    # ------------------------------------------------------------------
    # Callback
    # ------------------------------------------------------------------

    async def complete_callback(
        self,
        *,
        oauth_token: Optional[str],
        oauth_verifier: Optional[str],
        state: Optional[str] = None,
        denied: Optional[str] = None,
        expected_owner_id: Optional[str] = None,
    ) -> AccessToken:
        """Complete OAuth1 flow from callback.

        Args:
            oauth_token: Request token echoed back by the provider
            oauth_verifier: Verifier issued after the user approved
            state: Opaque state value, when the callback carries one
            denied: Set by the provider when the user declined; holds the
                request token
            expected_owner_id: Identity of the session receiving the
                callback, when the handler knows it

        Returns:
            The persisted AccessToken

        Raises:
            AuthorizationDenied: The user declined. No exchange is attempted.
            MissingCallbackParameters: Token or verifier absent.
            CorrelationNotFound: No live flow matches (expired, used, unknown).
            VerifierMismatch: The callback does not belong to the stored
                flow, or the provider refused the verifier.
            TokenExpired, ProviderRejection, NetworkError: Leg 3 failed.
        """
        if denied:
            # Consume the pending flow so it cannot be completed later
            entry = await self._correlation_store.take_by_state_or_token(state or denied)
            owner = entry.owner_id if entry else "unknown"
            self._logger.with_context(owner_id=owner).info(
                "OAuth1 flow -> failed: user denied authorization"
            )
            raise AuthorizationDenied()

        missing = [
            name
            for name, value in (("oauth_token", oauth_token), ("oauth_verifier", oauth_verifier))
            if not value
        ]
        if missing:
            raise MissingCallbackParameters(missing)

        credentials = self._credentials()

        entry = await self._correlation_store.take_by_state_or_token(state or oauth_token)
        if entry is None:
            self._logger.warning("OAuth1 callback did not match any pending flow")
            raise CorrelationNotFound()

        log = self._logger.with_context(owner_id=entry.owner_id)
        flow = OAuth1Flow(entry.owner_id, state=FlowState.AWAITING_CALLBACK)

        try:
            if entry.request_token.token != oauth_token:
                raise VerifierMismatch("Callback token does not match the stored flow")
            if expected_owner_id is not None and expected_owner_id != entry.owner_id:
                raise VerifierMismatch("Callback belongs to a different owner")

            token_response = await self._oauth1_service.exchange_token(
                access_token_url=self._settings.OAUTH1_ACCESS_TOKEN_URL,
                credentials=credentials,
                request_token=entry.request_token,
                oauth_verifier=oauth_verifier,
                logger=log,
            )
        except OAuth1Error as e:
            flow.fail()
            log.warning(f"OAuth1 flow -> {FlowState.FAILED.value}: {type(e).__name__}")
            raise

        access_token = AccessToken(
            token=token_response.oauth_token,
            secret=token_response.oauth_token_secret,
            owner_id=entry.owner_id,
            provider_user_id=token_response.additional_params.get("user_id"),
            screen_name=token_response.additional_params.get("screen_name"),
        )
        await self._token_store.save(access_token)
        self._transition(flow, FlowState.ACCESS_TOKEN_OBTAINED, log)

        return access_token

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------

    async def disconnect(self, owner_id: str) -> bool:
        removed = await self._token_store.delete(owner_id)
        self._logger.with_context(owner_id=owner_id).info(
            f"OAuth1 access credentials {'removed' if removed else 'not present'}"
        )
        return removed

    async def connection_status(self, owner_id: str) -> Dict[str, Any]:
        """Report configuration and connection state without any key material."""
        try:
            self._credentials()
            configuration_error = None
        except ConfigurationError as e:
            configuration_error = e.message

        return {
            "has_consumer_key": bool(self._settings.OAUTH1_CONSUMER_KEY),
            "has_consumer_secret": self._settings.OAUTH1_CONSUMER_SECRET is not None,
            "callback_url": self._settings.OAUTH1_CALLBACK_URL,
            "configuration_error": configuration_error,
            "request_token_url": self._settings.OAUTH1_REQUEST_TOKEN_URL,
            "authorize_url": self._settings.OAUTH1_AUTHORIZE_URL,
            "access_token_url": self._settings.OAUTH1_ACCESS_TOKEN_URL,
            "has_access_token": await self._token_store.get(owner_id) is not None,
        }
