"""OAuth1 domain exceptions.

Taxonomy:
- ``NetworkError``: timeout, connection failure, 5xx. Retryable.
- ``ProviderRejection``: 4xx or unusable 2xx. Needs a config or user change.
- ``VerifierMismatch`` / ``TokenExpired`` / ``AuthorizationDenied``: end the
  current flow instance; the caller restarts at leg 1.
- ``CorrelationNotFound`` / ``AccessTokenNotFound``: store misses.

Messages and attributes only ever hold non-secret fields: status codes and
provider bodies that already went through ``redact_secrets``.
"""

from enum import Enum
from typing import List, Optional

from postloom.core.exceptions import InvalidStateError, NotFoundException, PostloomException


class RejectionReason(str, Enum):
    """Best-effort diagnosis of why the provider refused a request."""

    CALLBACK_URL_MISMATCH = "callback_url_mismatch"
    INVALID_CREDENTIALS = "invalid_credentials"
    PERMISSION_DENIED = "permission_denied"
    CALLBACK_NOT_CONFIRMED = "callback_not_confirmed"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


class OAuth1Error(PostloomException):
    """Base class for failures of an OAuth 1.0a flow or signed call."""

    retryable = False

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NetworkError(OAuth1Error):
    """Raised on timeout, transport failure or a 5xx from the provider."""

    retryable = True

    def __init__(
        self, endpoint: str, message: str, *, status_code: Optional[int] = None
    ) -> None:
        self.endpoint = endpoint
        super().__init__(f"{endpoint}: {message}", status_code=status_code)


class ProviderRejection(OAuth1Error):
    """Raised when the provider refuses a request with a 4xx or an unusable body."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        provider_body: str = "",
        reason: RejectionReason = RejectionReason.UNKNOWN,
        troubleshooting: Optional[List[str]] = None,
    ) -> None:
        self.provider_body = provider_body
        self.reason = reason
        self.troubleshooting = troubleshooting or []
        super().__init__(message, status_code=status_code)


class VerifierMismatch(OAuth1Error):
    """Raised when the verifier or request token does not belong to this flow.

    Covers a provider refusing the verifier (stale or reused request token)
    and a callback whose token or owner does not match the stored flow.
    """

    def __init__(
        self,
        message: str = "OAuth verifier rejected",
        *,
        status_code: Optional[int] = None,
        provider_body: str = "",
    ) -> None:
        self.provider_body = provider_body
        super().__init__(message, status_code=status_code)


class TokenExpired(OAuth1Error):
    """Raised when the provider reports the request token as expired."""

    def __init__(
        self,
        message: str = "Request token expired",
        *,
        status_code: Optional[int] = None,
        provider_body: str = "",
    ) -> None:
        self.provider_body = provider_body
        super().__init__(message, status_code=status_code)


class AuthorizationDenied(OAuth1Error):
    """Raised when the user declined the authorization at the provider."""

    def __init__(self) -> None:
        super().__init__("User denied the authorization request")


class MissingCallbackParameters(OAuth1Error):
    """Raised when a callback lacks ``oauth_token`` or ``oauth_verifier``."""

    def __init__(self, missing: List[str]) -> None:
        self.missing = missing
        super().__init__(f"Callback is missing parameters: {', '.join(missing)}")


class InvalidFlowTransition(InvalidStateError):
    """Raised when a flow is moved along an edge the state machine does not have."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move OAuth1 flow from {current} to {target}")


class CorrelationNotFound(NotFoundException):
    """Raised when no pending flow matches a callback (expired, consumed or unknown)."""

    def __init__(self) -> None:
        super().__init__(
            "OAuth1 flow not found or expired. Request token may have been used already."
        )


class AccessTokenNotFound(NotFoundException):
    """Raised when an owner has no stored OAuth 1.0a access credentials."""

    def __init__(self, owner_id: str) -> None:
        self.owner_id = owner_id
        super().__init__(f"No OAuth1 access token stored for owner: {owner_id}")
