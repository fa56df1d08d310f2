"""Provider rejection diagnosis and secret redaction."""

from typing import Iterable, List, Optional, Tuple

from postloom.core.logging import redact_text
from postloom.domains.oauth1.exceptions import RejectionReason

_REDACTED = "[REDACTED]"
_MAX_BODY_CHARS = 2000


def redact_secrets(text: str, secrets: Iterable[Optional[str]] = ()) -> str:
    """Remove secret values from a provider body before it is kept or logged.

    Strips ``oauth_token_secret`` / ``oauth_signature`` values and every
    literal occurrence of the given secrets, then truncates.
    """
    redacted = redact_text(text)
    for secret in secrets:
        if secret:
            redacted = redacted.replace(secret, _REDACTED)
    return redacted[:_MAX_BODY_CHARS]


def classify_rejection(
    status_code: int, body: str, callback_url: Optional[str] = None
) -> Tuple[RejectionReason, List[str]]:
    """Guess the cause of a 4xx from the provider and suggest fixes."""
    lowered = body.lower()

    if "callback" in lowered or "not approved" in lowered or "415" in lowered:
        target = callback_url or "the configured callback URL"
        return RejectionReason.CALLBACK_URL_MISMATCH, [
            "Open the provider developer portal and find the app's callback URL list",
            f"Register this exact URL: {target}",
            "No trailing slash and no case differences; the match is exact",
            "OAuth 1.0a and OAuth 2.0 callbacks are separate entries; both must be listed",
            "Save and allow a few minutes for the change to propagate",
        ]

    if (
        status_code == 401
        or "invalid consumer key" in lowered
        or "could not authenticate" in lowered
    ):
        return RejectionReason.INVALID_CREDENTIALS, [
            "Check OAUTH1_CONSUMER_KEY and OAUTH1_CONSUMER_SECRET",
            "Use the OAuth 1.0a API key and secret, not the OAuth 2.0 client id and secret",
        ]

    if status_code == 403 or "forbidden" in lowered:
        return RejectionReason.PERMISSION_DENIED, [
            "Enable OAuth 1.0a in the app's user authentication settings",
            "Confirm the app has the access level required for this grant",
        ]

    return RejectionReason.UNKNOWN, []
