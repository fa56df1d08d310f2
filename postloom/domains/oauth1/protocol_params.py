"""OAuth protocol parameters: nonces, timestamps, and signed parameter sets."""

import secrets
import time
from typing import Dict, Optional

from postloom.domains.oauth1.encoding import OAuthParameterSet, iter_params
from postloom.domains.oauth1.signature import SIGNATURE_METHOD, sign

OAUTH_VERSION = "1.0"

# 32 random bytes per nonce keeps (nonce, timestamp) collisions negligible
NONCE_BYTES = 32


def generate_nonce() -> str:
    """Generate a cryptographically secure random nonce."""
    return secrets.token_urlsafe(NONCE_BYTES)


def get_timestamp() -> str:
    """Get current Unix timestamp as string."""
    return str(int(time.time()))


def build_protocol_params(
    consumer_key: str,
    *,
    token: Optional[str] = None,
    extra: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """Fresh protocol parameters (no signature yet).

    ``extra`` carries leg-specific protocol fields such as ``oauth_callback``
    or ``oauth_verifier``.
    """
    params = {
        "oauth_consumer_key": consumer_key,
        "oauth_signature_method": SIGNATURE_METHOD,
        "oauth_timestamp": get_timestamp(),
        "oauth_nonce": generate_nonce(),
        "oauth_version": OAUTH_VERSION,
    }
    if token is not None:
        params["oauth_token"] = token
    if extra:
        params.update(extra)
    return params


def signed_protocol_params(
    method: str,
    url: str,
    *,
    consumer_key: str,
    consumer_secret: str,
    token: Optional[str] = None,
    token_secret: Optional[str] = None,
    extra: Optional[Dict[str, str]] = None,
    request_params: Optional[OAuthParameterSet] = None,
) -> Dict[str, str]:
    """Build protocol parameters and attach ``oauth_signature``.

    ``request_params`` (form body or extra query fields) take part in the
    signature but are not returned; only protocol parameters belong in the
    Authorization header.
    """
    oauth_params = build_protocol_params(consumer_key, token=token, extra=extra)

    signing_params = list(oauth_params.items())
    if request_params:
        signing_params.extend(iter_params(request_params))

    oauth_params["oauth_signature"] = sign(
        method, url, signing_params, consumer_secret, token_secret
    )
    return oauth_params
