"""HMAC-SHA1 request signing (RFC 5849 section 3.4).

The one place signatures and Authorization headers are produced. Used for the
request-token leg, the access-token leg, and every later signed API call.
"""

import base64
import hashlib
import hmac
from typing import Mapping, Optional

from postloom.core.exceptions import EncodingError
from postloom.domains.oauth1.encoding import (
    OAuthParameterSet,
    collect_parameters,
    normalize_parameters,
    normalize_url,
    percent_encode,
)

SIGNATURE_METHOD = "HMAC-SHA1"
_UNQUOTABLE_REALM_CHARS = ('"', "\\", "\r", "\n")


def build_signature_base_string(method: str, url: str, params: OAuthParameterSet) -> str:
    """Build the signature base string per RFC 5849.

    Format: HTTP_METHOD&URL&NORMALIZED_PARAMS

    The URL's own query parameters are folded into the parameter set, and
    ``oauth_signature`` is never part of it.
    """
    param_str = normalize_parameters(collect_parameters(url, params))

    parts = [
        method.upper(),
        percent_encode(normalize_url(url)),
        percent_encode(param_str),
    ]
    return "&".join(parts)


def sign_hmac_sha1(base_string: str, consumer_secret: str, token_secret: Optional[str] = "") -> str:
    """Sign the base string using HMAC-SHA1.

    Signing key: percent_encode(consumer_secret)&percent_encode(token_secret)
    """
    key = f"{percent_encode(consumer_secret)}&{percent_encode(token_secret or '')}"
    digest = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("utf-8")


def sign(
    method: str,
    url: str,
    params: OAuthParameterSet,
    consumer_secret: str,
    token_secret: Optional[str] = None,
) -> str:
    """Compute ``oauth_signature`` for a request."""
    base_string = build_signature_base_string(method, url, params)
    return sign_hmac_sha1(base_string, consumer_secret, token_secret)


def build_authorization_header(params: Mapping[str, str], realm: Optional[str] = None) -> str:
    """Build OAuth1 Authorization header.

    Format: OAuth oauth_consumer_key="...", oauth_nonce="...", ...

    Keys are sorted; keys and values are percent-encoded and quoted. ``realm``
    goes first and is not encoded (it is not a signed parameter), so a realm
    that could close its quoted string raises ``EncodingError``.
    """
    param_strings = [
        f'{percent_encode(k)}="{percent_encode(v)}"' for k, v in sorted(params.items())
    ]
    if realm is not None:
        if any(char in realm for char in _UNQUOTABLE_REALM_CHARS):
            raise EncodingError("Realm cannot contain quotes, backslashes or line breaks")
        param_strings.insert(0, f'realm="{realm}"')
    return "OAuth " + ", ".join(param_strings)
