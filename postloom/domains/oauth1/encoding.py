"""Percent-encoding and parameter normalization for OAuth 1.0a.

Implements RFC 5849 section 3.6 (percent-encoding) and sections 3.4.1.2-3.4.1.3
(base string URI and request parameter normalization). Every function here is
pure and raises ``EncodingError`` for text that is not well-formed UTF-8, so a
bad parameter is caught before anything is signed or sent.
"""

from typing import Iterable, List, Mapping, Sequence, Tuple, Union
from urllib.parse import parse_qsl, quote, unquote, urlsplit

from postloom.core.exceptions import EncodingError

ParamValue = Union[str, Sequence[str]]
OAuthParameterSet = Union[Mapping[str, ParamValue], Iterable[Tuple[str, str]]]

# Never part of the signed parameter set (RFC 5849 3.4.1.3.1)
EXCLUDED_PARAMS = frozenset({"oauth_signature", "realm"})

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _to_text(value: Union[str, bytes, int]) -> str:
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"Parameter bytes are not valid UTF-8: {e.reason}") from e
    return str(value)


def percent_encode(value: Union[str, bytes, int]) -> str:
    """Percent-encode a value according to RFC 3986.

    Encodes all characters except unreserved: A-Z, a-z, 0-9, -, ., _, ~
    Hex digits are uppercase.
    """
    text = _to_text(value)
    try:
        return quote(text.encode("utf-8"), safe="~")
    except UnicodeEncodeError as e:
        raise EncodingError(f"Parameter contains unencodable text: {e.reason}") from e


def percent_decode(value: str) -> str:
    """Reverse ``percent_encode``. Escapes must decode to valid UTF-8."""
    try:
        return unquote(value, encoding="utf-8", errors="strict")
    except UnicodeDecodeError as e:
        raise EncodingError(f"Percent-escapes do not decode to UTF-8: {e.reason}") from e


def iter_params(params: OAuthParameterSet) -> List[Tuple[str, str]]:
    """Flatten a parameter set into ``(name, value)`` pairs.

    Mappings may carry a sequence of values for a repeated key.
    """
    items = params.items() if isinstance(params, Mapping) else params
    pairs: List[Tuple[str, str]] = []
    for key, value in items:
        if isinstance(value, (list, tuple)):
            pairs.extend((_to_text(key), _to_text(v)) for v in value)
        else:
            pairs.append((_to_text(key), _to_text(value)))
    return pairs


def normalize_parameters(params: OAuthParameterSet) -> str:
    """Build the normalized parameter string (RFC 5849 3.4.1.3.2).

    Each name and value is percent-encoded, pairs are sorted by encoded name
    and then encoded value using ordinal comparison, and joined with ``&``.
    """
    encoded = [(percent_encode(k), percent_encode(v)) for k, v in iter_params(params)]
    encoded.sort()
    return "&".join(f"{k}={v}" for k, v in encoded)


def parse_parameter_string(text: str) -> List[Tuple[str, str]]:
    """Split an already percent-encoded ``k=v&k=v`` string into decoded pairs."""
    if not text:
        return []
    pairs = []
    for chunk in text.split("&"):
        key, _, value = chunk.partition("=")
        pairs.append((percent_decode(key), percent_decode(value)))
    return pairs


def canonicalize_parameter_string(text: str) -> str:
    """Re-normalize an encoded parameter string.

    Canonical input comes back unchanged.
    """
    return normalize_parameters(parse_parameter_string(text))


def normalize_url(url: str) -> str:
    """Build the base string URI (RFC 5849 3.4.1.2).

    Scheme and host are lowercased, userinfo and default ports are dropped,
    query and fragment are removed, the path is kept as-is.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise EncodingError(f"Cannot parse request URL: {e}") from e

    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if not scheme or not host:
        raise EncodingError("Request URL must be absolute")

    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        host = f"{host}:{port}"

    path = parts.path or "/"
    return f"{scheme}://{host}{path}"


def query_params(url: str) -> List[Tuple[str, str]]:
    """Decode the URL's query component as form-encoded pairs, blanks kept."""
    query = urlsplit(url).query
    try:
        return parse_qsl(query, keep_blank_values=True, encoding="utf-8", errors="strict")
    except UnicodeDecodeError as e:
        raise EncodingError(f"Query string does not decode to UTF-8: {e.reason}") from e


def collect_parameters(url: str, params: OAuthParameterSet) -> List[Tuple[str, str]]:
    """Merge URL query parameters with request and protocol parameters.

    ``oauth_signature`` and ``realm`` are dropped.
    """
    merged = query_params(url) + iter_params(params)
    return [(k, v) for k, v in merged if k not in EXCLUDED_PARAMS]
