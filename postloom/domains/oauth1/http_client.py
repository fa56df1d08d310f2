"""Single HTTP round-trip with transient failures mapped to ``NetworkError``."""

from typing import Any, Mapping, Optional

import httpx

from postloom.domains.oauth1.exceptions import NetworkError


async def send_request(
    method: str,
    url: str,
    *,
    headers: Mapping[str, str],
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs: Any,
) -> httpx.Response:
    """Send one request.

    Timeouts, connection failures and 5xx responses raise ``NetworkError``;
    every other response (2xx-4xx) is returned for the caller to interpret.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.request(method, url, headers=dict(headers), **kwargs)
    except httpx.TimeoutException as e:
        raise NetworkError(url, f"Request timed out ({type(e).__name__})") from e
    except httpx.TransportError as e:
        raise NetworkError(url, f"Connection failed ({type(e).__name__})") from e

    if response.status_code >= 500:
        raise NetworkError(
            url,
            f"Provider returned {response.status_code}",
            status_code=response.status_code,
        )
    return response
