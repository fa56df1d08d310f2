"""Fake OAuth 1.0a provider for testing over ``httpx.MockTransport``.

Records every request, checks each signature the way a real provider would,
and answers from a per-path queue of scripted responses.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union
from urllib.parse import parse_qsl

import httpx

from postloom.domains.oauth1.encoding import percent_decode
from postloom.domains.oauth1.signature import sign

Scripted = Union[httpx.Response, Exception]


def parse_authorization_header(value: str) -> Dict[str, str]:
    """Decode ``OAuth k="v", ...`` into a dict."""
    if not value.startswith("OAuth "):
        raise ValueError(f"Not an OAuth header: {value[:20]}")
    params = {}
    for chunk in value[len("OAuth ") :].split(", "):
        key, _, quoted = chunk.partition("=")
        params[percent_decode(key)] = percent_decode(quoted.strip('"'))
    return params


@dataclass
class RecordedRequest:
    method: str
    url: str
    oauth_params: Dict[str, str]
    form_params: List[Tuple[str, str]]
    signature_valid: bool


@dataclass
class FakeProvider:
    """Scripted provider that verifies HMAC-SHA1 signatures.

    ``token_secrets`` maps each token the provider has issued to its secret,
    so requests signed with a request or access token verify too. A request
    with a bad signature gets a 401 and consumes no scripted response.
    """

    consumer_secret: str
    token_secrets: Dict[str, str] = field(default_factory=dict)
    requests: List[RecordedRequest] = field(default_factory=list)
    _scripts: Dict[str, List[Scripted]] = field(default_factory=dict)

    def script(self, url: str, *responses: Scripted) -> None:
        self._scripts.setdefault(httpx.URL(url).path, []).extend(responses)

    def reply(self, url: str, status_code: int, text: str = "") -> None:
        self.script(url, httpx.Response(status_code, text=text))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        oauth_params = parse_authorization_header(request.headers["Authorization"])
        form_params: List[Tuple[str, str]] = []
        content_type = request.headers.get("Content-Type", "")
        if content_type.startswith("application/x-www-form-urlencoded"):
            form_params = parse_qsl(request.content.decode(), keep_blank_values=True)

        token_secret = self.token_secrets.get(oauth_params.get("oauth_token", ""))
        signed = [(k, v) for k, v in oauth_params.items() if k != "oauth_signature"]
        expected = sign(
            request.method,
            str(request.url),
            signed + form_params,
            self.consumer_secret,
            token_secret,
        )
        valid = expected == oauth_params.get("oauth_signature")
        self.requests.append(
            RecordedRequest(request.method, str(request.url), oauth_params, form_params, valid)
        )
        if not valid:
            return httpx.Response(401, text="Invalid signature")

        queue = self._scripts.get(request.url.path) or []
        if not queue:
            return httpx.Response(404, text="no scripted response")
        scripted = queue.pop(0)
        if isinstance(scripted, Exception):
            raise scripted
        return scripted
