"""Logging setup for Postloom.

Exposes a module-level ``logger`` (a :class:`ContextualLogger`) that services
receive and narrow with ``with_context``:

    from postloom.core.logging import logger

    flow_logger = logger.with_context(owner_id=owner_id, flow="oauth1")
    flow_logger.info("Request token obtained")
    # -> "Request token obtained [owner_id=... flow=oauth1]"

Every handler carries a :class:`SecretRedactingFilter`. Services must not log
secrets in the first place; the filter is a backstop for provider bodies and
headers that slip into a message.
"""

import logging
import re
import sys
from typing import Any, MutableMapping, Tuple

from postloom.core.config import settings

_REDACTED = "[REDACTED]"

_SECRET_PATTERNS = [
    # form-encoded: oauth_token_secret=abc&...
    (re.compile(r"(oauth_token_secret|oauth_signature)=([^&\s\"',]+)"), rf"\1={_REDACTED}"),
    # header style: oauth_signature="abc"
    (re.compile(r"(oauth_token_secret|oauth_signature)=\"[^\"]*\""), rf'\1="{_REDACTED}"'),
    # whole Authorization header values
    (re.compile(r"(Authorization:?\s*\"?OAuth)\s+[^\n]*", re.IGNORECASE), rf"\1 {_REDACTED}"),
]


def redact_text(text: str) -> str:
    """Scrub OAuth secret material from free text."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactingFilter(logging.Filter):
    """Rewrites each record's message with OAuth secret material removed."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_text(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class ContextualLogger(logging.LoggerAdapter):
    """LoggerAdapter that appends bound context fields to every message."""

    def __init__(self, logger: logging.Logger, dimensions: dict[str, Any] | None = None):
        super().__init__(logger, {})
        self.dimensions: dict[str, Any] = dict(dimensions or {})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, Any]:
        if self.dimensions:
            context = " ".join(f"{key}={value}" for key, value in self.dimensions.items())
            msg = f"{msg} [{context}]"
        return msg, kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a child logger with additional context fields bound."""
        merged = {**self.dimensions, **dimensions}
        return ContextualLogger(self.logger, merged)


def _configure_base_logger() -> logging.Logger:
    base = logging.getLogger("postloom")
    base.setLevel(settings.LOG_LEVEL.upper())

    if not base.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        handler.addFilter(SecretRedactingFilter())
        base.addHandler(handler)
        base.propagate = False

    return base


logger = ContextualLogger(_configure_base_logger())
