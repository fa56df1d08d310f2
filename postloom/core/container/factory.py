"""Container Factory.

All construction logic lives here. The factory reads settings and builds
the container with environment-appropriate implementations.

Design principles:
- Single place for all wiring decisions
- Backend-aware: in-memory stores for a single process, Redis for replicas
- Fail fast: broken wiring crashes at startup, not on the first callback
- Testable: can unit test factory logic with mock settings
"""

from typing import Optional, Tuple

from postloom.adapters.encryption.fernet import FernetCredentialEncryptor
from postloom.core.config import Settings, StoreBackendType
from postloom.core.container.container import Container
from postloom.core.exceptions import ConfigurationError
from postloom.core.logging import logger
from postloom.core.redis_client import create_redis_client
from postloom.domains.oauth1.correlation_store import (
    InMemoryCorrelationStore,
    RedisCorrelationStore,
)
from postloom.domains.oauth1.flow_service import OAuth1FlowService
from postloom.domains.oauth1.oauth1_service import OAuth1Service
from postloom.domains.oauth1.protocols import (
    CorrelationStoreProtocol,
    SignedRequestBuilderProtocol,
    TokenStoreProtocol,
)
from postloom.domains.oauth1.signed_request import SignedRequestBuilder
from postloom.domains.oauth1.token_store import InMemoryTokenStore, RedisTokenStore
from postloom.domains.oauth1.types import OAuth1Credentials


def create_container(settings: Settings) -> Container:
    """Build container with backend-appropriate implementations.

    This is the single source of truth for dependency wiring.

    Args:
        settings: Application settings (from core/config)

    Returns:
        Fully constructed Container ready for use

    Raises:
        ConfigurationError: Redis backend selected without ENCRYPTION_KEY,
            or ENCRYPTION_KEY is not a valid Fernet key
    """
    # -----------------------------------------------------------------
    # Stores (correlation + access tokens)
    # -----------------------------------------------------------------
    correlation_store, token_store = _create_stores(settings)

    # -----------------------------------------------------------------
    # OAuth1 protocol legs
    # -----------------------------------------------------------------
    oauth1_service = OAuth1Service(
        max_attempts=settings.OAUTH1_MAX_ATTEMPTS,
        backoff_seconds=settings.OAUTH1_BACKOFF_SECONDS,
        timeout_seconds=settings.OAUTH1_HTTP_TIMEOUT_SECONDS,
    )

    flow_service = OAuth1FlowService(
        oauth1_service=oauth1_service,
        correlation_store=correlation_store,
        token_store=token_store,
        settings=settings,
    )

    return Container(
        oauth1_service=oauth1_service,
        correlation_store=correlation_store,
        token_store=token_store,
        flow_service=flow_service,
        signed_request_builder=_create_signed_request_builder(settings, token_store),
    )


# ---------------------------------------------------------------------------
# Private factory functions
# ---------------------------------------------------------------------------


def _create_stores(settings: Settings) -> Tuple[CorrelationStoreProtocol, TokenStoreProtocol]:
    """In-memory stores for a single process; Redis when flows span replicas."""
    ttl = settings.OAUTH1_CORRELATION_TTL_SECONDS

    if settings.STORE_BACKEND == StoreBackendType.MEMORY:
        logger.info("OAuth1 stores: in-memory")
        return InMemoryCorrelationStore(ttl_seconds=ttl), InMemoryTokenStore()

    if settings.ENCRYPTION_KEY is None:
        raise ConfigurationError(
            "ENCRYPTION_KEY", "Required to store OAuth1 secrets in Redis"
        )

    encryptor = FernetCredentialEncryptor(settings.ENCRYPTION_KEY)
    client = create_redis_client(settings)
    logger.info(f"OAuth1 stores: redis at {settings.REDIS_HOST}:{settings.REDIS_PORT}")
    return (
        RedisCorrelationStore(client, encryptor, ttl_seconds=ttl),
        RedisTokenStore(client, encryptor),
    )


def _create_signed_request_builder(
    settings: Settings, token_store: TokenStoreProtocol
) -> Optional[SignedRequestBuilderProtocol]:
    """Create the signed request builder, or None without consumer credentials."""
    try:
        credentials = OAuth1Credentials.from_settings(settings)
    except ConfigurationError as e:
        logger.warning(f"Signed requests disabled: {e.message}")
        return None

    return SignedRequestBuilder(
        credentials=credentials,
        token_store=token_store,
        max_attempts=settings.OAUTH1_MAX_ATTEMPTS,
        backoff_seconds=settings.OAUTH1_BACKOFF_SECONDS,
        timeout_seconds=settings.OAUTH1_HTTP_TIMEOUT_SECONDS,
    )
