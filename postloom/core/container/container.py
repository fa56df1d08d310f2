"""Dependency Injection Container.

The container is a simple immutable dataclass that holds protocol implementations.
It has no construction logic; that belongs in the factory.

Design principles:
- Container serves, factory builds
- Fail fast: all construction at startup
- Type safety: fields are protocol types
- Testing: construct directly with fakes
"""

from dataclasses import dataclass, replace
from typing import Any, Optional

from postloom.domains.oauth1.protocols import (
    CorrelationStoreProtocol,
    OAuth1FlowServiceProtocol,
    OAuth1ServiceProtocol,
    SignedRequestBuilderProtocol,
    TokenStoreProtocol,
)


@dataclass(frozen=True)
class Container:
    """Immutable container holding all protocol implementations.

    Usage:
        # Production: use the global container built by factory
        from postloom.core.container import container
        result = await container.flow_service.start_flow(owner_id)

        # Testing: construct directly with fakes
        test_container = Container(oauth1_service=FakeOAuth1Service(), ...)
    """

    # Three legs of the protocol (HTTP side)
    oauth1_service: OAuth1ServiceProtocol

    # Pending flows between leg 1 and the callback
    correlation_store: CorrelationStoreProtocol

    # Access credentials, keyed by owner
    token_store: TokenStoreProtocol

    # Start-flow / callback orchestration
    flow_service: OAuth1FlowServiceProtocol

    # Signing for API calls with stored access tokens
    # Optional: None when consumer credentials are not configured
    signed_request_builder: Optional[SignedRequestBuilderProtocol] = None

    # -----------------------------------------------------------------
    # Convenience methods
    # -----------------------------------------------------------------

    def replace(self, **changes: Any) -> "Container":
        """Create a new container with some dependencies replaced.

        Useful for partial overrides in tests:

            modified = container.replace(token_store=FakeTokenStore())

        Args:
            **changes: Dependency name -> new implementation

        Returns:
            New Container with specified dependencies replaced
        """
        return replace(self, **changes)
