"""Wiring for the OAuth1 services.

``create_container(settings)`` builds a ``Container`` with in-memory or Redis
stores depending on ``STORE_BACKEND``. Tests build one directly with fakes;
``initialize_container`` installs the process-wide instance.
"""

from typing import TYPE_CHECKING

from postloom.core.container.container import Container
from postloom.core.container.factory import create_container

if TYPE_CHECKING:
    from postloom.core.config import Settings

__all__ = ["Container", "create_container", "container", "initialize_container"]


container: Container | None = None


def initialize_container(settings: "Settings") -> None:
    """Build the global container. Raises RuntimeError on a second call."""
    global container

    if container is not None:
        raise RuntimeError("OAuth1 container is already initialized")

    container = create_container(settings)


def reset_container() -> None:
    """Clear the global container (tests only)."""
    global container
    container = None
