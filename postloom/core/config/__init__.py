"""Configuration module for Postloom.

Provides centralized configuration management with type-safe enums.

Usage:
    from postloom.core.config import settings, StoreBackendType, Environment

    # Access settings
    if settings.STORE_BACKEND == StoreBackendType.REDIS:
        ...

    # Use enums for type safety
    if settings.ENVIRONMENT == Environment.PRD:
        ...
"""

from postloom.core.config.enums import Environment, StoreBackendType
from postloom.core.config.settings import Settings

__all__ = [
    "Settings",
    "StoreBackendType",
    "Environment",
    "settings",
]

# Singleton settings instance
settings = Settings()
