"""Configuration enums for type-safe settings.

These enums provide type safety and IDE autocomplete for configuration values.
They inherit from str to maintain JSON serialization compatibility.
"""

from enum import Enum


class StoreBackendType(str, Enum):
    """Store backend types.

    Determines which implementation backs the callback correlation store and
    the access token store.
    """

    MEMORY = "memory"
    REDIS = "redis"


class Environment(str, Enum):
    """Deployment environments.

    Controls environment-specific behavior like logging and store defaults.
    """

    LOCAL = "local"
    TEST = "test"
    DEV = "dev"
    PRD = "prd"
