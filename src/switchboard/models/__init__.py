"""switchboard data models - re-exports all public model classes."""

from switchboard.models.config import (
    CacheConfig,
    LoggingConfig,
    ProviderConfig,
    RateLimitConfig,
    SwitchboardConfig,
)
from switchboard.models.interaction import InteractionRecord

__all__ = [
    "CacheConfig",
    "InteractionRecord",
    "LoggingConfig",
    "ProviderConfig",
    "RateLimitConfig",
    "SwitchboardConfig",
]
