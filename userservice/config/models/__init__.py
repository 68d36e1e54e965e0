"""Configuration model exports.

    from userservice.config.models import APIConfig, StorageConfig
"""

from userservice.config.models.api import APIConfig
from userservice.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
    TracingConfig,
)
from userservice.config.models.storage import PostgresConfig, StorageConfig

__all__ = [
    "APIConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "PostgresConfig",
    "StorageConfig",
    "TracingConfig",
]
