"""Configuration module for quotakeeper.

Provides centralized configuration management with type-safe enums.

Usage:
    from quotakeeper.core.config import settings, Environment

    if settings.ENVIRONMENT == Environment.PRD:
        ...
"""

from quotakeeper.core.config.enums import Environment
from quotakeeper.core.config.settings import Settings

__all__ = [
    "Settings",
    "Environment",
    "settings",
]

# Singleton settings instance
settings = Settings()
