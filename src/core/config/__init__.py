# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for the Adaptive Path Engine.

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from src.core.config.settings import (
    AdaptiveSettings,
    APISettings,
    CORSSettings,
    DatabaseSettings,
    ExecutionSettings,
    JWTSettings,
    LLMSettings,
    RateLimitSettings,
    RedisSettings,
    Settings,
    WorkerSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "RedisSettings",
    "WorkerSettings",
    "AdaptiveSettings",
    "LLMSettings",
    "ExecutionSettings",
    "JWTSettings",
    "RateLimitSettings",
    "CORSSettings",
    "APISettings",
]
