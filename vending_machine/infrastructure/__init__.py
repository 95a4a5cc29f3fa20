"""
Infrastructure layer - Configuration and external concerns.

Contains:
- Settings
- Demo stock definitions
"""

from .settings import (
    DEFAULT_COINS,
    DEFAULT_PRODUCTS,
    LoggingSettings,
    MachineSettings,
    Settings,
    get_settings,
    reset_settings,
)


__all__ = [
    # Settings
    "Settings",
    "LoggingSettings",
    "MachineSettings",
    "get_settings",
    "reset_settings",
    # Demo stock
    "DEFAULT_PRODUCTS",
    "DEFAULT_COINS",
]
