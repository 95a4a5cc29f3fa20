"""
Application settings.

Provides typed configuration sections with environment variable overrides.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Final, Optional


# =============================================================================
# Configuration Classes
# =============================================================================


@dataclass(frozen=True)
class LoggingSettings:
    """Logging outputs and verbosity."""

    name: str = "VENDING_MACHINE"
    app: str = "vending_machine"
    level: int = logging.DEBUG
    log_file: Optional[str] = None
    loki_url: Optional[str] = None
    loki_timeout: float = 2.0


@dataclass(frozen=True)
class MachineSettings:
    """Vending machine behaviour settings."""

    currency_symbol: str = "£"
    allow_negative_coin_load: bool = False


# =============================================================================
# Main Settings
# =============================================================================


@dataclass
class Settings:
    """
    Main application settings.

    Aggregates all configuration sections.
    """

    logging: LoggingSettings = field(default_factory=LoggingSettings)
    machine: MachineSettings = field(default_factory=MachineSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from defaults overridden by environment variables.

        Returns:
            Settings instance.
        """
        defaults = LoggingSettings()
        level_name = os.environ.get("VENDING_LOG_LEVEL")
        level = logging.getLevelName(level_name.upper()) if level_name else defaults.level
        if not isinstance(level, int):
            level = defaults.level

        return cls(
            logging=LoggingSettings(
                level=level,
                log_file=os.environ.get("VENDING_LOG_FILE") or None,
                loki_url=os.environ.get("VENDING_LOKI_URL") or None,
            ),
            machine=MachineSettings(
                currency_symbol=os.environ.get(
                    "VENDING_CURRENCY_SYMBOL", MachineSettings.currency_symbol
                ),
                allow_negative_coin_load=_env_flag("VENDING_ALLOW_NEGATIVE_COIN_LOAD"),
            ),
        )


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# =============================================================================
# Settings Singleton
# =============================================================================


_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None


# =============================================================================
# Demo Stock
# =============================================================================


DEFAULT_PRODUCTS: Final[tuple[dict, ...]] = (
    {"name": "Soda", "price": "1.50", "stock": 10},
    {"name": "Chips", "price": "1.00", "stock": 5},
    {"name": "Candy", "price": "0.75", "stock": 20},
)

DEFAULT_COINS: Final[tuple[dict, ...]] = (
    {"coin": 100, "quantity": 10},
    {"coin": 50, "quantity": 20},
    {"coin": 20, "quantity": 30},
)
