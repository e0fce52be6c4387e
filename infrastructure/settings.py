"""Centralized application settings.

A single place to load runtime configuration values. Modules receive an
:class:`AppSettings` snapshot instead of reading ``os.environ`` themselves,
which keeps tests free to build settings from a plain mapping.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

import pytz
from dotenv import load_dotenv

from . import constants


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Normalize environment strings such as "true"/"1" into booleans."""

    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: Optional[str], default: int) -> int:
    if value is None or not str(value).strip():
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class AppSettings:
    """Immutable snapshot of high-level configuration values."""

    bot_token: str
    production_mode: bool
    timezone: str
    monitorings_file: str
    users_file: str
    data_directory: str
    max_initial_delay: int
    period_base: int
    period_max_delta: int
    discovery_interval: int
    worker_pool_size: int
    max_active_monitorings: int
    max_terms_in_message: int
    gateway_factory: Optional[str]

    @property
    def tzinfo(self):
        """Return the ``pytz`` timezone object for :attr:`timezone`."""

        return pytz.timezone(self.timezone)


def load_settings(env: Optional[Mapping[str, str]] = None) -> AppSettings:
    """Load configuration from the environment and fall back to defaults."""

    if env is None:
        load_dotenv(override=False)
        env = os.environ

    timezone = env.get("BOT_TIMEZONE", constants.DEFAULT_TIMEZONE)
    # Fail fast on a typo instead of at the first scheduled tick.
    pytz.timezone(timezone)

    return AppSettings(
        bot_token=env.get("TELEGRAM_BOT_TOKEN", ""),
        production_mode=_to_bool(env.get("PRODUCTION_MODE"), default=False),
        timezone=timezone,
        monitorings_file=env.get("MONITORINGS_FILE", constants.MONITORINGS_FILE),
        users_file=env.get("USERS_FILE", constants.USERS_FILE),
        data_directory=env.get("DATA_DIRECTORY", constants.DATA_DIRECTORY),
        max_initial_delay=_to_int(
            env.get("MONITORING_MAX_INITIAL_DELAY"),
            constants.MAX_INITIAL_DELAY_SECONDS,
        ),
        period_base=_to_int(
            env.get("MONITORING_PERIOD_BASE"), constants.PERIOD_BASE_SECONDS
        ),
        period_max_delta=_to_int(
            env.get("MONITORING_PERIOD_MAX_DELTA"),
            constants.PERIOD_MAX_DELTA_SECONDS,
        ),
        discovery_interval=_to_int(
            env.get("MONITORING_DISCOVERY_INTERVAL"),
            constants.DISCOVERY_INTERVAL_SECONDS,
        ),
        worker_pool_size=_to_int(
            env.get("MONITORING_WORKER_POOL_SIZE"), constants.WORKER_POOL_SIZE
        ),
        max_active_monitorings=_to_int(
            env.get("MONITORING_MAX_ACTIVE"), constants.MAX_ACTIVE_MONITORINGS
        ),
        max_terms_in_message=_to_int(
            env.get("MONITORING_MAX_TERMS_IN_MESSAGE"),
            constants.MAX_TERMS_IN_MESSAGE,
        ),
        gateway_factory=env.get("RESERVATION_GATEWAY_FACTORY") or None,
    )


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached :class:`AppSettings` instance."""

    return load_settings()
