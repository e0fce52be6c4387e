"""Errors raised by the monitoring service."""

from __future__ import annotations


class MonitoringError(Exception):
    """Base class for monitoring service errors."""


class MonitoringLimitExceeded(MonitoringError):
    """Raised by ``create`` when the account already holds the maximum number
    of active monitorings. ``str(exc)`` is the localized user message."""

    def __init__(self, message: str, *, account_id: int, limit: int) -> None:
        super().__init__(message)
        self.account_id = account_id
        self.limit = limit
