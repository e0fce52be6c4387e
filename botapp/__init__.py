"""Telegram application layer with lazy exports to avoid heavy imports."""

__all__ = ["MonitoringBotApplication"]


def __getattr__(name):
    if name == "MonitoringBotApplication":
        from .app import MonitoringBotApplication as _MonitoringBotApplication

        return _MonitoringBotApplication
    raise AttributeError(f"module 'botapp' has no attribute {name!r}")
