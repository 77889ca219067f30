from __future__ import annotations


class RestartMonitorError(Exception):
    """Base exception for the restart monitor."""


class ConfigurationError(RestartMonitorError):
    """Monitoring cannot start with the current settings."""


class ConfigurationLockedError(ConfigurationError):
    """Settings were edited while monitoring is active."""


class SubscriptionError(RestartMonitorError):
    """The device notification channel could not be initialized."""
