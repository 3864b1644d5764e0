"""loreguard exception hierarchy."""

from __future__ import annotations


class LoreguardError(Exception):
    """Base exception for all loreguard errors."""


class ConfigError(LoreguardError):
    """Raised when the configuration is invalid or cannot be read."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file does not exist."""


class AllowListError(LoreguardError):
    """Raised when a botmaker allow-list file cannot be parsed or fails validation."""


class InvalidResourceNameError(LoreguardError, ValueError):
    """Raised when a lorebook name is missing or empty."""


class AccessDeniedError(LoreguardError):
    """Raised by the caller layer when the policy denies an action.

    The message is safe to show to the requester: it never names the rule
    that caused the denial.
    """

    def __init__(self, message: str, action: str = "") -> None:
        super().__init__(message)
        self.action = action


class ImportNotAllowedError(AccessDeniedError):
    """Raised when a personal lorebook is imported under someone else's prefix."""
