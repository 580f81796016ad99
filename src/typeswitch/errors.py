"""Exception types raised by typeswitch."""

from __future__ import annotations


class TypeSwitchError(Exception):
    """Base class for all typeswitch errors."""


class InvalidArgument(TypeSwitchError, ValueError):
    """Raised when a conversion request is rejected before any record is touched."""


class Cancelled(TypeSwitchError):
    """Raised when the caller declines the confirmation prompt."""


class StoreUnavailable(TypeSwitchError):
    """Raised when the record store or type registry cannot be reached."""


class ConfigError(TypeSwitchError, ValueError):
    """Raised for unreadable or invalid configuration files."""
