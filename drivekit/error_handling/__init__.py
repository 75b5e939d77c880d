"""
Error taxonomy for drivekit.

All errors are surfaced to the caller as soon as they are detected; the only
retrying the library does is the polling window of element lookups.
"""

from .exceptions import (
    ERROR_KINDS,
    DriverError,
    LaunchError,
    AlreadyClosedError,
    NavigationError,
    NoSuchElementError,
    InvalidSelectorError,
    ElementError,
    StaleElementError,
    ElementNotInteractableError,
    WaitTimeoutError,
    UnknownCommandError,
)

__all__ = [
    "ERROR_KINDS",
    "DriverError",
    "LaunchError",
    "AlreadyClosedError",
    "NavigationError",
    "NoSuchElementError",
    "InvalidSelectorError",
    "ElementError",
    "StaleElementError",
    "ElementNotInteractableError",
    "WaitTimeoutError",
    "UnknownCommandError",
]
