"""
drivekit: open browser sessions, locate elements and interact with them.
"""

from drivekit.browser import (
    ElementSequence,
    Session,
    SessionManager,
    Wait,
    WebElement,
)
from drivekit.core.types import BrowserKind, By, Keys, Locator, Strategy, WaitOptions
from drivekit.error_handling import (
    AlreadyClosedError,
    DriverError,
    ElementNotInteractableError,
    InvalidSelectorError,
    LaunchError,
    NavigationError,
    NoSuchElementError,
    StaleElementError,
    WaitTimeoutError,
)

__version__ = "0.1.0"

__all__ = [
    "SessionManager",
    "Session",
    "WebElement",
    "ElementSequence",
    "Wait",
    "BrowserKind",
    "By",
    "Keys",
    "Locator",
    "Strategy",
    "WaitOptions",
    "DriverError",
    "LaunchError",
    "AlreadyClosedError",
    "NavigationError",
    "NoSuchElementError",
    "InvalidSelectorError",
    "StaleElementError",
    "ElementNotInteractableError",
    "WaitTimeoutError",
]
