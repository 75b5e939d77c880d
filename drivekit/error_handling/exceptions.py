"""
Exception hierarchy for drivekit.

Every failure surfaced by the public API is a DriverError subclass. The class
name doubles as the error "kind" carried in protocol error payloads, so the
client side can rebuild the same exception type.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type


class DriverError(Exception):
    """Base exception for all drivekit errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    @property
    def kind(self) -> str:
        """Error kind as it appears on the wire."""
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.kind,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None
        }


class LaunchError(DriverError):
    """Raised when a browser cannot be started."""

    def __init__(self, message: str, browser_kind: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.browser_kind = browser_kind
        self.details.update({"browser_kind": browser_kind})


class AlreadyClosedError(DriverError):
    """Raised when an operation targets a session that is no longer open."""

    def __init__(self, message: str, session_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.session_id = session_id
        self.details.update({"session_id": session_id})


class NavigationError(DriverError):
    """Raised when a page load fails or cannot be attempted."""

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.url = url
        self.details.update({"url": url})


class NoSuchElementError(DriverError):
    """Raised when no element matches a locator within the wait window."""

    def __init__(
        self,
        message: str,
        locator: Optional[Dict[str, str]] = None,
        timeout_ms: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.locator = locator
        self.timeout_ms = timeout_ms
        self.details.update({
            "locator": locator,
            "timeout_ms": timeout_ms
        })


class InvalidSelectorError(DriverError):
    """Raised when a locator value cannot be evaluated by the browser."""

    def __init__(self, message: str, locator: Optional[Dict[str, str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.locator = locator
        self.details.update({"locator": locator})


class ElementError(DriverError):
    """Base class for failures while acting on a resolved element."""

    def __init__(
        self,
        message: str,
        element_id: Optional[str] = None,
        action: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.element_id = element_id
        self.action = action
        self.details.update({
            "element_id": element_id,
            "action": action
        })


class StaleElementError(ElementError):
    """The element's document has been replaced or the node was removed."""
    pass


class ElementNotInteractableError(ElementError):
    """The element is hidden, disabled or otherwise cannot take input."""
    pass


class WaitTimeoutError(DriverError):
    """Raised when an explicit wait condition never became true."""

    def __init__(self, message: str, timeout_ms: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.timeout_ms = timeout_ms
        self.details.update({"timeout_ms": timeout_ms})


class UnknownCommandError(DriverError):
    """Raised by the protocol layer for commands it does not implement."""

    def __init__(self, message: str, command: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.command = command
        self.details.update({"command": command})


ERROR_KINDS: Dict[str, Type[DriverError]] = {
    cls.__name__: cls
    for cls in (
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
}
