"""
Unit tests for error handling exceptions.
"""

from datetime import datetime

import pytest

from drivekit.error_handling.exceptions import (
    ERROR_KINDS,
    AlreadyClosedError,
    DriverError,
    ElementError,
    ElementNotInteractableError,
    InvalidSelectorError,
    LaunchError,
    NavigationError,
    NoSuchElementError,
    StaleElementError,
    UnknownCommandError,
    WaitTimeoutError,
)


class TestDriverError:
    """Test base exception class."""

    def test_basic_creation(self):
        """Test basic error creation."""
        error = DriverError("Test error")
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.error_code == "DriverError"
        assert error.kind == "DriverError"
        assert error.details == {}
        assert error.cause is None
        assert isinstance(error.timestamp, datetime)

    def test_with_details(self):
        details = {"key": "value", "count": 42}
        error = DriverError("Test error", error_code="TEST001", details=details)
        assert error.error_code == "TEST001"
        assert error.details == details

    def test_with_cause(self):
        cause = ValueError("Original error")
        error = DriverError("Wrapped error", cause=cause)
        assert error.cause is cause

    def test_to_dict(self):
        error = DriverError(
            "Test error",
            error_code="TEST001",
            details={"key": "value"},
            cause=RuntimeError("boom"),
        )

        result = error.to_dict()
        assert result["error_type"] == "DriverError"
        assert result["error_code"] == "TEST001"
        assert result["message"] == "Test error"
        assert result["details"] == {"key": "value"}
        assert result["cause"] == "boom"
        assert "timestamp" in result


class TestSpecificErrors:
    """Test the subclasses carry their context."""

    def test_launch_error(self):
        error = LaunchError("cannot start", browser_kind="firefox")
        assert error.browser_kind == "firefox"
        assert error.details["browser_kind"] == "firefox"
        assert error.kind == "LaunchError"

    def test_already_closed_error(self):
        error = AlreadyClosedError("closed", session_id="abc")
        assert error.session_id == "abc"
        assert error.details == {"session_id": "abc"}

    def test_navigation_error(self):
        error = NavigationError("bad", url="http://example.invalid")
        assert error.url == "http://example.invalid"

    def test_no_such_element_error(self):
        locator = {"strategy": "id", "value": "missing"}
        error = NoSuchElementError("nothing", locator=locator, timeout_ms=250)
        assert error.locator == locator
        assert error.details == {"locator": locator, "timeout_ms": 250}

    def test_invalid_selector_error(self):
        error = InvalidSelectorError("bad", locator={"strategy": "xpath", "value": "//["})
        assert error.details["locator"]["value"] == "//["

    def test_element_errors_share_base(self):
        stale = StaleElementError("gone", element_id="e1", action="click")
        blocked = ElementNotInteractableError("hidden", element_id="e2", action="send_keys")
        assert isinstance(stale, ElementError)
        assert isinstance(blocked, ElementError)
        assert stale.details == {"element_id": "e1", "action": "click"}
        assert blocked.action == "send_keys"

    def test_wait_timeout_error(self):
        assert WaitTimeoutError("late", timeout_ms=100).timeout_ms == 100

    def test_unknown_command_error(self):
        assert UnknownCommandError("what", command="fly").details == {"command": "fly"}

    def test_extra_details_preserved(self):
        error = NavigationError("bad", url="x", details={"status": 500})
        assert error.details == {"status": 500, "url": "x"}


class TestErrorKinds:
    @pytest.mark.parametrize("name, cls", sorted(ERROR_KINDS.items()))
    def test_kind_matches_class_name(self, name, cls):
        assert cls.__name__ == name
        assert issubclass(cls, DriverError)
        assert cls("message").kind == name

    def test_all_public_errors_registered(self):
        for cls in (
            LaunchError,
            AlreadyClosedError,
            NavigationError,
            NoSuchElementError,
            InvalidSelectorError,
            StaleElementError,
            ElementNotInteractableError,
            WaitTimeoutError,
            UnknownCommandError,
        ):
            assert ERROR_KINDS[cls.__name__] is cls
