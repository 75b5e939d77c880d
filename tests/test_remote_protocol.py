"""
Tests for protocol messages and error payloads.
"""

import pytest

from drivekit.error_handling.exceptions import (
    DriverError,
    NoSuchElementError,
    StaleElementError,
)
from drivekit.remote.protocol import (
    Command,
    CommandName,
    ErrorPayload,
    Response,
    ResponseStatus,
    error_from_payload,
)


class TestMessages:

    def test_command_defaults(self):
        command = Command(name=CommandName.GET_TITLE.value, session_id="s1")

        assert len(command.request_id) == 32
        assert command.params == {}
        assert Command(name="get_title").request_id != command.request_id

    def test_json_round_trip(self):
        command = Command(
            name="find_element",
            session_id="s1",
            params={"strategy": "id", "value": "q", "timeout_ms": 0},
        )

        assert Command.model_validate_json(command.model_dump_json()) == command

    def test_success_response(self):
        command = Command(name="get_title", session_id="s1")

        response = Response.success(command, "Example")

        assert response.ok
        assert response.status is ResponseStatus.SUCCESS
        assert response.request_id == command.request_id
        assert response.session_id == "s1"
        assert response.value == "Example"
        assert response.error is None

    def test_failure_response(self):
        command = Command(name="find_element", session_id="s1")
        error = NoSuchElementError(
            "nothing", locator={"strategy": "id", "value": "q"}, timeout_ms=0
        )

        response = Response.failure(command, error)

        assert not response.ok
        assert response.error == ErrorPayload(
            kind="NoSuchElementError",
            message="nothing",
            details={"locator": {"strategy": "id", "value": "q"}, "timeout_ms": 0},
        )

    def test_wire_format(self):
        command = Command(name="click", session_id="s1")
        payload = Response.failure(command, StaleElementError("gone")).model_dump(mode="json")

        assert payload["status"] == "error"
        assert payload["error"]["kind"] == "StaleElementError"


class TestErrorFromPayload:

    def test_rebuilds_matching_class(self):
        payload = ErrorPayload(
            kind="NoSuchElementError",
            message="nothing",
            details={"locator": {"strategy": "id", "value": "q"}, "timeout_ms": 250},
        )

        error = error_from_payload(payload)

        assert type(error) is NoSuchElementError
        assert error.message == "nothing"
        assert error.locator == {"strategy": "id", "value": "q"}
        assert error.timeout_ms == 250

    def test_element_error_attributes(self):
        error = error_from_payload(
            ErrorPayload(
                kind="StaleElementError",
                message="gone",
                details={"element_id": "e1", "action": "click"},
            )
        )

        assert isinstance(error, StaleElementError)
        assert error.element_id == "e1"
        assert error.action == "click"

    def test_unknown_kind(self):
        error = error_from_payload(
            ErrorPayload(kind="QuantumError", message="???", details={"x": 1})
        )

        assert type(error) is DriverError
        assert error.error_code == "QuantumError"
        assert error.details == {"x": 1}
        assert not hasattr(error, "x")

    @pytest.mark.parametrize("kind", ["DriverError", "LaunchError", "WaitTimeoutError"])
    def test_kind_survives(self, kind):
        assert error_from_payload(ErrorPayload(kind=kind, message="m")).kind == kind
