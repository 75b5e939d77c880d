"""
Command/response messages exchanged with a driver endpoint.

Every message is a pydantic model that serializes to JSON. Failures travel
as an ErrorPayload whose ``kind`` is the drivekit exception class name.
"""

from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from drivekit.error_handling.exceptions import ERROR_KINDS, DriverError


class CommandName(str, Enum):
    """Commands a dispatcher understands."""

    NEW_SESSION = "new_session"
    DELETE_SESSION = "delete_session"
    NAVIGATE = "navigate"
    GET_TITLE = "get_title"
    GET_CURRENT_URL = "get_current_url"
    FIND_ELEMENT = "find_element"
    FIND_ELEMENTS = "find_elements"
    SEND_KEYS = "send_keys"
    SUBMIT = "submit"
    CLICK = "click"
    GET_TEXT = "get_text"


class ResponseStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class ErrorPayload(BaseModel):
    """Structured error carried on the wire."""

    kind: str = Field(..., description="Exception class name, e.g. NoSuchElementError")
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: DriverError) -> "ErrorPayload":
        return cls(kind=exc.kind, message=exc.message, details=exc.details)


class Command(BaseModel):
    """A request for one driver operation."""

    request_id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = Field(..., description="A CommandName value")
    session_id: Optional[str] = None
    params: Dict[str, Any] = Field(default_factory=dict)


class Response(BaseModel):
    """Outcome of one Command."""

    request_id: str
    session_id: Optional[str] = None
    status: ResponseStatus
    value: Any = None
    error: Optional[ErrorPayload] = None

    @classmethod
    def success(
        cls, command: Command, value: Any = None, session_id: Optional[str] = None
    ) -> "Response":
        return cls(
            request_id=command.request_id,
            session_id=session_id or command.session_id,
            status=ResponseStatus.SUCCESS,
            value=value,
        )

    @classmethod
    def failure(cls, command: Command, exc: DriverError) -> "Response":
        return cls(
            request_id=command.request_id,
            session_id=command.session_id,
            status=ResponseStatus.ERROR,
            error=ErrorPayload.from_exception(exc),
        )

    @property
    def ok(self) -> bool:
        return self.status is ResponseStatus.SUCCESS


def error_from_payload(payload: ErrorPayload) -> DriverError:
    """
    Rebuild the exception described by an error payload.

    Unknown kinds come back as a plain DriverError with the original kind
    kept in ``error_code``.
    """
    error_class = ERROR_KINDS.get(payload.kind)
    if error_class is None:
        error = DriverError(payload.message, error_code=payload.kind)
    else:
        error = error_class(payload.message)
    # Keys the constructor populated mirror instance attributes
    attribute_keys = set(error.details) & set(payload.details)
    error.details.update(payload.details)
    for key in attribute_keys:
        setattr(error, key, payload.details[key])
    return error
