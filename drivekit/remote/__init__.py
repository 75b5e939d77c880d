"""
Command/response protocol for driving sessions through a dispatcher.
"""

from drivekit.remote.client import (
    LocalTransport,
    RemoteDriverClient,
    RemoteElement,
    RemoteSession,
)
from drivekit.remote.dispatcher import CommandDispatcher
from drivekit.remote.protocol import (
    Command,
    CommandName,
    ErrorPayload,
    Response,
    ResponseStatus,
    error_from_payload,
)

__all__ = [
    # Protocol
    "Command",
    "CommandName",
    "ErrorPayload",
    "Response",
    "ResponseStatus",
    "error_from_payload",
    # Server side
    "CommandDispatcher",
    # Client side
    "LocalTransport",
    "RemoteDriverClient",
    "RemoteSession",
    "RemoteElement",
]
