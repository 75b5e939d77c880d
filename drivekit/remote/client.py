"""
Client side of the command protocol.

RemoteDriverClient speaks to a dispatcher through a transport: any async
callable that takes a Command and returns a Response. LocalTransport keeps the
dispatcher in-process but still pushes every message through JSON, so a client
behaves the same whether or not a network sits in between.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from drivekit.core.types import BrowserKind, Locator, WaitOptions
from drivekit.monitoring.logger import get_logger
from drivekit.remote.dispatcher import CommandDispatcher
from drivekit.remote.protocol import (
    Command,
    CommandName,
    Response,
    error_from_payload,
)

Transport = Callable[[Command], Awaitable[Response]]


class LocalTransport:
    """Delivers commands to an in-process dispatcher via a JSON round trip."""

    def __init__(self, dispatcher: Optional[CommandDispatcher] = None) -> None:
        self.dispatcher = dispatcher or CommandDispatcher()

    async def __call__(self, command: Command) -> Response:
        wire_command = Command.model_validate_json(command.model_dump_json())
        response = await self.dispatcher.dispatch(wire_command)
        return Response.model_validate_json(response.model_dump_json())

    async def close(self) -> None:
        await self.dispatcher.shutdown()


class RemoteDriverClient:
    """Issues protocol commands and turns error responses back into exceptions."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self.logger = get_logger(__name__)

    async def execute(
        self,
        name: Union[CommandName, str],
        session_id: Optional[str] = None,
        **params: Any,
    ) -> Any:
        """
        Send one command and return its value.

        Raises:
            DriverError: The subclass named by the error response
        """
        command = Command(
            name=name.value if isinstance(name, CommandName) else name,
            session_id=session_id,
            params={key: value for key, value in params.items() if value is not None},
        )
        response = await self.transport(command)
        if response.request_id != command.request_id:
            self.logger.warning(
                "Response does not match request",
                extra={"command": command.name, "request_id": command.request_id},
            )
        if not response.ok:
            raise error_from_payload(response.error)
        return response.value

    async def new_session(
        self,
        browser_kind: Optional[Union[BrowserKind, str]] = None,
        headless: Optional[bool] = None,
    ) -> "RemoteSession":
        if isinstance(browser_kind, BrowserKind):
            browser_kind = browser_kind.value
        value = await self.execute(
            CommandName.NEW_SESSION, browser_kind=browser_kind, headless=headless
        )
        return RemoteSession(self, value["session_id"], value["browser_kind"])


class RemoteSession:
    """A session living behind a dispatcher."""

    def __init__(self, client: RemoteDriverClient, session_id: str, browser_kind: str):
        self.client = client
        self.session_id = session_id
        self.browser_kind = browser_kind

    async def _execute(self, name: CommandName, **params: Any) -> Any:
        return await self.client.execute(name, self.session_id, **params)

    async def navigate(self, url: str) -> None:
        await self._execute(CommandName.NAVIGATE, url=url)

    async def title(self) -> str:
        return await self._execute(CommandName.GET_TITLE)

    async def current_url(self) -> str:
        return await self._execute(CommandName.GET_CURRENT_URL)

    async def find_element(
        self, locator: Locator, wait: Optional[WaitOptions] = None
    ) -> "RemoteElement":
        value = await self._execute(
            CommandName.FIND_ELEMENT, **_lookup_params(locator, wait)
        )
        return RemoteElement(self, value["element_id"])

    async def find_elements(
        self, locator: Locator, wait: Optional[WaitOptions] = None
    ) -> List["RemoteElement"]:
        values = await self._execute(
            CommandName.FIND_ELEMENTS, **_lookup_params(locator, wait)
        )
        return [RemoteElement(self, value["element_id"]) for value in values]

    async def close(self) -> None:
        await self._execute(CommandName.DELETE_SESSION)

    async def __aenter__(self) -> "RemoteSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class RemoteElement:
    """Opaque reference to an element held by the dispatcher."""

    def __init__(self, session: RemoteSession, element_id: str) -> None:
        self.session = session
        self.element_id = element_id

    async def _execute(self, name: CommandName, **params: Any) -> Any:
        return await self.session._execute(name, element_id=self.element_id, **params)

    async def find_element(
        self, locator: Locator, wait: Optional[WaitOptions] = None
    ) -> "RemoteElement":
        value = await self._execute(
            CommandName.FIND_ELEMENT, **_lookup_params(locator, wait)
        )
        return RemoteElement(self.session, value["element_id"])

    async def find_elements(
        self, locator: Locator, wait: Optional[WaitOptions] = None
    ) -> List["RemoteElement"]:
        values = await self._execute(
            CommandName.FIND_ELEMENTS, **_lookup_params(locator, wait)
        )
        return [RemoteElement(self.session, value["element_id"]) for value in values]

    async def send_keys(self, text: str) -> None:
        await self._execute(CommandName.SEND_KEYS, text=text)

    async def submit(self) -> None:
        await self._execute(CommandName.SUBMIT)

    async def click(self) -> None:
        await self._execute(CommandName.CLICK)

    async def text(self) -> str:
        return await self._execute(CommandName.GET_TEXT)

    def __repr__(self) -> str:
        return f"RemoteElement({self.element_id})"


def _lookup_params(locator: Locator, wait: Optional[WaitOptions]) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "strategy": locator.strategy.value,
        "value": locator.value,
    }
    if wait is not None:
        params["timeout_ms"] = wait.timeout_ms
        params["poll_interval_ms"] = wait.poll_interval_ms
    return params
