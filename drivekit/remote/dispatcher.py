"""
Server side of the command protocol.

The dispatcher owns a SessionManager, executes Commands against it and turns
every outcome into a Response. Elements cross the wire as opaque ids.
"""

from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Optional

from playwright.async_api import Error as PlaywrightError
from pydantic import ValidationError

from drivekit.browser.element import WebElement
from drivekit.browser.manager import SessionManager
from drivekit.browser.session import Session
from drivekit.core.types import Locator, WaitOptions
from drivekit.error_handling.exceptions import (
    DriverError,
    InvalidSelectorError,
    NoSuchElementError,
    StaleElementError,
    UnknownCommandError,
)
from drivekit.monitoring.logger import get_logger, log_driver_command
from drivekit.remote.protocol import Command, CommandName, Response

Handler = Callable[[Command], Awaitable[Any]]

# Ids of elements from replaced documents remembered per session
RETIRED_ID_LIMIT = 1000


class CommandDispatcher:
    """Executes protocol commands against locally managed sessions."""

    def __init__(self, manager: Optional[SessionManager] = None) -> None:
        self.manager = manager or SessionManager()
        self.logger = get_logger(__name__)
        # session id -> element id -> element
        self._elements: Dict[str, Dict[str, WebElement]] = {}
        self._retired: Dict[str, "OrderedDict[str, None]"] = {}
        self._handlers: Dict[str, Handler] = {
            CommandName.NEW_SESSION.value: self._new_session,
            CommandName.DELETE_SESSION.value: self._delete_session,
            CommandName.NAVIGATE.value: self._navigate,
            CommandName.GET_TITLE.value: self._get_title,
            CommandName.GET_CURRENT_URL.value: self._get_current_url,
            CommandName.FIND_ELEMENT.value: self._find_element,
            CommandName.FIND_ELEMENTS.value: self._find_elements,
            CommandName.SEND_KEYS.value: self._send_keys,
            CommandName.SUBMIT.value: self._submit,
            CommandName.CLICK.value: self._click,
            CommandName.GET_TEXT.value: self._get_text,
        }

    async def dispatch(self, command: Command) -> Response:
        """
        Execute one command. Never raises; failures become error responses.
        """
        log_driver_command(command.name, command.session_id, command.params)
        try:
            handler = self._handlers.get(command.name)
            if handler is None:
                raise UnknownCommandError(
                    f"Unknown command: {command.name}", command=command.name
                )
            value = await handler(command)
        except DriverError as exc:
            log_driver_command(command.name, command.session_id, outcome="error")
            response = Response.failure(command, exc)
        except Exception as exc:
            self.logger.exception(
                "Unexpected failure while dispatching",
                extra={"command": command.name, "session_id": command.session_id},
            )
            response = Response.failure(
                command, DriverError(f"Internal error: {exc}", cause=exc)
            )
        else:
            log_driver_command(command.name, command.session_id, outcome="success")
            if command.name == CommandName.NEW_SESSION.value:
                response = Response.success(command, value, session_id=value["session_id"])
            else:
                response = Response.success(command, value)

        if command.session_id:
            await self._retire_stale(command.session_id)
        return response

    async def shutdown(self) -> None:
        """Close every session this dispatcher opened."""
        self._elements.clear()
        self._retired.clear()
        await self.manager.close_all()

    # -- lookups --------------------------------------------------------

    def _session(self, command: Command) -> Session:
        return self.manager.get(command.session_id or "")

    def _element(self, command: Command) -> WebElement:
        element_id = command.params.get("element_id", "")
        if element_id in self._retired.get(command.session_id or "", {}):
            raise StaleElementError(
                "Element belongs to a document the session has navigated away from",
                element_id=element_id,
                action=command.name,
            )
        element = self._elements.get(command.session_id or "", {}).get(element_id)
        if element is None:
            raise NoSuchElementError(f"Unknown element reference: {element_id!r}")
        return element

    def _register(self, session: Session, element: WebElement) -> Dict[str, str]:
        self._elements.setdefault(session.session_id, {})[element.element_id] = element
        return {"element_id": element.element_id}

    async def _retire_stale(self, session_id: str) -> None:
        """Forget elements whose document is gone, keeping their ids as stale."""
        registry = self._elements.get(session_id)
        session = self.manager.sessions.get(session_id)
        if not registry or session is None:
            return

        stale = [
            element_id
            for element_id, element in registry.items()
            if element.document_id != session.document_id
        ]
        if not stale:
            return

        retired = self._retired.setdefault(session_id, OrderedDict())
        for element_id in stale:
            element = registry.pop(element_id)
            retired[element_id] = None
            try:
                await element.handle.dispose()
            except PlaywrightError as exc:
                self.logger.debug(
                    "Could not dispose stale element handle",
                    extra={"element_id": element_id, "error": str(exc)},
                )
        while len(retired) > RETIRED_ID_LIMIT:
            retired.popitem(last=False)

    @staticmethod
    def _locator(params: Dict[str, Any]) -> Locator:
        try:
            locator = Locator(strategy=params["strategy"], value=params["value"])
        except (KeyError, ValidationError) as exc:
            raise InvalidSelectorError(
                f"Malformed locator: strategy={params.get('strategy')!r} "
                f"value={params.get('value')!r}",
                cause=exc,
            ) from exc
        return locator.ensure_queryable()

    @staticmethod
    def _wait(session: Session, params: Dict[str, Any]) -> WaitOptions:
        default = session.default_wait()
        timeout_ms = params.get("timeout_ms", default.timeout_ms)
        poll_interval_ms = params.get("poll_interval_ms", default.poll_interval_ms)
        try:
            return WaitOptions(timeout_ms=timeout_ms, poll_interval_ms=poll_interval_ms)
        except ValidationError as exc:
            raise DriverError(
                f"Invalid wait options: timeout_ms={timeout_ms!r} "
                f"poll_interval_ms={poll_interval_ms!r}",
                error_code="invalid_argument",
                details={"timeout_ms": timeout_ms, "poll_interval_ms": poll_interval_ms},
                cause=exc,
            ) from exc

    # -- handlers -------------------------------------------------------

    async def _new_session(self, command: Command) -> Dict[str, Any]:
        session = await self.manager.open(
            command.params.get("browser_kind"),
            headless=command.params.get("headless"),
        )
        self._elements[session.session_id] = {}
        return {
            "session_id": session.session_id,
            "browser_kind": session.browser_kind.value,
        }

    async def _delete_session(self, command: Command) -> None:
        session = self._session(command)
        self._elements.pop(session.session_id, None)
        self._retired.pop(session.session_id, None)
        await self.manager.close(session)

    async def _navigate(self, command: Command) -> None:
        # Elements from the old document are retired once the command returns
        await self._session(command).navigate(command.params.get("url", ""))

    async def _get_title(self, command: Command) -> str:
        return await self._session(command).title()

    async def _get_current_url(self, command: Command) -> str:
        return self._session(command).current_url

    async def _find_element(self, command: Command) -> Dict[str, str]:
        session = self._session(command)
        locator = self._locator(command.params)
        wait = self._wait(session, command.params)
        context = self._element(command) if "element_id" in command.params else session
        element = await context.find_element(locator, wait)
        return self._register(session, element)

    async def _find_elements(self, command: Command) -> list:
        session = self._session(command)
        locator = self._locator(command.params)
        wait = self._wait(session, command.params)
        context = self._element(command) if "element_id" in command.params else session
        elements = await context.find_elements(locator, wait)
        return [self._register(session, element) for element in elements]

    async def _send_keys(self, command: Command) -> None:
        self._session(command)
        await self._element(command).send_keys(command.params.get("text", ""))

    async def _submit(self, command: Command) -> None:
        self._session(command)
        await self._element(command).submit()

    async def _click(self, command: Command) -> None:
        self._session(command)
        await self._element(command).click()

    async def _get_text(self, command: Command) -> str:
        self._session(command)
        return await self._element(command).text()
