"""
Element proxy: actions and reads on a resolved DOM node.
"""

import asyncio
from collections import deque
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Iterator, List, Optional
from uuid import uuid4

from playwright.async_api import ElementHandle, Frame, Page, Request
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from drivekit.browser.resolver import is_stale_error
from drivekit.browser.scripts import (
    IS_CONNECTED,
    MOVE_CARET_TO_END,
    SAME_NODE,
    SUBMIT_FORM,
    TAG_NAME,
)
from drivekit.core.interfaces import SearchContext
from drivekit.core.types import Locator, WaitOptions, iter_key_segments
from drivekit.error_handling.exceptions import (
    ElementError,
    ElementNotInteractableError,
    NavigationError,
    StaleElementError,
)
from drivekit.monitoring.logger import get_logger

if TYPE_CHECKING:
    from drivekit.browser.session import Session


class _NavigationWatch:
    """Tracks a main-frame navigation from its first request to its commit."""

    def __init__(self, page: Page) -> None:
        self._page = page
        self.started = asyncio.Event()
        self.committed = asyncio.Event()

    def _on_request(self, request: Request) -> None:
        if request.is_navigation_request() and request.frame == self._page.main_frame:
            self.started.set()

    def _on_frame_navigated(self, frame: Frame) -> None:
        # Same-document navigations (hash, pushState) send no request
        if frame == self._page.main_frame and self.started.is_set():
            self.committed.set()

    def mark_committed(self) -> None:
        self.started.set()
        self.committed.set()

    async def wait(self, event: asyncio.Event, timeout_ms: int) -> bool:
        if event.is_set():
            return True
        try:
            await asyncio.wait_for(event.wait(), timeout_ms / 1000)
        except asyncio.TimeoutError:
            return False
        return True

    def __enter__(self) -> "_NavigationWatch":
        self._page.on("request", self._on_request)
        self._page.on("framenavigated", self._on_frame_navigated)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._page.remove_listener("request", self._on_request)
        self._page.remove_listener("framenavigated", self._on_frame_navigated)


class WebElement(SearchContext):
    """
    Handle to one DOM node in a session's current document.

    A WebElement is only valid while the document it was found in stays
    loaded. Once the session navigates, every call raises StaleElementError.
    """

    def __init__(
        self,
        session: "Session",
        handle: ElementHandle,
        locator: Optional[Locator] = None,
        document_id: Optional[int] = None,
    ) -> None:
        self.element_id = uuid4().hex
        self.locator = locator
        self.document_id = session.document_id if document_id is None else document_id
        self._session = session
        self._handle = handle
        self.logger = get_logger(
            __name__,
            session_id=session.session_id,
            element_id=self.element_id,
        )

    @property
    def session(self) -> "Session":
        return self._session

    @property
    def handle(self) -> ElementHandle:
        """Underlying Playwright handle (for advanced operations)."""
        return self._handle

    def __repr__(self) -> str:
        return (
            f"<WebElement {self.element_id[:8]} locator={self.locator} "
            f"document={self.document_id}>"
        )

    # -- guards ---------------------------------------------------------

    def _check_document(self, action: str) -> None:
        if self.document_id != self._session.document_id:
            raise StaleElementError(
                "Element belongs to a document the session has navigated away from",
                element_id=self.element_id,
                action=action,
            )

    async def _ensure_live(self, action: str) -> None:
        self._check_document(action)
        try:
            connected = await self._handle.evaluate(IS_CONNECTED)
        except PlaywrightError as exc:
            raise StaleElementError(
                "Element's document is gone",
                element_id=self.element_id,
                action=action,
                cause=exc,
            ) from exc
        if not connected:
            raise StaleElementError(
                "Element is no longer attached to the document",
                element_id=self.element_id,
                action=action,
            )

    async def _ensure_interactable(self, action: str) -> None:
        try:
            visible = await self._handle.is_visible()
            enabled = await self._handle.is_enabled()
        except PlaywrightError as exc:
            raise self._translate_error(exc, action) from exc
        if not visible:
            raise ElementNotInteractableError(
                "Element is not visible",
                element_id=self.element_id,
                action=action,
            )
        if not enabled:
            raise ElementNotInteractableError(
                "Element is disabled",
                element_id=self.element_id,
                action=action,
            )

    def _translate_error(self, exc: PlaywrightError, action: str) -> ElementError:
        reason = str(exc).split("\n")[0]
        if not isinstance(exc, PlaywrightTimeoutError) and is_stale_error(exc):
            return StaleElementError(
                f"Element went stale during {action}: {reason}",
                element_id=self.element_id,
                action=action,
                cause=exc,
            )
        return ElementNotInteractableError(
            f"Could not {action} element: {reason}",
            element_id=self.element_id,
            action=action,
            cause=exc,
        )

    @asynccontextmanager
    async def _interaction(self, action: str) -> AsyncIterator[ElementHandle]:
        """Serialize on the session and verify the handle before acting."""
        async with self._session.command(action):
            await self._ensure_live(action)
            yield self._handle

    # -- actions --------------------------------------------------------

    async def send_keys(self, text: str) -> None:
        """
        Type text into the element one keystroke at a time.

        Text is appended after any existing value. Keys.* code points inside
        ``text`` are pressed as the corresponding key.

        Raises:
            StaleElementError: If the element's document has been replaced
            ElementNotInteractableError: If the element is hidden or disabled
        """
        async with self._interaction("send_keys") as handle:
            await self._ensure_interactable("send_keys")
            # Never log the text itself; it is often a password
            self.logger.debug("Sending keys", extra={"length": len(text)})
            keyboard = self._session.page.keyboard
            delay = self._session.settings.typing_delay_ms
            try:
                await handle.focus()
                await handle.evaluate(MOVE_CARET_TO_END)
                for segment, is_key in iter_key_segments(text):
                    if is_key:
                        await keyboard.press(segment)
                    else:
                        await keyboard.type(segment, delay=delay)
            except PlaywrightError as exc:
                raise self._translate_error(exc, "send_keys") from exc

    async def submit(self) -> None:
        """
        Submit the nearest enclosing form, as a user-triggered submission would.

        When the submission starts a navigation, this waits for the new
        document to load; this and every other handle from the old document
        is stale afterwards.

        Raises:
            StaleElementError: If the element's document has been replaced
            ElementNotInteractableError: If the element is hidden, disabled or
                not inside a form
            NavigationError: If the resulting navigation does not complete
        """
        async with self._interaction("submit") as handle:
            await self._ensure_interactable("submit")
            self.logger.debug("Submitting form")
            page = self._session.page
            settings = self._session.settings

            with _NavigationWatch(page) as watch:
                try:
                    submitted = await handle.evaluate(SUBMIT_FORM)
                except PlaywrightError as exc:
                    if "Execution context was destroyed" not in str(exc):
                        raise self._translate_error(exc, "submit") from exc
                    # The submission navigated before the script returned
                    submitted = True
                    watch.mark_committed()

                if not submitted:
                    raise ElementNotInteractableError(
                        "Element is not inside a form",
                        element_id=self.element_id,
                        action="submit",
                    )

                if not await watch.wait(watch.started, settings.submit_navigation_grace_ms):
                    return
                self._session.document_id += 1

                try:
                    committed = await watch.wait(watch.committed, settings.browser_timeout)
                    if committed:
                        await page.wait_for_load_state(settings.navigation_wait_until)
                except PlaywrightError as exc:
                    raise NavigationError(
                        "Page did not finish loading after form submission",
                        url=page.url,
                        cause=exc,
                    ) from exc
                if not committed:
                    raise NavigationError(
                        "Navigation started by form submission never committed",
                        url=page.url,
                    )

    async def click(self) -> None:
        """
        Click the centre of the element, scrolling it into view first.

        Raises:
            StaleElementError: If the element's document has been replaced
            ElementNotInteractableError: If the element is hidden, disabled or covered
        """
        async with self._interaction("click") as handle:
            await self._ensure_interactable("click")
            self.logger.debug("Clicking element")
            try:
                await handle.click(timeout=self._session.settings.action_timeout_ms)
            except PlaywrightError as exc:
                raise self._translate_error(exc, "click") from exc

    async def clear(self) -> None:
        """Empty an input, textarea or contenteditable element."""
        async with self._interaction("clear") as handle:
            await self._ensure_interactable("clear")
            try:
                await handle.fill("", timeout=self._session.settings.action_timeout_ms)
            except PlaywrightError as exc:
                raise self._translate_error(exc, "clear") from exc

    # -- reads ----------------------------------------------------------

    async def _read(self, action: str, reader) -> Any:
        async with self._interaction(action) as handle:
            try:
                return await reader(handle)
            except PlaywrightError as exc:
                raise self._translate_error(exc, action) from exc

    async def text(self) -> str:
        """Rendered text of the element."""
        return await self._read("get_text", lambda handle: handle.inner_text())

    async def tag_name(self) -> str:
        return await self._read("get_tag_name", lambda handle: handle.evaluate(TAG_NAME))

    async def get_attribute(self, name: str) -> Optional[str]:
        return await self._read(
            "get_attribute", lambda handle: handle.get_attribute(name)
        )

    async def get_property(self, name: str) -> Any:
        """JSON value of a DOM property (e.g. ``value``, ``checked``)."""
        async def reader(handle: ElementHandle) -> Any:
            js_handle = await handle.get_property(name)
            try:
                return await js_handle.json_value()
            finally:
                await js_handle.dispose()

        return await self._read("get_property", reader)

    async def is_displayed(self) -> bool:
        return await self._read("is_displayed", lambda handle: handle.is_visible())

    async def is_enabled(self) -> bool:
        return await self._read("is_enabled", lambda handle: handle.is_enabled())

    async def same_as(self, other: "WebElement") -> bool:
        """Whether both handles point at the same DOM node."""
        if other.session is not self._session or other.document_id != self.document_id:
            return False
        return await self._read(
            "compare", lambda handle: handle.evaluate(SAME_NODE, other.handle)
        )

    # -- element-scoped search ------------------------------------------

    async def find_element(
        self, locator: Locator, wait: Optional[WaitOptions] = None
    ) -> "WebElement":
        """First descendant matching the locator, in document order."""
        self._check_document("find_element")
        options = wait or self._session.default_wait()
        matches = await self._session.resolver.find_first(locator, options, root=self._handle)
        return WebElement(self._session, matches.handles[0], locator, matches.document_id)

    async def find_elements(
        self, locator: Locator, wait: Optional[WaitOptions] = None
    ) -> "ElementSequence":
        """All descendants matching the locator, in document order."""
        self._check_document("find_elements")
        options = wait or self._session.default_wait()
        matches = await self._session.resolver.find_all(locator, options, root=self._handle)
        return ElementSequence(self._session, matches.handles, locator, matches.document_id)


class ElementSequence(Iterator[WebElement]):
    """
    Result of find_elements.

    Lazy: handles are wrapped as they are consumed. Finite: len() is the
    number of matches. Non-restartable: once consumed, iterating again
    yields nothing.
    """

    def __init__(
        self,
        session: "Session",
        handles: List[ElementHandle],
        locator: Locator,
        document_id: int,
    ) -> None:
        self._session = session
        self._pending = deque(handles)
        self._total = len(handles)
        self.locator = locator
        self.document_id = document_id

    def __len__(self) -> int:
        return self._total

    @property
    def remaining(self) -> int:
        return len(self._pending)

    def __iter__(self) -> "ElementSequence":
        return self

    def __next__(self) -> WebElement:
        if not self._pending:
            raise StopIteration
        return WebElement(
            self._session, self._pending.popleft(), self.locator, self.document_id
        )
