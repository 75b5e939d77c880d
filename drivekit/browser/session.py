"""
Playwright-backed browser session.
"""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional, Union
from urllib.parse import urlparse
from uuid import uuid4

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from drivekit.browser.element import ElementSequence, WebElement
from drivekit.browser.resolver import LocatorResolver
from drivekit.config.settings import Settings, get_settings
from drivekit.core.interfaces import SearchContext
from drivekit.core.types import BrowserKind, Locator, SessionState, WaitOptions
from drivekit.error_handling.exceptions import (
    AlreadyClosedError,
    LaunchError,
    NavigationError,
)
from drivekit.monitoring.logger import get_logger, log_performance_metric


class Session(SearchContext):
    """One browser process, one context, one page."""

    def __init__(
        self,
        browser_kind: Optional[Union[BrowserKind, str]] = None,
        headless: Optional[bool] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """
        Create an unopened session. Nothing is launched until ``start()``.

        Args:
            browser_kind: Browser to launch (defaults to config)
            headless: Run browser in headless mode (defaults to config)
            settings: Settings instance (defaults to cached settings)

        Raises:
            LaunchError: If the browser kind is not supported
        """
        self.settings = settings or get_settings()
        self.browser_kind = BrowserKind.parse(browser_kind or self.settings.browser_kind)
        self.headless = headless if headless is not None else self.settings.browser_headless
        self.session_id = uuid4().hex
        self.state = SessionState.UNOPENED
        # Incremented whenever the page's document is replaced
        self.document_id = 0
        self.resolver = LocatorResolver(self)

        self.logger = get_logger(__name__, session_id=self.session_id)
        self._lock = asyncio.Lock()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    def __repr__(self) -> str:
        return f"<Session {self.session_id[:8]} {self.browser_kind.value} {self.state.value}>"

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    @property
    def page(self) -> Optional[Page]:
        """Get the current page object (for advanced operations)."""
        return self._page

    def default_wait(self) -> WaitOptions:
        return self.settings.default_wait()

    # -- lifecycle ------------------------------------------------------

    async def start(self) -> "Session":
        """
        Launch the browser and open a page.

        Concurrent calls launch one browser; later callers get the open session.

        Raises:
            LaunchError: If any part of the launch fails; nothing is left running
            AlreadyClosedError: If the session was already closed
        """
        if self.state is SessionState.OPEN:
            return self

        async with self._lock:
            if self.state is SessionState.OPEN:
                return self
            if self.state is SessionState.CLOSED:
                raise AlreadyClosedError(
                    f"Session {self.session_id} is closed and cannot be reopened",
                    session_id=self.session_id,
                )
            await self._launch()
            self.state = SessionState.OPEN
        return self

    async def _launch(self) -> None:
        self.logger.info(
            "Starting browser",
            extra={
                "browser_kind": self.browser_kind.value,
                "headless": self.headless,
                "viewport": (
                    f"{self.settings.browser_viewport_width}x"
                    f"{self.settings.browser_viewport_height}"
                ),
            },
        )

        launch_options = {"headless": self.headless}
        if self.browser_kind.channel:
            launch_options["channel"] = self.browser_kind.channel
        if self.browser_kind.engine == "chromium":
            launch_options["args"] = ["--disable-dev-shm-usage", "--disable-extensions"]

        try:
            self._playwright = await async_playwright().start()
            browser_type = getattr(self._playwright, self.browser_kind.engine)
            self._browser = await browser_type.launch(**launch_options)
            self._context = await self._browser.new_context(
                viewport={
                    "width": self.settings.browser_viewport_width,
                    "height": self.settings.browser_viewport_height,
                },
            )
            self._context.set_default_timeout(self.settings.browser_timeout)
            self._page = await self._context.new_page()
        except Exception as exc:
            await self._release()
            reason = str(exc).split("\n")[0]
            raise LaunchError(
                f"Could not start {self.browser_kind.value}: {reason}",
                browser_kind=self.browser_kind.value,
                cause=exc,
            ) from exc

    async def close(self) -> None:
        """
        Terminate the browser process and release every resource.

        Raises:
            AlreadyClosedError: If the session is already closed
        """
        if self.state is SessionState.CLOSED:
            raise AlreadyClosedError(
                f"Session {self.session_id} is already closed",
                session_id=self.session_id,
            )

        async with self._lock:
            # Another close may have won the lock first
            if self.state is SessionState.CLOSED:
                raise AlreadyClosedError(
                    f"Session {self.session_id} is already closed",
                    session_id=self.session_id,
                )
            launched = self.state is SessionState.OPEN
            self.state = SessionState.CLOSED
            await self._release()

        if launched:
            self.logger.info("Browser stopped")

    async def _release(self) -> None:
        """Close page, context and browser, then stop Playwright. Never raises."""
        for name in ("_page", "_context", "_browser"):
            resource = getattr(self, name)
            if resource is None:
                continue
            try:
                await resource.close()
            except PlaywrightError as exc:
                self.logger.warning(
                    f"Failed to close {name.strip('_')}", extra={"error": str(exc)}
                )
            setattr(self, name, None)

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as exc:
                self.logger.warning("Failed to stop Playwright", extra={"error": str(exc)})
            self._playwright = None

    def _ensure_open(self, operation: str) -> None:
        if self.state is not SessionState.OPEN:
            raise AlreadyClosedError(
                f"Cannot {operation}: session {self.session_id} is {self.state.value}",
                session_id=self.session_id,
            )

    @asynccontextmanager
    async def command(self, operation: str) -> AsyncIterator[Page]:
        """
        Hold the session for one driver round trip.

        Commands on a session run one at a time.

        Raises:
            AlreadyClosedError: If the session is not open
        """
        self._ensure_open(operation)
        async with self._lock:
            self._ensure_open(operation)
            yield self._page

    # -- navigation -----------------------------------------------------

    async def _navigate(
        self,
        operation: str,
        url: Optional[str],
        go: Callable[[Page], Awaitable[object]],
    ) -> None:
        try:
            async with self.command(operation) as page:
                self.logger.info("Navigating", extra={"operation": operation, "url": url})
                start_time = asyncio.get_running_loop().time()
                try:
                    await go(page)
                except PlaywrightError as exc:
                    reason = str(exc).split("\n")[0]
                    raise NavigationError(
                        f"{operation} failed: {reason}", url=url, cause=exc
                    ) from exc
                finally:
                    # The old document is gone even when the load itself failed
                    self.document_id += 1

                elapsed_ms = (asyncio.get_running_loop().time() - start_time) * 1000
                log_performance_metric(
                    "page_navigation",
                    elapsed_ms,
                    context={"operation": operation, "url": url, "session_id": self.session_id},
                )
        except AlreadyClosedError as exc:
            raise NavigationError(exc.message, url=url, cause=exc) from exc

    async def navigate(self, url: str) -> None:
        """
        Load a URL, replacing the current document.

        Every element resolved before the call is stale afterwards.

        Raises:
            NavigationError: On an invalid URL, a closed session or a failed load
        """
        if not url or not urlparse(url).scheme:
            raise NavigationError(f"Invalid URL: {url!r}", url=url)

        wait_until = self.settings.navigation_wait_until
        await self._navigate(
            "navigate", url, lambda page: page.goto(url, wait_until=wait_until)
        )

    async def back(self) -> None:
        """Go back one entry in the session history."""
        wait_until = self.settings.navigation_wait_until
        await self._navigate(
            "back", self._page.url if self._page else None,
            lambda page: page.go_back(wait_until=wait_until),
        )

    async def forward(self) -> None:
        """Go forward one entry in the session history."""
        wait_until = self.settings.navigation_wait_until
        await self._navigate(
            "forward", self._page.url if self._page else None,
            lambda page: page.go_forward(wait_until=wait_until),
        )

    async def refresh(self) -> None:
        """Reload the current document."""
        wait_until = self.settings.navigation_wait_until
        await self._navigate(
            "refresh", self._page.url if self._page else None,
            lambda page: page.reload(wait_until=wait_until),
        )

    # -- page state -----------------------------------------------------

    @property
    def current_url(self) -> str:
        self._ensure_open("get_current_url")
        return self._page.url

    async def title(self) -> str:
        async with self.command("get_title") as page:
            return await page.title()

    async def page_source(self) -> str:
        """Serialized HTML of the current document."""
        async with self.command("get_page_source") as page:
            return await page.content()

    async def screenshot(self, path: Optional[Path] = None) -> bytes:
        """Capture the viewport as PNG, optionally saving it to ``path``."""
        async with self.command("screenshot") as page:
            if path:
                path.parent.mkdir(parents=True, exist_ok=True)
                self.logger.info("Saving screenshot", extra={"path": str(path)})
                return await page.screenshot(path=str(path), type="png")
            return await page.screenshot(type="png")

    # -- element lookup -------------------------------------------------

    async def find_element(
        self, locator: Locator, wait: Optional[WaitOptions] = None
    ) -> WebElement:
        """
        Find the first element matching ``locator`` in document order.

        Args:
            locator: Strategy/value pair (see ``By``)
            wait: Polling window; defaults to the configured implicit wait

        Raises:
            NoSuchElementError: If nothing matched before the window closed
            InvalidSelectorError: If the CSS selector or XPath is malformed
            AlreadyClosedError: If the session is closed
        """
        options = wait or self.default_wait()
        matches = await self.resolver.find_first(locator, options)
        return WebElement(self, matches.handles[0], locator, matches.document_id)

    async def find_elements(
        self, locator: Locator, wait: Optional[WaitOptions] = None
    ) -> ElementSequence:
        """
        Find all elements matching ``locator`` in document order.

        An empty sequence means nothing matched within the window.
        """
        options = wait or self.default_wait()
        matches = await self.resolver.find_all(locator, options)
        return ElementSequence(self, matches.handles, locator, matches.document_id)

    async def __aenter__(self) -> "Session":
        """Async context manager entry."""
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self.state is not SessionState.CLOSED:
            await self.close()
