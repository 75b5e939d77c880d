"""
Polling helpers: the retry loop behind element lookups and explicit waits.
"""

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

from drivekit.core.types import Locator, WaitOptions
from drivekit.error_handling.exceptions import (
    DriverError,
    NoSuchElementError,
    StaleElementError,
    WaitTimeoutError,
)
from drivekit.monitoring.logger import get_logger

if TYPE_CHECKING:
    from drivekit.browser.element import WebElement
    from drivekit.browser.session import Session

logger = get_logger(__name__)

T = TypeVar("T")

Condition = Callable[["Session"], Awaitable[Any]]


async def poll(
    attempt: Callable[[], Awaitable[T]],
    timeout_ms: int,
    poll_interval_ms: int,
) -> T:
    """
    Run ``attempt`` until it returns something truthy or the window closes.

    The first attempt always runs, so a zero timeout means exactly one try.
    Sleeps never overshoot the deadline.

    Returns:
        The first truthy result, or the last (falsy) result once time is up
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_ms / 1000
    attempts = 0

    while True:
        attempts += 1
        result = await attempt()
        if result:
            return result

        remaining = deadline - loop.time()
        if remaining <= 0:
            if attempts > 1:
                logger.debug(
                    "Polling window elapsed",
                    extra={"attempts": attempts, "timeout_ms": timeout_ms},
                )
            return result

        await asyncio.sleep(min(poll_interval_ms / 1000, remaining))


class Wait:
    """Explicit wait: re-check a condition against a session until it holds."""

    def __init__(
        self,
        session: "Session",
        timeout_ms: int,
        poll_interval_ms: Optional[int] = None,
        ignored_exceptions: Tuple[Type[DriverError], ...] = (
            NoSuchElementError,
            StaleElementError,
        ),
    ) -> None:
        """
        Args:
            session: Session the condition is evaluated against
            timeout_ms: Total time to wait
            poll_interval_ms: Delay between checks (defaults to settings)
            ignored_exceptions: Errors treated as "not yet"
        """
        self._session = session
        self.timeout_ms = timeout_ms
        self.poll_interval_ms = poll_interval_ms or session.settings.poll_interval_ms
        self.ignored_exceptions = ignored_exceptions

    async def until(self, condition: Condition, message: str = "") -> Any:
        """
        Wait until ``condition(session)`` returns a truthy value and return it.

        Raises:
            WaitTimeoutError: If the condition never held within the timeout
        """
        last_error: Optional[DriverError] = None

        async def attempt() -> Any:
            nonlocal last_error
            try:
                return await condition(self._session)
            except self.ignored_exceptions as exc:
                last_error = exc
                return None

        value = await poll(attempt, self.timeout_ms, self.poll_interval_ms)
        if not value:
            raise WaitTimeoutError(
                message or f"Condition not met within {self.timeout_ms}ms",
                timeout_ms=self.timeout_ms,
                cause=last_error,
            )
        return value


def title_is(title: str) -> Condition:
    async def condition(session: "Session") -> bool:
        return await session.title() == title
    return condition


def url_contains(fragment: str) -> Condition:
    async def condition(session: "Session") -> bool:
        return fragment in session.current_url
    return condition


def presence_of_element_located(locator: Locator) -> Condition:
    """Element exists in the current document (visible or not)."""
    async def condition(session: "Session") -> "WebElement":
        return await session.find_element(locator, WaitOptions(timeout_ms=0))
    return condition


def visibility_of_element_located(locator: Locator) -> Condition:
    """Element exists and is rendered with a non-empty box."""
    async def condition(session: "Session") -> Any:
        element = await session.find_element(locator, WaitOptions(timeout_ms=0))
        if await element.is_displayed():
            return element
        return None
    return condition
