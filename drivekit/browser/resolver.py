"""
Locator resolution against a session's current document.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from playwright.async_api import ElementHandle
from playwright.async_api import Error as PlaywrightError

from drivekit.browser.scripts import FIND_ELEMENTS, FIND_ELEMENTS_IN_DOCUMENT
from drivekit.browser.wait import poll
from drivekit.core.types import Locator, WaitOptions
from drivekit.error_handling.exceptions import (
    DriverError,
    InvalidSelectorError,
    NoSuchElementError,
    StaleElementError,
)

if TYPE_CHECKING:
    from drivekit.browser.session import Session

# Messages Playwright uses when a handle's document has gone away
STALE_MARKERS = (
    "not attached to the DOM",
    "Execution context was destroyed",
    "JSHandle is disposed",
    "Cannot find context with specified id",
    "Unable to adopt element handle from a different document",
)


def is_stale_error(exc: Exception) -> bool:
    """Whether a Playwright error means the referenced node is gone."""
    message = str(exc)
    return any(marker in message for marker in STALE_MARKERS)


@dataclass
class Matches:
    """Element handles found by one lookup, tagged with the document they belong to."""

    document_id: int
    handles: List[ElementHandle] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.handles)

    def __len__(self) -> int:
        return len(self.handles)


class LocatorResolver:
    """Finds elements for a session, polling within a WaitOptions window."""

    def __init__(self, session: "Session") -> None:
        self._session = session

    async def query(
        self,
        locator: Locator,
        root: Optional[ElementHandle] = None,
        first: bool = False,
    ) -> Matches:
        """
        Run a single lookup attempt.

        Args:
            locator: What to look for
            root: Restrict the search to this element's subtree
            first: Only return the first match in document order

        Returns:
            Matches in document order (possibly empty)
        """
        payload = {**locator.describe(), "first": first}

        async with self._session.command("find_elements") as page:
            document_id = self._session.document_id
            try:
                if root is None:
                    array = await page.evaluate_handle(FIND_ELEMENTS_IN_DOCUMENT, payload)
                else:
                    array = await root.evaluate_handle(FIND_ELEMENTS, payload)
                properties = await array.get_properties()
            except PlaywrightError as exc:
                if "invalid selector" in str(exc):
                    raise InvalidSelectorError(
                        f"Invalid selector {locator}: {str(exc).splitlines()[0]}",
                        locator=locator.describe(),
                        cause=exc,
                    ) from exc
                if is_stale_error(exc):
                    if root is not None:
                        raise StaleElementError(
                            "Search root is no longer attached to the document",
                            action="find_elements",
                            cause=exc,
                        ) from exc
                    # Document is being replaced; the next attempt sees the new one
                    return Matches(document_id=document_id)
                raise DriverError(
                    f"Element lookup failed for {locator}",
                    details={"locator": locator.describe()},
                    cause=exc,
                ) from exc

            indexed = sorted(
                (int(key), handle) for key, handle in properties.items() if key.isdigit()
            )
            handles: List[ElementHandle] = []
            for _, handle in indexed:
                element = handle.as_element()
                if element is not None:
                    handles.append(element)
                else:
                    await handle.dispose()
            await array.dispose()

        return Matches(document_id=document_id, handles=handles)

    async def find_all(
        self,
        locator: Locator,
        wait: WaitOptions,
        root: Optional[ElementHandle] = None,
    ) -> Matches:
        """Poll until at least one element matches or the window closes."""
        locator.ensure_queryable()
        return await poll(
            lambda: self.query(locator, root),
            wait.timeout_ms,
            wait.poll_interval_ms,
        )

    async def find_first(
        self,
        locator: Locator,
        wait: WaitOptions,
        root: Optional[ElementHandle] = None,
    ) -> Matches:
        """
        Poll for the first element in document order.

        Raises:
            NoSuchElementError: If nothing matched within the window
        """
        locator.ensure_queryable()
        matches = await poll(
            lambda: self.query(locator, root, first=True),
            wait.timeout_ms,
            wait.poll_interval_ms,
        )
        if not matches:
            raise NoSuchElementError(
                f"No element matches {locator} (waited {wait.timeout_ms}ms)",
                locator=locator.describe(),
                timeout_ms=wait.timeout_ms,
            )
        return matches
