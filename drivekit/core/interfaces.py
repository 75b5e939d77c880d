"""
Core interfaces and abstract base classes for drivekit.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from drivekit.core.types import Locator, WaitOptions

if TYPE_CHECKING:
    from drivekit.browser.element import ElementSequence, WebElement


class SearchContext(ABC):
    """Something elements can be looked up in: a session's document or an element subtree."""

    @abstractmethod
    async def find_element(
        self, locator: Locator, wait: Optional[WaitOptions] = None
    ) -> "WebElement":
        """
        Find the first element matching a locator, in document order.

        Args:
            locator: Strategy/value pair to match
            wait: Polling window (defaults to configured implicit wait)

        Returns:
            Handle to the first matching element

        Raises:
            NoSuchElementError: If nothing matched before the wait expired
        """
        pass

    @abstractmethod
    async def find_elements(
        self, locator: Locator, wait: Optional[WaitOptions] = None
    ) -> "ElementSequence":
        """
        Find every element matching a locator, in document order.

        Returns an empty sequence rather than raising when nothing matches.
        """
        pass


class ConfigProvider(ABC):
    """Abstract interface for configuration management."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        pass

    @abstractmethod
    def get_required(self, key: str) -> Any:
        """Get required configuration value, raise if missing."""
        pass

    @abstractmethod
    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        pass
