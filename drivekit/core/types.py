"""
Core data models and types for drivekit.
"""

from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from drivekit.error_handling.exceptions import InvalidSelectorError, LaunchError


_BROWSER_ALIASES: Dict[str, str] = {
    "google-chrome": "chrome",
    "edge": "msedge",
    "microsoft-edge": "msedge",
    "safari": "webkit",
    "gecko": "firefox",
    "ff": "firefox",
}


class BrowserKind(str, Enum):
    """Browsers a session can be opened against."""

    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"
    CHROME = "chrome"  # branded Chrome via the chromium engine
    MSEDGE = "msedge"

    @property
    def engine(self) -> str:
        """Playwright browser type used to launch this kind."""
        if self in (BrowserKind.CHROME, BrowserKind.MSEDGE):
            return "chromium"
        return self.value

    @property
    def channel(self) -> Optional[str]:
        """Release channel passed to the launcher, if any."""
        if self in (BrowserKind.CHROME, BrowserKind.MSEDGE):
            return self.value
        return None

    @classmethod
    def parse(cls, value: Union["BrowserKind", str]) -> "BrowserKind":
        """
        Resolve a browser kind from an enum member, name or alias.

        Raises:
            LaunchError: If the name does not denote a supported browser
        """
        if isinstance(value, cls):
            return value

        name = str(value).strip().lower()
        name = _BROWSER_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            raise LaunchError(
                f"Unsupported browser kind: {value!r}",
                browser_kind=str(value),
            ) from None


class SessionState(str, Enum):
    """Lifecycle of a session."""

    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


class Strategy(str, Enum):
    """Element location strategies, named as on the WebDriver wire."""

    ID = "id"
    CLASS_NAME = "class name"
    CSS_SELECTOR = "css selector"
    NAME = "name"
    LINK_TEXT = "link text"
    PARTIAL_LINK_TEXT = "partial link text"
    TAG_NAME = "tag name"
    XPATH = "xpath"


class Locator(BaseModel):
    """An immutable strategy/value pair describing how to find an element."""

    model_config = ConfigDict(frozen=True)

    strategy: Strategy
    value: str = Field(..., min_length=1, description="Strategy-specific match string")

    @model_validator(mode="before")
    @classmethod
    def check_query(cls, data: Any) -> Any:
        """Report unknown strategies and empty values as invalid selectors."""
        if not isinstance(data, dict):
            return data
        strategy = data.get("strategy")
        value = data.get("value")
        shown = {"strategy": str(getattr(strategy, "value", strategy)), "value": str(value)}
        try:
            Strategy(strategy)
        except ValueError:
            raise InvalidSelectorError(
                f"Unsupported locator strategy: {strategy!r}", locator=shown
            ) from None
        if not isinstance(value, str) or not value:
            raise InvalidSelectorError(
                f"Locator value must be a non-empty string, got {value!r}",
                locator=shown,
            )
        return data

    def describe(self) -> Dict[str, str]:
        """Plain dictionary form used in error details and on the wire."""
        return {"strategy": self.strategy.value, "value": self.value}

    def ensure_queryable(self) -> "Locator":
        """
        Reject locators no document could ever match.

        Raises:
            InvalidSelectorError: For compound class names
        """
        if self.strategy is Strategy.CLASS_NAME and any(
            ch.isspace() for ch in self.value.strip()
        ):
            raise InvalidSelectorError(
                f"Compound class names are not permitted: {self.value!r}",
                locator=self.describe(),
            )
        return self

    def __str__(self) -> str:
        return f"{self.strategy.value}={self.value!r}"


class By:
    """Locator factory mirroring the familiar WebDriver ``By`` helpers."""

    @staticmethod
    def id(value: str) -> Locator:
        return Locator(strategy=Strategy.ID, value=value)

    @staticmethod
    def class_name(value: str) -> Locator:
        return Locator(strategy=Strategy.CLASS_NAME, value=value).ensure_queryable()

    @staticmethod
    def css(value: str) -> Locator:
        return Locator(strategy=Strategy.CSS_SELECTOR, value=value)

    @staticmethod
    def name(value: str) -> Locator:
        return Locator(strategy=Strategy.NAME, value=value)

    @staticmethod
    def link_text(value: str) -> Locator:
        return Locator(strategy=Strategy.LINK_TEXT, value=value)

    @staticmethod
    def partial_link_text(value: str) -> Locator:
        return Locator(strategy=Strategy.PARTIAL_LINK_TEXT, value=value)

    @staticmethod
    def tag_name(value: str) -> Locator:
        return Locator(strategy=Strategy.TAG_NAME, value=value)

    @staticmethod
    def xpath(value: str) -> Locator:
        return Locator(strategy=Strategy.XPATH, value=value)


class WaitOptions(BaseModel):
    """Polling window for element lookups."""

    timeout_ms: int = Field(0, ge=0, description="Total time to keep retrying")
    poll_interval_ms: int = Field(500, gt=0, description="Delay between attempts")


class Keys:
    """
    Special keys accepted inside ``send_keys`` text.

    Values are the WebDriver private-use code points, so strings built for
    other WebDriver clients keep working.
    """

    BACKSPACE = "\ue003"
    TAB = "\ue004"
    RETURN = "\ue006"
    ENTER = "\ue007"
    ESCAPE = "\ue00c"
    SPACE = "\ue00d"
    PAGE_UP = "\ue00e"
    PAGE_DOWN = "\ue00f"
    END = "\ue010"
    HOME = "\ue011"
    ARROW_LEFT = "\ue012"
    ARROW_UP = "\ue013"
    ARROW_RIGHT = "\ue014"
    ARROW_DOWN = "\ue015"
    INSERT = "\ue016"
    DELETE = "\ue017"
    F1 = "\ue031"
    F2 = "\ue032"
    F3 = "\ue033"
    F4 = "\ue034"
    F5 = "\ue035"
    F6 = "\ue036"
    F7 = "\ue037"
    F8 = "\ue038"
    F9 = "\ue039"
    F10 = "\ue03a"
    F11 = "\ue03b"
    F12 = "\ue03c"


# Code point -> Playwright key name
KEY_NAMES: Dict[str, str] = {
    Keys.BACKSPACE: "Backspace",
    Keys.TAB: "Tab",
    Keys.RETURN: "Enter",
    Keys.ENTER: "Enter",
    Keys.ESCAPE: "Escape",
    Keys.SPACE: " ",
    Keys.PAGE_UP: "PageUp",
    Keys.PAGE_DOWN: "PageDown",
    Keys.END: "End",
    Keys.HOME: "Home",
    Keys.ARROW_LEFT: "ArrowLeft",
    Keys.ARROW_UP: "ArrowUp",
    Keys.ARROW_RIGHT: "ArrowRight",
    Keys.ARROW_DOWN: "ArrowDown",
    Keys.INSERT: "Insert",
    Keys.DELETE: "Delete",
    **{getattr(Keys, f"F{n}"): f"F{n}" for n in range(1, 13)},
}


def iter_key_segments(text: str) -> Iterator[Tuple[str, bool]]:
    """
    Split ``send_keys`` input into plain text runs and special keys.

    Yields:
        (segment, is_key) pairs; for keys the segment is the Playwright key name
    """
    buffer = []
    for char in text:
        key_name = KEY_NAMES.get(char)
        if key_name is None:
            buffer.append(char)
            continue
        if buffer:
            yield "".join(buffer), False
            buffer = []
        yield key_name, True
    if buffer:
        yield "".join(buffer), False
