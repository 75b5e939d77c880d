"""
Core module exports.
"""

from drivekit.core.interfaces import ConfigProvider, SearchContext
from drivekit.core.types import (
    KEY_NAMES,
    BrowserKind,
    By,
    Keys,
    Locator,
    SessionState,
    Strategy,
    WaitOptions,
    iter_key_segments,
)

__all__ = [
    # Interfaces
    "SearchContext",
    "ConfigProvider",
    # Types
    "BrowserKind",
    "SessionState",
    "Strategy",
    "Locator",
    "By",
    "WaitOptions",
    "Keys",
    "KEY_NAMES",
    "iter_key_segments",
]
