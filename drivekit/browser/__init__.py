"""
Browser automation module exports.
"""

from drivekit.browser.element import ElementSequence, WebElement
from drivekit.browser.manager import SessionManager
from drivekit.browser.resolver import LocatorResolver, Matches
from drivekit.browser.session import Session
from drivekit.browser.wait import (
    Wait,
    poll,
    presence_of_element_located,
    title_is,
    url_contains,
    visibility_of_element_located,
)

__all__ = [
    "SessionManager",
    "Session",
    "WebElement",
    "ElementSequence",
    "LocatorResolver",
    "Matches",
    "Wait",
    "poll",
    "title_is",
    "url_contains",
    "presence_of_element_located",
    "visibility_of_element_located",
]
