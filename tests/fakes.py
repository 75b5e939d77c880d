"""
Fake Playwright objects for unit tests.
"""

from typing import Callable, Dict, List
from unittest.mock import AsyncMock, MagicMock

from drivekit.browser.session import Session
from drivekit.core.types import SessionState


def make_element_handle(tag: str = "input") -> MagicMock:
    """Element handle that is attached, visible and enabled."""
    handle = MagicMock(name=f"ElementHandle<{tag}>")
    handle.evaluate = AsyncMock(return_value=True)
    handle.evaluate_handle = AsyncMock()
    handle.is_visible = AsyncMock(return_value=True)
    handle.is_enabled = AsyncMock(return_value=True)
    handle.focus = AsyncMock()
    handle.click = AsyncMock()
    handle.fill = AsyncMock()
    handle.inner_text = AsyncMock(return_value="")
    handle.get_attribute = AsyncMock(return_value=None)
    handle.dispose = AsyncMock()
    return handle


def make_array_handle(elements: List[MagicMock]) -> MagicMock:
    """JS array handle as returned by the lookup script."""
    properties = {}
    for index, element in enumerate(elements):
        prop = MagicMock(name=f"JSHandle[{index}]")
        prop.as_element = MagicMock(return_value=element)
        prop.dispose = AsyncMock()
        properties[str(index)] = prop

    length = MagicMock(name="JSHandle[length]")
    length.as_element = MagicMock(return_value=None)
    length.dispose = AsyncMock()
    properties["length"] = length

    array = MagicMock(name="JSHandle[array]")
    array.get_properties = AsyncMock(return_value=properties)
    array.dispose = AsyncMock()
    return array


def make_page(url: str = "about:blank") -> MagicMock:
    page = MagicMock(name="Page")
    page.url = url
    page.evaluate_handle = AsyncMock(return_value=make_array_handle([]))
    page.goto = AsyncMock()
    page.go_back = AsyncMock()
    page.go_forward = AsyncMock()
    page.reload = AsyncMock()
    page.title = AsyncMock(return_value="")
    page.content = AsyncMock(return_value="<html></html>")
    page.screenshot = AsyncMock(return_value=b"png")
    page.wait_for_load_state = AsyncMock()
    page.close = AsyncMock()
    page.keyboard = MagicMock()
    page.keyboard.type = AsyncMock()
    page.keyboard.press = AsyncMock()

    listeners: Dict[str, List[Callable]] = {}
    page.listeners = listeners
    page.on = MagicMock(
        side_effect=lambda event, callback: listeners.setdefault(event, []).append(callback)
    )
    page.remove_listener = MagicMock(
        side_effect=lambda event, callback: listeners[event].remove(callback)
    )
    page.main_frame = MagicMock(name="Frame<main>")
    return page


def attach_page(session: Session, page: MagicMock) -> Session:
    """Put a session in the open state backed by a fake page."""
    session._page = page
    session.state = SessionState.OPEN
    return session


def emit(page: MagicMock, event: str, payload) -> None:
    for callback in list(page.listeners.get(event, [])):
        callback(payload)


def start_navigation(page: MagicMock) -> None:
    """Fire the request event a main-frame navigation sends first."""
    request = MagicMock(name="Request")
    request.is_navigation_request = MagicMock(return_value=True)
    request.frame = page.main_frame
    emit(page, "request", request)


def commit_navigation(page: MagicMock) -> None:
    start_navigation(page)
    emit(page, "framenavigated", page.main_frame)
