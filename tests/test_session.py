"""
Tests for session lifecycle, navigation and lookups with Playwright mocked out.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError

from drivekit.browser.session import Session
from drivekit.core.types import BrowserKind, By, SessionState, WaitOptions
from drivekit.error_handling.exceptions import (
    AlreadyClosedError,
    LaunchError,
    NavigationError,
    NoSuchElementError,
)

from tests.fakes import attach_page, make_array_handle, make_element_handle, make_page


def make_playwright(page=None, launch_error=None):
    """Fake Playwright driver whose chromium/firefox/webkit launch fake browsers."""
    page = page or make_page()
    context = MagicMock(name="BrowserContext")
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()
    browser = MagicMock(name="Browser")
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    pw = MagicMock(name="Playwright")
    pw.stop = AsyncMock()
    for engine in ("chromium", "firefox", "webkit"):
        browser_type = MagicMock(name=engine)
        browser_type.launch = AsyncMock(return_value=browser, side_effect=launch_error)
        setattr(pw, engine, browser_type)

    starter = MagicMock()
    starter.start = AsyncMock(return_value=pw)
    return starter, pw, browser, context, page


class TestLifecycle:
    """Opening and closing sessions."""

    @pytest.mark.asyncio
    async def test_start_and_close(self, settings):
        starter, pw, browser, context, page = make_playwright()

        with patch("drivekit.browser.session.async_playwright", return_value=starter):
            session = await Session(settings=settings).start()

            assert session.state is SessionState.OPEN
            pw.chromium.launch.assert_awaited_once_with(
                headless=True, args=["--disable-dev-shm-usage", "--disable-extensions"]
            )
            browser.new_context.assert_awaited_once_with(
                viewport={"width": 1920, "height": 1080}
            )
            context.set_default_timeout.assert_called_once_with(30000)

            await session.close()

        assert session.state is SessionState.CLOSED
        page.close.assert_awaited_once()
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()
        pw.stop.assert_awaited_once()
        assert session.page is None

    @pytest.mark.asyncio
    async def test_branded_browser_uses_channel(self, settings):
        starter, pw, *_ = make_playwright()

        with patch("drivekit.browser.session.async_playwright", return_value=starter):
            session = await Session(BrowserKind.MSEDGE, headless=False, settings=settings).start()

        kwargs = pw.chromium.launch.await_args.kwargs
        assert kwargs["channel"] == "msedge"
        assert kwargs["headless"] is False
        await session.close()

    @pytest.mark.asyncio
    async def test_firefox_has_no_chromium_args(self, settings):
        starter, pw, *_ = make_playwright()

        with patch("drivekit.browser.session.async_playwright", return_value=starter):
            session = await Session("firefox", settings=settings).start()

        pw.firefox.launch.assert_awaited_once_with(headless=True)
        await session.close()

    @pytest.mark.asyncio
    async def test_launch_failure_releases_everything(self, settings):
        starter, pw, *_ = make_playwright(
            launch_error=PlaywrightError("Executable doesn't exist at /ms-playwright/chromium")
        )

        with patch("drivekit.browser.session.async_playwright", return_value=starter):
            session = Session(settings=settings)
            with pytest.raises(LaunchError) as exc_info:
                await session.start()

        assert exc_info.value.browser_kind == "chromium"
        assert "Executable doesn't exist" in exc_info.value.message
        assert session.state is SessionState.UNOPENED
        pw.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_start_launches_once(self, settings):
        starter, pw, browser, *_ = make_playwright()

        async def slow_start():
            await asyncio.sleep(0.01)
            return pw

        starter.start = AsyncMock(side_effect=slow_start)
        session = Session(settings=settings)

        with patch("drivekit.browser.session.async_playwright", return_value=starter):
            results = await asyncio.gather(session.start(), session.start())

        assert results == [session, session]
        starter.start.assert_awaited_once()
        pw.chromium.launch.assert_awaited_once()
        await session.close()
        browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_during_start_releases_browser(self, settings):
        starter, pw, browser, *_ = make_playwright()
        session = Session(settings=settings)

        with patch("drivekit.browser.session.async_playwright", return_value=starter):
            await asyncio.gather(session.start(), session.close())

        assert session.state is SessionState.CLOSED
        browser.close.assert_awaited_once()
        pw.stop.assert_awaited_once()

    def test_unknown_browser_kind(self, settings):
        with pytest.raises(LaunchError):
            Session("netscape", settings=settings)

    @pytest.mark.asyncio
    async def test_close_twice(self, session):
        await session.close()

        with pytest.raises(AlreadyClosedError) as exc_info:
            await session.close()

        assert exc_info.value.session_id == session.session_id

    @pytest.mark.asyncio
    async def test_concurrent_close_only_one_wins(self, session, page):
        results = await asyncio.gather(
            session.close(), session.close(), return_exceptions=True
        )

        assert sum(result is None for result in results) == 1
        assert sum(isinstance(result, AlreadyClosedError) for result in results) == 1
        page.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_unopened(self, settings):
        session = Session(settings=settings)

        await session.close()

        assert session.state is SessionState.CLOSED

    @pytest.mark.asyncio
    async def test_closed_session_cannot_restart(self, session):
        await session.close()

        with pytest.raises(AlreadyClosedError):
            await session.start()

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, settings):
        starter, pw, *_ = make_playwright()

        with patch("drivekit.browser.session.async_playwright", return_value=starter):
            async with Session(settings=settings) as session:
                assert session.is_open

        assert session.state is SessionState.CLOSED
        pw.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_release_failures_are_logged_not_raised(self, session, page):
        page.close.side_effect = PlaywrightError("Target page, context or browser has been closed")

        await session.close()

        assert session.state is SessionState.CLOSED
        assert session.page is None


class TestNavigation:
    """Navigation and document invalidation."""

    @pytest.mark.asyncio
    async def test_navigate(self, session, page):
        await session.navigate("https://example.com/")

        page.goto.assert_awaited_once_with("https://example.com/", wait_until="load")
        assert session.document_id == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["", "example.com", "/relative/path"])
    async def test_invalid_url(self, session, page, url):
        with pytest.raises(NavigationError) as exc_info:
            await session.navigate(url)

        assert exc_info.value.url == url
        page.goto.assert_not_awaited()
        assert session.document_id == 0

    @pytest.mark.asyncio
    async def test_failed_load_still_replaces_document(self, session, page):
        page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED at http://nope.invalid/")

        with pytest.raises(NavigationError) as exc_info:
            await session.navigate("http://nope.invalid/")

        assert "ERR_NAME_NOT_RESOLVED" in exc_info.value.message
        assert session.document_id == 1
        assert session.is_open

    @pytest.mark.asyncio
    async def test_navigate_closed_session(self, session):
        await session.close()

        with pytest.raises(NavigationError) as exc_info:
            await session.navigate("https://example.com/")

        assert isinstance(exc_info.value.cause, AlreadyClosedError)

    @pytest.mark.asyncio
    async def test_history(self, session, page):
        await session.back()
        await session.forward()
        await session.refresh()

        page.go_back.assert_awaited_once_with(wait_until="load")
        page.go_forward.assert_awaited_once_with(wait_until="load")
        page.reload.assert_awaited_once_with(wait_until="load")
        assert session.document_id == 3

    @pytest.mark.asyncio
    async def test_navigation_timing_logged(self, session, caplog):
        with caplog.at_level("INFO", logger="drivekit.performance"):
            await session.navigate("https://example.com/")

        record = caplog.records[-1]
        assert record.metric_name == "page_navigation"
        assert record.operation == "navigate"


class TestPageState:
    @pytest.mark.asyncio
    async def test_title_and_url(self, session, page):
        page.url = "https://example.com/"
        page.title.return_value = "Example Domain"

        assert await session.title() == "Example Domain"
        assert session.current_url == "https://example.com/"

    @pytest.mark.asyncio
    async def test_page_source(self, session):
        assert await session.page_source() == "<html></html>"

    @pytest.mark.asyncio
    async def test_screenshot_saved(self, session, page, tmp_path):
        path = tmp_path / "shots" / "page.png"

        assert await session.screenshot(path) == b"png"

        assert path.parent.is_dir()
        page.screenshot.assert_awaited_once_with(path=str(path), type="png")

    @pytest.mark.asyncio
    async def test_closed_session(self, session):
        await session.close()

        with pytest.raises(AlreadyClosedError):
            await session.title()
        with pytest.raises(AlreadyClosedError):
            session.current_url


class TestLookup:
    @pytest.mark.asyncio
    async def test_find_element_is_first_of_find_elements(self, session, page):
        handles = [make_element_handle(f"li{i}") for i in range(3)]
        page.evaluate_handle.return_value = make_array_handle(handles)

        element = await session.find_element(By.class_name("item"))
        elements = list(await session.find_elements(By.class_name("item")))

        assert element.handle is elements[0].handle
        assert [e.handle for e in elements] == handles

    @pytest.mark.asyncio
    async def test_find_element_uses_implicit_wait(self, session, page):
        session.settings.implicit_wait_ms = 50

        with pytest.raises(NoSuchElementError) as exc_info:
            await session.find_element(By.id("missing"))

        assert exc_info.value.timeout_ms == 50
        assert page.evaluate_handle.await_count >= 2

    @pytest.mark.asyncio
    async def test_find_on_closed_session(self, session):
        await session.close()

        with pytest.raises(AlreadyClosedError):
            await session.find_element(By.id("q"), WaitOptions(timeout_ms=0))
        with pytest.raises(AlreadyClosedError):
            await session.find_elements(By.id("q"))

    @pytest.mark.asyncio
    async def test_commands_are_serialized(self, session, page):
        active = 0
        peak = 0

        async def title():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return "t"

        page.title.side_effect = title

        await asyncio.gather(*(session.title() for _ in range(5)))

        assert peak == 1

    @pytest.mark.asyncio
    async def test_sessions_run_in_parallel(self, settings):
        active = 0
        peak = 0

        async def title():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.02)
            active -= 1
            return "t"

        sessions = []
        for _ in range(3):
            page = make_page()
            page.title.side_effect = title
            sessions.append(attach_page(Session(settings=settings), page))

        await asyncio.gather(*(s.title() for s in sessions))

        assert peak == 3
