"""
Shared fixtures: a fake Playwright page for unit tests and a real headless
browser for integration tests.
"""

from typing import List
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from drivekit.browser.manager import SessionManager
from drivekit.browser.session import Session
from drivekit.config.settings import Settings
from drivekit.error_handling.exceptions import LaunchError

from tests.fakes import attach_page, make_page


@pytest.fixture
def settings() -> Settings:
    return Settings(
        browser_kind="chromium",
        browser_headless=True,
        implicit_wait_ms=0,
        poll_interval_ms=10,
        submit_navigation_grace_ms=20,
        log_format="text",
    )


@pytest.fixture
def page() -> MagicMock:
    return make_page()


@pytest.fixture
def session(settings, page) -> Session:
    """Open session wired to a fake page; no browser is launched."""
    return attach_page(Session(settings=settings), page)


@pytest.fixture
def fake_start(monkeypatch):
    """Make Session.start open against a fresh fake page instead of a browser."""
    pages: List[MagicMock] = []

    async def start(self: Session) -> Session:
        page = make_page()
        pages.append(page)
        return attach_page(self, page)

    monkeypatch.setattr(Session, "start", start)
    return pages


@pytest_asyncio.fixture
async def browser_session(settings):
    """Real headless browser session; skipped when no browser can launch."""
    manager = SessionManager(settings)
    try:
        session = await manager.open("chromium", headless=True)
    except LaunchError as exc:
        pytest.skip(f"Browser not available: {exc.message}")
    try:
        yield session
    finally:
        await manager.close_all()
