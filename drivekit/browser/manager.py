"""
Session manager: opens sessions and guarantees their browsers get released.
"""

import asyncio
from typing import Dict, List, Optional, Union

from drivekit.browser.session import Session
from drivekit.config.settings import Settings, get_settings
from drivekit.core.types import BrowserKind, SessionState
from drivekit.error_handling.exceptions import AlreadyClosedError, DriverError
from drivekit.monitoring.logger import get_logger


class SessionManager:
    """Creates sessions and tracks the ones still holding a browser process."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)
        self._sessions: Dict[str, Session] = {}

    @property
    def sessions(self) -> Dict[str, Session]:
        """Open sessions keyed by session id."""
        return {
            session_id: session
            for session_id, session in self._sessions.items()
            if session.state is SessionState.OPEN
        }

    def get(self, session_id: str) -> Session:
        """
        Look up an open session.

        Raises:
            AlreadyClosedError: If no open session has this id
        """
        session = self._sessions.get(session_id)
        if session is None or session.state is not SessionState.OPEN:
            raise AlreadyClosedError(
                f"No open session with id {session_id}", session_id=session_id
            )
        return session

    async def open(
        self,
        browser_kind: Optional[Union[BrowserKind, str]] = None,
        *,
        headless: Optional[bool] = None,
    ) -> Session:
        """
        Launch a browser of the requested kind and return its session.

        Args:
            browser_kind: chromium, firefox, webkit, chrome or msedge (defaults to config)
            headless: Run browser in headless mode (defaults to config)

        Raises:
            LaunchError: If the browser cannot be started; no session is left behind
        """
        session = Session(browser_kind, headless=headless, settings=self.settings)
        await session.start()
        self._sessions[session.session_id] = session
        self.logger.info(
            "Session opened",
            extra={
                "session_id": session.session_id,
                "browser_kind": session.browser_kind.value,
            },
        )
        return session

    async def close(self, session: Session) -> None:
        """
        Terminate a session and release its browser process.

        Raises:
            AlreadyClosedError: If the session was already closed
        """
        try:
            await session.close()
        finally:
            self._sessions.pop(session.session_id, None)
        self.logger.info("Session closed", extra={"session_id": session.session_id})

    async def close_all(self) -> List[DriverError]:
        """
        Close every session this manager still holds open.

        Every session is attempted even if some fail.

        Returns:
            Errors raised while closing, if any
        """
        pending = list(self.sessions.values())
        self._sessions.clear()
        if not pending:
            return []

        results = await asyncio.gather(
            *(session.close() for session in pending), return_exceptions=True
        )

        errors: List[DriverError] = []
        for session, result in zip(pending, results):
            if isinstance(result, DriverError):
                self.logger.warning(
                    "Failed to close session",
                    extra={"session_id": session.session_id, "error": result.message},
                )
                errors.append(result)
            elif isinstance(result, BaseException):
                raise result
        return errors

    async def __aenter__(self) -> "SessionManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close_all()
