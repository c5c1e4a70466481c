"""
Scoped acquire/release discipline around remote browser sessions.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Protocol

from app.scraping.errors import ProvisioningError
from app.scraping.logging_utils import log_event
from app.scraping.types import describe

logger = logging.getLogger(__name__)


class NavigablePage(Protocol):
    """
    The subset of a Playwright `Page` the scraper drives.
    """

    @property
    def url(self) -> str:
        ...

    async def goto(self, url: str, *, wait_until: str = ..., timeout: float = ...) -> Any:
        ...

    async def reload(self, *, wait_until: str = ..., timeout: float = ...) -> Any:
        ...

    async def evaluate(self, expression: str, arg: Any = ...) -> Any:
        ...

    async def query_selector_all(self, selector: str) -> list[Any]:
        ...

    async def content(self) -> str:
        ...

    async def title(self) -> str:
        ...


@dataclass(eq=False)
class BrowserSession:
    """
    One remote browser instance bound to one page. Single owner at a time.
    """

    session_id: str
    page: NavigablePage
    handle: Any = None
    released: bool = False


class SessionProvider(Protocol):
    async def acquire(self) -> BrowserSession:
        ...

    async def release(self, session: BrowserSession) -> None:
        ...


class SessionManager:
    """
    Wraps a provider so every acquired session is released exactly once.
    """

    def __init__(self, provider: SessionProvider) -> None:
        self._provider = provider
        self._active: dict[int, BrowserSession] = {}
        self.acquired_total = 0
        self.released_total = 0

    @property
    def active(self) -> int:
        return len(self._active)

    async def acquire(self) -> BrowserSession:
        """
        Provision a session or raise `ProvisioningError`.
        """

        try:
            session = await self._provider.acquire()
        except ProvisioningError:
            raise
        except Exception as exc:
            raise ProvisioningError(f"Session provisioning failed: {describe(exc)}") from exc

        self._active[id(session)] = session
        self.acquired_total += 1
        log_event(
            logger,
            logging.DEBUG,
            "session_acquired",
            session_id=session.session_id,
            active=self.active,
        )
        return session

    async def release(self, session: BrowserSession) -> None:
        """
        Release a session. Never raises; a repeated release is ignored.
        """

        if session.released:
            log_event(
                logger,
                logging.WARNING,
                "session_double_release_ignored",
                session_id=session.session_id,
            )
            return

        session.released = True
        self._active.pop(id(session), None)
        self.released_total += 1
        try:
            # finish the remote release even if the caller is being cancelled
            await asyncio.shield(self._provider.release(session))
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                logging.ERROR,
                "session_release_failed",
                session_id=session.session_id,
                error=describe(exc),
            )
        else:
            log_event(
                logger,
                logging.DEBUG,
                "session_released",
                session_id=session.session_id,
                active=self.active,
            )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserSession]:
        """
        Acquire a session for the duration of the block.
        """

        session = await self.acquire()
        try:
            yield session
        finally:
            await self.release(session)
