"""
Remote browser-session provider: HTTP provisioning plus Playwright over CDP.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import urlencode

import requests
from playwright.async_api import Browser, Playwright, async_playwright

from app.scraping.browser.session import BrowserSession
from app.scraping.config.models import SessionProviderSettings
from app.scraping.errors import ProvisioningError
from app.scraping.logging_utils import log_event
from app.scraping.types import describe

logger = logging.getLogger(__name__)


class RemoteBrowserSessionProvider:
    """
    Creates one remote browser per acquire and drives it through CDP.

    Each remote session gets its own proxy identity from the provider, so a
    fresh session is also a fresh network identity.
    """

    def __init__(
        self,
        *,
        settings: SessionProviderSettings,
        http_session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._http = http_session or requests.Session()
        self._playwright: Playwright | None = None
        self._playwright_lock = asyncio.Lock()

    async def acquire(self) -> BrowserSession:
        session_id = await asyncio.to_thread(self._create_remote_session)
        try:
            playwright = await self._ensure_playwright()
            browser = await playwright.chromium.connect_over_cdp(self._connect_endpoint(session_id))
            context = browser.contexts[0] if browser.contexts else await browser.new_context()
            page = context.pages[0] if context.pages else await context.new_page()
        except asyncio.CancelledError:
            await asyncio.shield(asyncio.to_thread(self._release_remote_session, session_id))
            raise
        except Exception as exc:
            await asyncio.to_thread(self._release_remote_session, session_id)
            raise ProvisioningError(
                f"Could not connect to remote session {session_id}: {describe(exc)}"
            ) from exc

        log_event(logger, logging.INFO, "remote_session_connected", session_id=session_id)
        return BrowserSession(session_id=session_id, page=page, handle=browser)

    async def release(self, session: BrowserSession) -> None:
        browser: Browser | None = session.handle
        if browser is not None:
            try:
                await browser.close()
            except Exception as exc:  # noqa: BLE001
                log_event(
                    logger,
                    logging.WARNING,
                    "remote_browser_close_failed",
                    session_id=session.session_id,
                    error=describe(exc),
                )
        await asyncio.to_thread(self._release_remote_session, session.session_id)

    async def close(self) -> None:
        """
        Stop the shared Playwright driver.
        """

        async with self._playwright_lock:
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
        self._http.close()

    async def _ensure_playwright(self) -> Playwright:
        async with self._playwright_lock:
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            return self._playwright

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.api_key:
            headers[self._settings.api_key_header] = self._settings.api_key
        return headers

    def _connect_endpoint(self, session_id: str) -> str:
        params: dict[str, Any] = {"sessionId": session_id}
        if self._settings.api_key:
            params = {"apiKey": self._settings.api_key, **params}
        separator = "&" if "?" in self._settings.connect_url else "?"
        return f"{self._settings.connect_url}{separator}{urlencode(params)}"

    def _create_remote_session(self) -> str:
        url = f"{self._settings.api_url}/v1/sessions"
        body = {
            "useProxy": self._settings.use_proxy,
            "solveCaptcha": self._settings.solve_captcha,
            "timeout": self._settings.session_timeout_ms,
        }
        try:
            response = self._http.post(
                url,
                json=body,
                headers=self._headers(),
                timeout=self._settings.request_timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise ProvisioningError(f"Remote session request failed: {describe(exc)}") from exc

        session_id = payload.get("id") if isinstance(payload, dict) else None
        if not session_id:
            raise ProvisioningError("Remote session response did not include an id.")
        log_event(logger, logging.INFO, "remote_session_created", session_id=session_id)
        return str(session_id)

    def _release_remote_session(self, session_id: str) -> None:
        url = f"{self._settings.api_url}/v1/sessions/{session_id}/release"
        try:
            response = self._http.post(
                url,
                headers=self._headers(),
                timeout=self._settings.request_timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            log_event(
                logger,
                logging.WARNING,
                "remote_session_release_failed",
                session_id=session_id,
                error=describe(exc),
            )
            return
        log_event(logger, logging.INFO, "remote_session_released", session_id=session_id)
