"""
Browser session exports.
"""

from app.scraping.browser.remote_provider import RemoteBrowserSessionProvider
from app.scraping.browser.session import (
    BrowserSession,
    NavigablePage,
    SessionManager,
    SessionProvider,
)

__all__ = [
    "BrowserSession",
    "NavigablePage",
    "RemoteBrowserSessionProvider",
    "SessionManager",
    "SessionProvider",
]
