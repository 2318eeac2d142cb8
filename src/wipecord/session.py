"""
Browser Session

Connects to Chrome over the DevTools Protocol (optionally launching it with a
debugging port first), navigates, and waits for the operator to log in to
Discord. Hands the engine a page object with document() and navigate().

Launch Chrome yourself with:
    google-chrome --remote-debugging-port=9222 --user-data-dir=~/.config/wipecord/chrome-profile
"""

import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import Any, Callable

import pychrome
import requests
from pychrome.exceptions import PyChromeException

from .dom import CDPDocument, release_object_group
from .errors import AuthenticationTimeout, InteractionException, SessionError, WipecordError
from .selector_resolver import SelectorResolver
from .timing import Settler

logger = logging.getLogger(__name__)

CHROME_CANDIDATES = (
    "google-chrome",
    "google-chrome-stable",
    "chromium",
    "chromium-browser",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    r"C:\Program Files\Google\Chrome\Application\chrome.exe",
    r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
)

# Fetch resource types dropped when media blocking is on
BLOCKED_RESOURCE_TYPES = ("Image", "Media")

# Errors pychrome raises while the debugging endpoint is not answering
CONNECTION_ERRORS = (PyChromeException, requests.exceptions.RequestException)


def find_chrome_executable() -> str:
    """
    Locate a Chrome or Chromium binary

    Raises:
        SessionError: If none of the known locations exist
    """
    for candidate in CHROME_CANDIDATES:
        found = shutil.which(candidate)
        if found:
            return found
        if Path(candidate).exists():
            return candidate

    raise SessionError("Chrome executable not found. Pass --chrome or set chrome_path in config.")


class BrowserSession:
    """A single Chrome tab driven over CDP"""

    def __init__(
        self,
        port: int = 9222,
        settler: Settler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize session

        Args:
            port: Chrome remote debugging port
            settler: Settle timing policy (login polling and navigation waits)
            clock: Monotonic clock, injectable for tests
        """
        self.port = port
        self.settler = settler or Settler()
        self.clock = clock
        self.browser: Any | None = None
        self.tab: Any | None = None
        self.process: subprocess.Popen | None = None

    def launch(self, chrome_path: str | None, user_data_dir: Path, url: str, attempts: int = 20):
        """
        Start Chrome with a remote debugging port and wait until CDP answers

        Args:
            chrome_path: Chrome binary (searched for when None)
            user_data_dir: Profile directory for the launched browser
            url: Page to open on start
            attempts: Connection attempts, one per launch_poll interval

        Raises:
            SessionError: If Chrome cannot be started or never opens the port
        """
        chrome = chrome_path or find_chrome_executable()
        user_data_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"🚀 Launching Chrome with debugging port {self.port}...")
        try:
            self.process = subprocess.Popen(
                [
                    chrome,
                    f"--remote-debugging-port={self.port}",
                    f"--user-data-dir={user_data_dir}",
                    "--window-size=1280,800",
                    url,
                ],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise SessionError(f"Could not start Chrome at {chrome}: {e}") from e

        browser = pychrome.Browser(url=f"http://127.0.0.1:{self.port}")
        for attempt in range(1, attempts + 1):
            try:
                browser.version()
                return
            except CONNECTION_ERRORS as e:
                logger.debug(f"Debugging port not ready ({attempt}/{attempts}): {e}")
                self.settler.wait("launch_poll")

        raise SessionError(f"Chrome did not open debugging port {self.port}")

    def connect(self):
        """
        Attach to the first page tab of the browser

        Raises:
            SessionError: If the browser is unreachable or has no page tab
        """
        logger.info(f"Connecting to Chrome CDP on port {self.port}...")

        try:
            self.browser = pychrome.Browser(url=f"http://127.0.0.1:{self.port}")
            tabs = self.browser.list_tab()
        except CONNECTION_ERRORS as e:
            raise SessionError(
                f"Connection to port {self.port} failed ({e}). "
                f"Start Chrome with --remote-debugging-port={self.port} or use --launch."
            ) from e

        pages = [tab for tab in tabs if getattr(tab, "type", "page") == "page"]
        if not pages:
            raise SessionError("No page tabs found in the browser")

        self.tab = pages[0]
        self.tab.start()
        logger.info(f"✅ Connected to Chrome (Tab ID: {self.tab.id})")

    def close(self):
        """Detach from the tab and stop Chrome if this session launched it"""
        if self.tab:
            try:
                self.tab.stop()
            except PyChromeException as e:
                logger.debug(f"Error stopping tab: {e}")
            self.tab = None
            logger.info("Disconnected from Chrome CDP")

        if self.process:
            self.process.terminate()
            self.process = None

    def block_media(self):
        """
        Fail image and media requests in the tab so long runs load less

        Raises:
            InteractionException: If the Fetch domain cannot be enabled
        """
        if not self.tab:
            raise InteractionException("Not connected to a tab")

        self.tab.Fetch.requestPaused = self._fail_paused_request
        try:
            self.tab.Fetch.enable(
                patterns=[
                    {"urlPattern": "*", "resourceType": resource_type}
                    for resource_type in BLOCKED_RESOURCE_TYPES
                ]
            )
        except PyChromeException as e:
            raise InteractionException(f"Could not enable request blocking: {e}") from e

        logger.info("🚫 Blocking image and media requests")

    def _fail_paused_request(self, requestId: str, **kwargs):
        # Only Image and Media requests are paused, so every one is failed
        tab = self.tab
        if tab is None:
            return
        try:
            tab.Fetch.failRequest(requestId=requestId, errorReason="BlockedByClient")
        except PyChromeException as e:
            logger.debug(f"Could not block request {requestId}: {e}")

    def document(self) -> CDPDocument:
        if not self.tab:
            raise InteractionException("Not connected to a tab")
        return CDPDocument.current(self.tab)

    def release_handles(self):
        """Drop the remote objects held for the last batch"""
        if self.tab:
            release_object_group(self.tab)

    def current_url(self) -> str:
        if not self.tab:
            raise InteractionException("Not connected to a tab")
        try:
            result = self.tab.Runtime.evaluate(expression="location.href", returnByValue=True)
        except PyChromeException as e:
            raise InteractionException(f"Could not read page URL: {e}") from e
        return result.get("result", {}).get("value") or ""

    def navigate(self, url: str):
        """
        Load a URL in the tab

        Raises:
            InteractionException: If Chrome reports a navigation error
        """
        if not self.tab:
            raise InteractionException("Not connected to a tab")

        try:
            result = self.tab.Page.navigate(url=url, _timeout=30)
        except PyChromeException as e:
            raise InteractionException(f"Navigation to {url} failed: {e}") from e

        if result.get("errorText"):
            raise InteractionException(f"Navigation to {url} failed: {result['errorText']}")

    def wait_for_login(self, resolver: SelectorResolver, timeout: float = 300):
        """
        Poll until the logged-in Discord UI is rendered

        Args:
            resolver: Selector resolver (target "login-marker")
            timeout: Seconds to wait before giving up

        Raises:
            AuthenticationTimeout: If no login marker appears in time
        """
        logger.info("⏳ Please log in to Discord in the browser window...")
        deadline = self.clock() + timeout

        while self.clock() < deadline:
            try:
                if resolver.resolve("login-marker", self.document()) is not None:
                    logger.info("✅ Login detected, waiting for the UI to settle...")
                    self.settler.wait("login_settle")
                    return
            except WipecordError as e:
                # The page may be mid-navigation
                logger.debug(f"Login check failed: {e}")

            self.settler.wait("login_poll")

        raise AuthenticationTimeout(
            f"Could not detect the Discord UI after {int(timeout)} seconds"
        )
