"""
FILE DESCRIPTION: Playwright-backed browser engine for the load probe.
KEY FUNCTIONS/CLASSES: PlaywrightEngine, parse_stack, is_timeout_failure

FLOW: Launches one headless browser with the configured user agent, viewport and timeout ->
Attaches page/browser listeners that translate Playwright callbacks into typed load events ->
Navigates once -> Keeps pumping events during the settle wait.
All callbacks run on the calling thread (sync API), so no locking is needed.
"""

import re
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from loadspeed.core import BROWSER, SUPPORTED_BROWSERS, setup_logger
from loadspeed.correlator import utc_now
from loadspeed.errors import EngineError
from loadspeed.events import (
    BrowserEngine,
    EngineFault,
    EventHandler,
    LoadFinished,
    LoadStarted,
    PageScriptError,
    ResourceError,
    ResourceReceived,
    ResourceRequested,
    ResourceTimeout,
)
from loadspeed.models import EngineSettings, TraceFrame

logger = setup_logger("loadspeed.engine")

CHROMIUM_ARGS = ["--disable-gpu", "--no-sandbox", "--disable-dev-shm-usage"]

# Chromium, Firefox and WebKit spell resource timeouts differently
TIMEOUT_MARKERS = ("ERR_TIMED_OUT", "NS_ERROR_NET_TIMEOUT", "timed out", "Timeout")

_V8_FRAME = re.compile(r"^\s*at (?:(?P<function>.+?) \()?(?P<file>.+?):(?P<line>\d+)(?::\d+)?\)?$")
_GECKO_FRAME = re.compile(r"^(?P<function>[^@]*)@(?P<file>.+?):(?P<line>\d+)(?::\d+)?$")


def parse_stack(stack: Optional[str]) -> Tuple[TraceFrame, ...]:
    """Extract file/line/function frames from a V8 or Gecko/WebKit style JS stack."""
    frames = []
    for raw in (stack or "").splitlines():
        match = _V8_FRAME.match(raw) or _GECKO_FRAME.match(raw.strip())
        if not match:
            continue
        frames.append(TraceFrame(
            file=match.group("file"),
            line=int(match.group("line")),
            function=match.group("function") or None,
        ))
    return tuple(frames)


def is_timeout_failure(failure: Optional[str]) -> bool:
    if not failure:
        return False
    return any(marker in failure for marker in TIMEOUT_MARKERS)


def split_failure(failure: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """('net::ERR_X', 'net::ERR_X at ...') from a Playwright failure text."""
    if not failure:
        return None, None
    return failure.split()[0], failure


class PlaywrightEngine(BrowserEngine):

    def __init__(self, browser_name: str = BROWSER, headless: bool = True,
                 clock: Callable[[], datetime] = utc_now):
        if browser_name not in SUPPORTED_BROWSERS:
            raise ValueError(f"Unsupported browser '{browser_name}', expected one of {', '.join(SUPPORTED_BROWSERS)}")
        self.browser_name = browser_name
        self.headless = headless
        self._clock = clock
        self._handlers: List[EventHandler] = []
        self._ids: Dict[object, int] = {}
        self._next_id = 1
        self._closing = False
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    # === SETUP ===

    def configure(self, settings: EngineSettings) -> None:
        if self._page is not None:
            raise EngineError("Engine is already configured")

        self._playwright = sync_playwright().start()
        browser_type = getattr(self._playwright, self.browser_name)
        launch_args = CHROMIUM_ARGS if self.browser_name == "chromium" else []
        self._browser = browser_type.launch(headless=self.headless, args=launch_args)
        self._browser.on("disconnected", self._on_disconnected)

        self._context = self._browser.new_context(
            user_agent=settings.user_agent,
            viewport={"width": settings.viewport_width, "height": settings.viewport_height},
        )
        self._context.set_default_timeout(settings.resource_timeout_ms)
        self._context.set_default_navigation_timeout(settings.resource_timeout_ms)

        page = self._context.new_page()
        page.on("request", self._on_request)
        page.on("response", self._on_response)
        page.on("requestfailed", self._on_request_failed)
        page.on("pageerror", self._on_page_error)
        page.on("crash", self._on_crash)
        self._page = page
        logger.info(f"[ENGINE] {self.browser_name} ready "
                    f"({settings.viewport_width}x{settings.viewport_height}, timeout {settings.resource_timeout_ms} ms).")

    def subscribe(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def _emit(self, event):
        for handler in self._handlers:
            handler(event)

    def _require_page(self):
        if self._page is None:
            raise EngineError("Engine used before configure()")
        return self._page

    # === COMMANDS ===

    def navigate(self, url: str) -> None:
        page = self._require_page()
        try:
            page.goto(url, wait_until="load")
            status = "success"
        except PlaywrightError as e:
            logger.warning(f"[ENGINE] Load of {url} failed: {e.message}")
            status = "fail"
        self._emit(LoadFinished(status))

    def wait(self, ms: int) -> None:
        self._require_page().wait_for_timeout(ms)

    def close(self) -> None:
        self._closing = True
        try:
            try:
                if self._context is not None:
                    self._context.close()
            finally:
                if self._browser is not None:
                    self._browser.close()
        finally:
            if self._playwright is not None:
                self._playwright.stop()
            self._page = None
            self._context = None
            self._browser = None
            self._playwright = None

    # === PLAYWRIGHT CALLBACKS ===

    def _resource_id(self, request) -> Optional[int]:
        return self._ids.get(request)

    def _is_main_navigation(self, request) -> bool:
        if not request.is_navigation_request():
            return False
        try:
            return request.frame == self._page.main_frame
        except PlaywrightError:
            # Service worker requests have no frame
            return False

    def _on_request(self, request):
        if self._is_main_navigation(request):
            self._emit(LoadStarted())
        resource_id = self._next_id
        self._next_id += 1
        self._ids[request] = resource_id
        self._emit(ResourceRequested(resource_id, request.method, request.url, self._clock()))

    def _on_response(self, response):
        self._emit(ResourceReceived(self._resource_id(response.request), self._clock(), response.status))

    def _on_request_failed(self, request):
        resource_id = self._resource_id(request)
        failure = request.failure
        code, text = split_failure(failure)
        self._emit(ResourceError(resource_id, code, text))
        if is_timeout_failure(failure):
            self._emit(ResourceTimeout(resource_id))

    def _on_page_error(self, error):
        self._emit(PageScriptError(error.message, parse_stack(error.stack)))

    def _on_crash(self, page):
        self._emit(EngineFault("Page crashed"))

    def _on_disconnected(self, browser):
        if not self._closing:
            self._emit(EngineFault("Browser disconnected"))
