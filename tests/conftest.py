"""Bridge test configuration — stub Playwright engines and a TestClient."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from playwright_bridge.config import BridgeSettings
from playwright_bridge.connection import BrowserConnector
from playwright_bridge.server import create_app

API_KEY = "test-bridge-key"
AUTH = {"x-api-key": API_KEY}

PNG_BYTES = b"\x89PNG\r\n\x1a\nstub-image"


# ---------------------------------------------------------------------------
# Stub Playwright objects
# ---------------------------------------------------------------------------


class StubPage:
    def __init__(self, goto_error: Optional[Exception] = None):
        self.goto_error = goto_error
        self.visited: List[Dict[str, Any]] = []
        self.screenshot_options: Optional[Dict[str, Any]] = None

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.visited.append({"url": url, **kwargs})
        if self.goto_error is not None:
            raise self.goto_error

    async def screenshot(self, **options: Any) -> bytes:
        self.screenshot_options = options
        return PNG_BYTES

    async def title(self) -> str:
        return "Stub Title"


class StubContext:
    def __init__(self, page: StubPage):
        self.page = page

    async def new_page(self) -> StubPage:
        return self.page


class StubBrowser:
    def __init__(
        self,
        page: StubPage,
        context_error: Optional[Exception] = None,
        close_error: Optional[Exception] = None,
    ):
        self.page = page
        self.context_error = context_error
        self.close_error = close_error
        self.close_calls = 0
        self.context_options: List[Dict[str, Any]] = []

    async def new_context(self, **options: Any) -> StubContext:
        self.context_options.append(options)
        if self.context_error is not None:
            raise self.context_error
        return StubContext(self.page)

    async def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class StubBrowserType:
    """Records every connect() and hands out fresh StubBrowser instances."""

    def __init__(self, name: str, connect_error: Optional[Exception] = None):
        self.name = name
        self.connect_error = connect_error
        self.endpoints: List[str] = []
        self.browsers: List[StubBrowser] = []
        self.goto_error: Optional[Exception] = None
        self.context_error: Optional[Exception] = None
        self.close_error: Optional[Exception] = None

    async def connect(self, ws_endpoint: str) -> StubBrowser:
        self.endpoints.append(ws_endpoint)
        if self.connect_error is not None:
            raise self.connect_error
        browser = StubBrowser(
            StubPage(goto_error=self.goto_error),
            context_error=self.context_error,
            close_error=self.close_error,
        )
        self.browsers.append(browser)
        return browser


class StubEngines:
    def __init__(self):
        self.chromium = StubBrowserType("chromium")
        self.firefox = StubBrowserType("firefox")
        self.webkit = StubBrowserType("webkit")

    @property
    def all(self) -> List[StubBrowserType]:
        return [self.chromium, self.firefox, self.webkit]

    @property
    def connect_count(self) -> int:
        return sum(len(engine.endpoints) for engine in self.all)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings() -> BridgeSettings:
    return BridgeSettings(api_key=API_KEY, port=3000, body_limit=1024)


@pytest.fixture()
def engines() -> StubEngines:
    return StubEngines()


@pytest.fixture()
def connector(engines: StubEngines) -> BrowserConnector:
    return BrowserConnector.from_playwright(engines)


@pytest.fixture()
def client(settings: BridgeSettings, connector: BrowserConnector):
    app = create_app(settings, connector=connector)
    with TestClient(app) as c:
        yield c
