import os

# Select the testing configuration before the package loads it.
os.environ.setdefault("APP_ENV", "testing")

from unittest.mock import AsyncMock, MagicMock

import pytest


class FakePage:
    """
    Records what the pipeline does to a page.

    Every Playwright coroutine used by the pipeline is an AsyncMock; `on`
    keeps the registered handlers so tests can fire page events with `emit`.
    """
    def __init__(self):
        self.handlers = {}
        self.cdp = MagicMock()
        self.cdp.send = AsyncMock()
        self.context = MagicMock()
        self.context.new_cdp_session = AsyncMock(return_value=self.cdp)

        self.set_viewport_size = AsyncMock()
        self.emulate_media = AsyncMock()
        self.goto = AsyncMock()
        self.set_content = AsyncMock()
        self.title = AsyncMock(return_value="Example Domain")
        self.evaluate = AsyncMock(return_value="<h1>hi</h1>")
        self.pdf = AsyncMock(return_value=b"%PDF-1.4 fake")
        self.screenshot = AsyncMock(return_value=b"\x89PNG fake")
        self.close = AsyncMock()
        self.remove_listener = MagicMock()

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def emit(self, event, payload=None):
        for handler in list(self.handlers.get(event, [])):
            handler(payload)


@pytest.fixture
def fake_page():
    return FakePage()


@pytest.fixture
def fake_browser(fake_page):
    browser = MagicMock()
    browser.new_page = AsyncMock(return_value=fake_page)
    browser.close = AsyncMock()
    return browser
