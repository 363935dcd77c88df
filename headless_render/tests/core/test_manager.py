import json
import random
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from headless_render.components.pool.browser_pool import ConnectionSelector
from headless_render.components.renderer.pipeline import RenderPipeline
from headless_render.core.exceptions import ConnectionPoolError, PolicyAbortError, UnsupportedEncodingError
from headless_render.core.manager import RenderManager


class MockConfigurationManager:
    def __init__(self, settings=None):
        self.settings = settings if settings is not None else {}

    def get(self, key, default=None):
        value = self.settings
        for k_part in key.split('.'):
            if not isinstance(value, dict) or k_part not in value:
                return default
            value = value[k_part]
        return value


@pytest.fixture(autouse=True)
def mock_manager_logger():
    with patch('headless_render.core.manager.logger', MagicMock()) as mock_log:
        yield mock_log


@pytest.fixture
def connector(fake_browser):
    return AsyncMock(return_value=fake_browser)


@pytest.fixture
def render_manager(connector):
    selector = ConnectionSelector(["http://127.0.0.1:9222", "http://127.0.0.1:9223"], connector, rng=random.Random(7))
    pipeline = RenderPipeline(sleep=AsyncMock())
    return RenderManager(selector, pipeline=pipeline)


@pytest.mark.asyncio
async def test_render_url_to_pdf(render_manager, connector, fake_browser, fake_page):
    result = await render_manager.render({"url": "https://example.com"})

    assert result.data == b"%PDF-1.4 fake"
    assert result.content_type == "application/pdf"
    assert result.attachment_name == "Example Domain"
    connector.assert_awaited_once()
    assert connector.await_args.args[0] in render_manager.selector.endpoints
    fake_page.goto.assert_awaited_once()
    fake_page.close.assert_awaited_once()
    # The logical connection is dropped after every render.
    fake_browser.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_render_logs_options_without_inline_markup(render_manager, mock_manager_logger):
    await render_manager.render({"html": "<p>secret</p>", "cookies": [{"name": "sid", "value": "abc", "domain": "x"}]})

    logged = mock_manager_logger.debug.call_args_list[0].args[0]
    assert logged.startswith("RENDER => ")
    described = json.loads(logged[len("RENDER => "):])["opts"]
    assert described["html"] == "..."
    assert described["cookies"][0]["value"] == "***"
    assert "secret" not in logged


@pytest.mark.asyncio
async def test_render_attach_failure_is_not_retried(fake_page):
    connector = AsyncMock(side_effect=OSError("connection refused"))
    selector = ConnectionSelector(["http://127.0.0.1:9222", "http://127.0.0.1:9223"], connector)
    manager = RenderManager(selector, pipeline=RenderPipeline(sleep=AsyncMock()))

    with pytest.raises(ConnectionPoolError) as excinfo:
        await manager.render({"url": "https://example.com"})

    assert excinfo.value.status_code == 503
    connector.assert_awaited_once()
    fake_page.goto.assert_not_awaited()


@pytest.mark.asyncio
async def test_render_disconnects_when_pipeline_fails(render_manager, fake_browser, fake_page):
    with pytest.raises(UnsupportedEncodingError):
        await render_manager.render({"url": "https://example.com", "output": "screenshot", "screenshot": {"type": "bmp"}})

    fake_browser.new_page.assert_not_awaited()
    fake_browser.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_render_policy_abort_propagates(render_manager, fake_page):
    fake_page.goto.side_effect = lambda url, **kwargs: fake_page.emit("response", MagicMock(url=url, status=404))

    with pytest.raises(PolicyAbortError) as excinfo:
        await render_manager.render({"url": "https://example.com/", "failEarly": "page"})

    assert excinfo.value.status_code == 412
    assert excinfo.value.observed_status == 404
    fake_page.close.assert_awaited_once()


def test_manager_reads_defaults_and_https_toggle_from_config(connector):
    config = MockConfigurationManager({
        "render": {
            "ignore_https_errors": True,
            "defaults": {"wait_for": 0, "viewport": {"width": 800}},
        }
    })
    manager = RenderManager(ConnectionSelector(["http://127.0.0.1:9222"], connector), config=config)

    assert manager.ignore_https_errors is True
    assert manager.defaults["waitFor"] == 0
    assert manager.defaults["viewport"] == {"width": 800, "height": 1200}
    assert isinstance(manager.pipeline, RenderPipeline)


@pytest.mark.asyncio
async def test_process_wide_https_toggle_reaches_the_page(connector, fake_browser):
    config = MockConfigurationManager({"render": {"ignore_https_errors": True}})
    manager = RenderManager(ConnectionSelector(["http://127.0.0.1:9222"], connector), config=config,
                            pipeline=RenderPipeline(sleep=AsyncMock()))

    await manager.render({"url": "https://self-signed.example"})

    assert fake_browser.new_page.await_args.kwargs["ignore_https_errors"] is True
