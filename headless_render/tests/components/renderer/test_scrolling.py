import pytest
import pytest_asyncio
from playwright.async_api import Error as PlaywrightError, async_playwright

from headless_render.components.renderer.scrolling import (
    AUTO_SCROLL_SCRIPT,
    BOTTOM_THRESHOLD_PX,
    SCROLL_INTERVAL_MS,
    SCROLL_TIMEOUT_MS,
    SETTLE_DELAY_MS,
    TIMEOUT_MARKER,
    auto_scroll,
)
from headless_render.core.exceptions import ScrollTimeoutError


@pytest.mark.asyncio
async def test_auto_scroll_passes_its_bounds_to_the_page(fake_page):
    await auto_scroll(fake_page)

    fake_page.evaluate.assert_awaited_once_with(AUTO_SCROLL_SCRIPT, {
        "interval": SCROLL_INTERVAL_MS,
        "threshold": BOTTOM_THRESHOLD_PX,
        "settle": SETTLE_DELAY_MS,
        "timeout": SCROLL_TIMEOUT_MS,
    })
    assert TIMEOUT_MARKER in AUTO_SCROLL_SCRIPT


@pytest.mark.asyncio
async def test_auto_scroll_timeout_is_classified(fake_page):
    fake_page.evaluate.side_effect = PlaywrightError(f"Error: {TIMEOUT_MARKER} after 50 ms")

    with pytest.raises(ScrollTimeoutError) as excinfo:
        await auto_scroll(fake_page, timeout_ms=50)

    assert excinfo.value.status_code == 504
    assert "50 ms" in str(excinfo.value)
    assert fake_page.evaluate.await_args.args[1]["timeout"] == 50


@pytest.mark.asyncio
async def test_other_engine_errors_propagate_unchanged(fake_page):
    error = PlaywrightError("Target page, context or browser has been closed")
    fake_page.evaluate.side_effect = error

    with pytest.raises(PlaywrightError) as excinfo:
        await auto_scroll(fake_page)

    assert excinfo.value is error


# --- Browser-backed checks (skipped when Chromium is not installed) ---

@pytest_asyncio.fixture
async def real_page():
    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch(headless=True)
        except PlaywrightError as e:
            pytest.skip(f"Chromium is not available: {e}")
        page = await browser.new_page()
        await page.set_viewport_size({"width": 800, "height": 600})
        try:
            yield page
        finally:
            await browser.close()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_short_document_scrolls_and_returns_to_top(real_page):
    await real_page.set_content("<body style='margin:0'><div style='height:3000px'>tall</div></body>")

    await auto_scroll(real_page, timeout_ms=10000)

    assert await real_page.evaluate("() => window.pageYOffset") == 0


@pytest.mark.integration
@pytest.mark.asyncio
async def test_endless_document_times_out(real_page):
    # The document keeps growing faster than it is scrolled.
    await real_page.set_content(
        "<body style='margin:0'><div id='feed' style='height:2000px'></div>"
        "<script>setInterval(() => {"
        "const feed = document.getElementById('feed');"
        "feed.style.height = (feed.offsetHeight + 5000) + 'px';"
        "}, 20);</script></body>"
    )

    with pytest.raises(ScrollTimeoutError):
        await auto_scroll(real_page, timeout_ms=500)
