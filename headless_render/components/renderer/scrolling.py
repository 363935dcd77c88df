"""
Auto-scroll, run inside the page to trigger lazy-loaded content.
"""
from playwright.async_api import Error as PlaywrightError, Page

from headless_render.core.exceptions import ScrollTimeoutError
from headless_render.core.logger import get_logger

logger = get_logger(__name__)

SCROLL_INTERVAL_MS = 100
BOTTOM_THRESHOLD_PX = 400
SETTLE_DELAY_MS = 500
SCROLL_TIMEOUT_MS = 30000

TIMEOUT_MARKER = "auto-scroll timed out"

# Scrolls half a viewport per tick until less than `threshold` px remain,
# returns to the top, settles, and resolves. Rejects once `timeout` expires.
AUTO_SCROLL_SCRIPT = """
(opts) => new Promise((resolve, reject) => {
    const scrollStep = Math.floor(window.innerHeight / 2);
    const bottomPos = () => window.pageYOffset + window.innerHeight;
    let expired = false;

    const timer = setTimeout(() => {
        expired = true;
        reject(new Error('%s after ' + opts.timeout + ' ms'));
    }, opts.timeout);

    const scrollDown = () => {
        if (expired) {
            return;
        }
        window.scrollBy(0, scrollStep);
        if (document.body.scrollHeight - bottomPos() < opts.threshold) {
            window.scrollTo(0, 0);
            setTimeout(() => {
                clearTimeout(timer);
                resolve();
            }, opts.settle);
            return;
        }
        setTimeout(scrollDown, opts.interval);
    };

    scrollDown();
})
""" % TIMEOUT_MARKER


async def auto_scroll(page: Page, timeout_ms: int = SCROLL_TIMEOUT_MS) -> None:
    """
    Scrolls the page to the bottom and back to the top.

    Args:
        page: The page to scroll.
        timeout_ms: Upper bound for the whole scroll, in milliseconds.

    Raises:
        ScrollTimeoutError: If the bottom was not reached within `timeout_ms`.
    """
    logger.debug(f"RENDER => Auto-scrolling (bound {timeout_ms} ms) ..")
    try:
        await page.evaluate(AUTO_SCROLL_SCRIPT, {
            "interval": SCROLL_INTERVAL_MS,
            "threshold": BOTTOM_THRESHOLD_PX,
            "settle": SETTLE_DELAY_MS,
            "timeout": timeout_ms,
        })
    except PlaywrightError as e:
        if TIMEOUT_MARKER in str(e):
            raise ScrollTimeoutError(f"Auto-scroll did not reach the bottom within {timeout_ms} ms") from e
        raise
