"""
Pooled Chromium instances and per-request connection selection.

`BrowserPool` launches a fixed number of Chromium processes once, at process
start, each exposing a CDP endpoint. Requests never touch those processes
directly: `ConnectionSelector` picks one endpoint uniformly at random and
attaches a fresh logical connection to it for the duration of one render.
"""
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Sequence, TYPE_CHECKING

from playwright.async_api import async_playwright, Browser, Playwright

from headless_render.core.exceptions import ConfigurationError, ConnectionPoolError
from headless_render.core.logger import get_logger

if TYPE_CHECKING:
    from headless_render.core.config import ConfigurationManager

logger = get_logger(__name__)

# Flags every pooled browser is launched with.
LAUNCH_ARGS = [
    '--disable-gpu',
    '--disable-dev-shm-usage',
    '--disable-setuid-sandbox',
    '--no-first-run',
    '--no-sandbox',
    '--no-zygote',
    '--proxy-server=direct://',
    '--proxy-bypass-list=*',
]

Connector = Callable[[str], Awaitable[Browser]]


class ConnectionSelector:
    """
    Selects one pooled endpoint per request and attaches to it.

    The endpoint list is fixed when the selector is built and only ever read.
    There is no backpressure, retry, or fallback: an attach failure is fatal
    to the request.
    """

    def __init__(self, endpoints: Sequence[str], connector: Connector, rng: Optional[random.Random] = None):
        self.endpoints = tuple(endpoints)
        self._connector = connector
        self._rng = rng or random.Random()

    def select_index(self) -> int:
        """Draws an index uniformly from [0, N)."""
        if not self.endpoints:
            raise ConnectionPoolError("Browser pool is empty; no endpoint to attach to.")
        index = self._rng.randrange(len(self.endpoints))
        logger.info(f"RENDER => Selected pooled browser {index} of {len(self.endpoints)}")
        return index

    @asynccontextmanager
    async def attach(self) -> AsyncIterator[Browser]:
        """
        Attaches a logical connection to a randomly selected endpoint.

        Yields:
            Browser: The connected browser. The connection is dropped on exit;
            the pooled browser process keeps running.

        Raises:
            ConnectionPoolError: If the pool is empty or the attach fails.
        """
        endpoint = self.endpoints[self.select_index()]
        try:
            browser = await self._connector(endpoint)
        except Exception as e:
            logger.error(f"Failed to attach to pooled browser at {endpoint}: {e}", exc_info=True)
            raise ConnectionPoolError(f"Failed to attach to browser at {endpoint}: {e}", endpoint=endpoint) from e

        try:
            yield browser
        finally:
            try:
                # On a connected browser this only disconnects.
                await browser.close()
                logger.debug(f"Disconnected from pooled browser at {endpoint}")
            except Exception as e:
                logger.error(f"Error disconnecting from pooled browser at {endpoint}: {e}", exc_info=True)


class BrowserPool:
    """
    Asynchronous context manager owning the pooled Chromium processes.

    Entering the context starts Playwright and launches `size` browsers, each
    listening for CDP connections on `base_port + i`. Exiting closes them and
    stops Playwright. Meant to live for the whole process (e.g. the FastAPI
    lifespan), never per request.

    Attributes:
        size (int): Number of browser processes.
        endpoints (List[str]): CDP endpoints, index-aligned with the browsers.
    """
    DEFAULT_SIZE = 1
    DEFAULT_HOST = "127.0.0.1"
    DEFAULT_BASE_PORT = 9222
    DEBUG_SLOW_MO = 250  # Milliseconds

    def __init__(self, config: Optional['ConfigurationManager'] = None):
        """
        Initializes the BrowserPool from `render.*` configuration keys.

        Raises:
            ConfigurationError: If the pool size is not a positive integer.
        """
        if config:
            size = config.get('render.pool.size', self.DEFAULT_SIZE)
            self.host = config.get('render.pool.host', self.DEFAULT_HOST)
            self.base_port = int(config.get('render.pool.base_port', self.DEFAULT_BASE_PORT))
            self.debug = bool(config.get('render.debug', False))
        else:
            size = self.DEFAULT_SIZE
            self.host = self.DEFAULT_HOST
            self.base_port = self.DEFAULT_BASE_PORT
            self.debug = False

        try:
            self.size = int(size)
        except (TypeError, ValueError):
            raise ConfigurationError(f"render.pool.size must be an integer, got {size!r}")
        if self.size < 1:
            raise ConfigurationError(f"render.pool.size must be at least 1, got {self.size}")

        self.playwright: Optional[Playwright] = None
        self.browsers: List[Browser] = []
        self.endpoints: List[str] = []
        logger.info(f"BrowserPool configured: size={self.size}, host={self.host}, base_port={self.base_port}, debug={self.debug}")

    async def __aenter__(self) -> 'BrowserPool':
        """
        Starts Playwright and launches the pooled browsers.

        Raises:
            ConnectionPoolError: If Playwright or any browser fails to start.
        """
        logger.debug(f"Entering BrowserPool context: launching {self.size} browser(s).")
        try:
            self.playwright = await async_playwright().start()
            for index in range(self.size):
                port = self.base_port + index
                browser = await self.playwright.chromium.launch(
                    headless=not self.debug,
                    slow_mo=self.DEBUG_SLOW_MO if self.debug else None,
                    args=LAUNCH_ARGS + [f'--remote-debugging-port={port}'],
                )
                self.browsers.append(browser)
                self.endpoints.append(f"http://{self.host}:{port}")
                logger.info(f"Pooled browser {index} launched, CDP endpoint http://{self.host}:{port}")
        except Exception as e:
            logger.error(f"Failed to launch browser pool: {e}", exc_info=True)
            await self._shutdown()
            raise ConnectionPoolError(f"Failed to launch browser pool: {e}") from e
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        logger.debug("Exiting BrowserPool context: closing pooled browsers.")
        await self._shutdown()

    async def _shutdown(self) -> None:
        for browser in self.browsers:
            try:
                await browser.close()
            except Exception as e:
                logger.error(f"Error closing pooled browser: {e}", exc_info=True)
        if self.playwright:
            try:
                await self.playwright.stop()
                logger.info("Playwright stopped successfully.")
            except Exception as e:
                logger.error(f"Error stopping Playwright: {e}", exc_info=True)
        self.browsers = []
        self.endpoints = []
        self.playwright = None

    async def connect(self, endpoint: str) -> Browser:
        """Opens a new logical CDP connection to one of the pooled browsers."""
        if not self.playwright:
            raise ConnectionPoolError("Browser pool is not started. Use 'async with BrowserPool()'.", endpoint=endpoint)
        return await self.playwright.chromium.connect_over_cdp(endpoint)

    def selector(self, rng: Optional[random.Random] = None) -> ConnectionSelector:
        """Returns a selector over the current endpoints, connecting through this pool."""
        return ConnectionSelector(self.endpoints, self.connect, rng=rng)
