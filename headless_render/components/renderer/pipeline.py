"""
The render pipeline: drives one page from open to capture.

Steps run strictly in order: open, configure, cookies, load, delay, scroll,
policy check, capture. The page is owned by a `PageSession`, an async
context manager, so it is closed on every exit path: normal return, policy
abort, or any engine failure.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from playwright.async_api import Browser, CDPSession, Page

from headless_render.components.options.models import RenderOptions
from headless_render.components.renderer.capture import ArtifactCapturer, CapturePlan
from headless_render.components.renderer.failures import FailureClassifier, FailureLedger
from headless_render.components.renderer.scrolling import auto_scroll
from headless_render.core.exceptions import (
    EngineRuntimeError,
    NavigationError,
    RendererError,
    RenderServiceError,
)
from headless_render.core.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RenderResult:
    """Captured artifact, ready for transport."""
    data: bytes
    content_type: str
    attachment_name: Optional[str] = None


@dataclass
class RenderContext:
    """Per-request state threaded through the pipeline; never shared between requests."""
    options: RenderOptions
    ledger: FailureLedger
    step: str = "plan"
    page_title: Optional[str] = None


class PageSession:
    """
    Owns one page for the lifetime of one render.

    Entering creates the page and registers the crash, request-failed and
    response listeners. Exiting removes them and closes the page. `close()`
    is idempotent: a crash triggers an immediate out-of-band close, and the
    regular close on exit then does nothing.
    """

    def __init__(self, browser: Browser, context: RenderContext, ignore_https_errors: bool = False):
        self.browser = browser
        self.context = context
        self.ignore_https_errors = ignore_https_errors
        self.page: Optional[Page] = None
        self.crashed = False
        self.crashed_during: Optional[str] = None
        self._crash_event = asyncio.Event()
        self._cdp: Optional[CDPSession] = None
        self._closed = False
        self._close_task: Optional[asyncio.Future] = None
        self._listeners: List[Tuple[str, Callable[[Any], None]]] = []

    async def __aenter__(self) -> 'PageSession':
        self.context.step = "open"
        try:
            self.page = await self.browser.new_page(**self._page_arguments())
        except Exception as e:
            logger.error(f"Failed to open a page: {e}", exc_info=True)
            raise RendererError(f"Failed to open a page: {e}") from e

        ledger = self.context.ledger
        self._listeners = [
            ("crash", self._on_crash),
            ("requestfailed", ledger.record_request_failed),
            ("response", ledger.record_response),
        ]
        for event, handler in self._listeners:
            self.page.on(event, handler)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        if self._close_task is not None:
            await self._close_task

    def _page_arguments(self) -> Dict[str, Any]:
        viewport = self.context.options.viewport
        arguments = viewport.model_dump(
            exclude_none=True,
            include={"device_scale_factor", "is_mobile", "has_touch"},
        )
        arguments["ignore_https_errors"] = self.ignore_https_errors or self.context.options.ignore_https_errors
        return arguments

    def _on_crash(self, _page: Any) -> None:
        logger.error(f"RENDER => Page crashed during '{self.context.step}', closing it")
        self.crashed = True
        self.crashed_during = self.context.step
        self._crash_event.set()
        if self._close_task is None:
            self._close_task = asyncio.ensure_future(self.close())

    async def until_crash(self, work: Awaitable[Any]) -> Any:
        """
        Awaits `work`, or stops it as soon as the page crashes.

        Raises:
            EngineRuntimeError: The page crashed before `work` finished.
        """
        task = asyncio.ensure_future(work)
        crash = asyncio.ensure_future(self._crash_event.wait())
        try:
            await asyncio.wait({task, crash}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            task.cancel()
            crash.cancel()
            await asyncio.gather(task, crash, return_exceptions=True)

        if self.crashed:
            raise EngineRuntimeError(f"Page crashed during '{self.crashed_during}'")
        return task.result()

    async def cdp(self) -> CDPSession:
        """Low-level protocol channel for this page, opened on first use."""
        if self._cdp is None:
            self._cdp = await self.page.context.new_cdp_session(self.page)
        return self._cdp

    async def close(self) -> None:
        if self._closed or self.page is None:
            return
        self._closed = True
        for event, handler in self._listeners:
            self.page.remove_listener(event, handler)
        logger.debug("RENDER <= Closing page..")
        try:
            await self.page.close()
        except Exception as e:
            logger.error(f"Error closing page: {e}", exc_info=True)

    def engine_failure(self, error: Exception) -> RenderServiceError:
        """Classifies an engine exception raised during the current step."""
        step = self.context.step
        if self.crashed:
            return EngineRuntimeError(f"Page crashed during '{step}': {error}")
        return RendererError(f"Rendering failed during '{step}': {error}")


class RenderPipeline:
    """
    Runs the page lifecycle for one render request.

    Collaborators are injectable so the sequence can be exercised without a
    browser: `scroller` runs the auto-scroll step and `sleep` implements the
    delay step.
    """

    def __init__(self,
                 capturer: Optional[ArtifactCapturer] = None,
                 classifier: Optional[FailureClassifier] = None,
                 scroller: Callable[[Page], Awaitable[None]] = auto_scroll,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.capturer = capturer or ArtifactCapturer()
        self.classifier = classifier or FailureClassifier()
        self._scroller = scroller
        self._sleep = sleep

    async def run(self, browser: Browser, options: RenderOptions, ignore_https_errors: bool = False) -> RenderResult:
        """
        Renders `options` on a new page of `browser`.

        Unsupported output kinds and encodings, and a request with neither
        markup nor URL, fail before any page is created.

        Raises:
            RenderServiceError: Classified failure of any step. The page has
                already been closed when it propagates.
        """
        plan = self.capturer.plan(options)
        if options.html is None and not options.url:
            raise NavigationError("Either 'url' or 'html' must be provided.")

        ledger = FailureLedger(main_url=None if options.uses_inline_markup else options.url)
        context = RenderContext(options=options, ledger=ledger)

        async with PageSession(browser, context, ignore_https_errors) as session:
            try:
                data = await self._drive(session, plan)
            except RenderServiceError as e:
                logger.debug(f"RENDER <= Error when rendering page: {e}")
                logger.error(f"Render failed during '{context.step}': {e.message}", exc_info=True)
                raise
            except Exception as e:
                logger.debug(f"RENDER <= Error when rendering page: {e}")
                logger.error(f"Render failed during '{context.step}': {e}", exc_info=True)
                raise session.engine_failure(e) from e

        return RenderResult(
            data=data,
            content_type=plan.content_type,
            attachment_name=options.attachment_name or context.page_title or None,
        )

    async def _drive(self, session: PageSession, plan: CapturePlan) -> bytes:
        context = session.context
        options = context.options
        page = session.page

        cdp = await session.cdp()
        await cdp.send("Network.setCacheDisabled", {"cacheDisabled": not options.cache_enabled})

        context.step = "configure"
        logger.debug("RENDER => Set browser viewport ..")
        await page.set_viewport_size({"width": options.viewport.width, "height": options.viewport.height})
        if options.viewport.is_landscape:
            await cdp.send("Emulation.setDeviceMetricsOverride", {
                "width": options.viewport.width,
                "height": options.viewport.height,
                "deviceScaleFactor": options.viewport.device_scale_factor or 1,
                "mobile": bool(options.viewport.is_mobile),
                "screenOrientation": {"type": "landscapePrimary", "angle": 90},
            })
        if options.emulate_screen_media:
            logger.debug("RENDER => Emulate @media screen ..")
            await page.emulate_media(media="screen")

        if options.cookies:
            context.step = "cookies"
            logger.debug("RENDER => Setting cookies ..")
            await cdp.send("Network.enable")
            await cdp.send("Network.setCookies", {"cookies": options.cookies})

        context.step = "load"
        await self._load(session)
        context.page_title = await page.title()

        if options.wait_for > 0:
            context.step = "delay"
            logger.debug(f"RENDER => Wait for {options.wait_for} ..")
            await session.until_crash(self._sleep(options.wait_for / 1000))

        if options.scroll_page:
            context.step = "scroll"
            logger.debug("RENDER => Scroll page ..")
            await session.until_crash(self._scroller(page))

        context.step = "policy"
        if session.crashed:
            raise EngineRuntimeError(
                f"Page crashed during '{session.crashed_during}' before capture of "
                f"{options.url or 'inline markup'}"
            )
        self.classifier.enforce(context.ledger, options.fail_early)

        context.step = "capture"
        logger.debug("RENDER => Rendering ..")
        return await self.capturer.capture(page, plan)

    async def _load(self, session: PageSession) -> None:
        options = session.context.options
        goto = options.goto.model_dump(exclude_none=True)
        try:
            if options.uses_inline_markup:
                logger.debug("RENDER => Set HTML ..")
                await session.page.set_content(options.html, **goto)
            else:
                logger.debug(f"RENDER => Goto url {options.url} ..")
                await session.page.goto(options.url, **goto)
        except Exception as e:
            if session.crashed:
                raise session.engine_failure(e) from e
            target = "inline markup" if options.uses_inline_markup else options.url
            raise NavigationError(f"Failed to load {target}: {e}") from e
