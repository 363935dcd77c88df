import json
from typing import Any, Mapping, Optional, TYPE_CHECKING

from headless_render.components.options.normalizer import defaults_from_config, describe_options, normalize_options
from headless_render.components.pool.browser_pool import ConnectionSelector
from headless_render.components.renderer.pipeline import RenderPipeline, RenderResult
from headless_render.core.logger import get_logger

if TYPE_CHECKING:
    from headless_render.core.config import ConfigurationManager

logger = get_logger(__name__)


class RenderManager:
    """
    Orchestrates one render request end to end.

    The request is normalized against the configured defaults, a pooled
    browser is selected and attached, and the render pipeline runs on it.
    The manager holds no per-request state, so a single instance serves
    concurrent requests.
    """
    def __init__(self, selector: ConnectionSelector, config: Optional['ConfigurationManager'] = None,
                 pipeline: Optional[RenderPipeline] = None):
        """
        Initializes the RenderManager.

        Args:
            selector (ConnectionSelector): Picks and attaches pooled browsers.
            config (Optional[ConfigurationManager]): Source of `render.defaults` and
                `render.ignore_https_errors`. Built-in defaults are used when None.
            pipeline (Optional[RenderPipeline]): The page pipeline. A default one is built when None.
        """
        self.selector = selector
        self.pipeline = pipeline or RenderPipeline()
        self.defaults = defaults_from_config(config)
        self.ignore_https_errors = bool(config.get("render.ignore_https_errors", False)) if config else False
        logger.info(f"RenderManager initialized over {len(selector.endpoints)} pooled browser(s).")

    async def render(self, request: Optional[Mapping[str, Any]]) -> RenderResult:
        """
        Renders a request into an artifact.

        Args:
            request: The partial, loosely-typed request (see `normalize_options`).

        Returns:
            RenderResult: Artifact bytes, content type, and suggested attachment name.

        Raises:
            ConnectionPoolError: If no pooled browser could be attached.
            RendererError: Any classified pipeline failure (navigation, policy abort,
                scroll timeout, unsupported output or encoding, page crash).
        """
        options = normalize_options(request, self.defaults)
        logger.debug("RENDER => " + json.dumps({"opts": describe_options(options)}))

        async with self.selector.attach() as browser:
            result = await self.pipeline.run(browser, options, ignore_https_errors=self.ignore_https_errors)

        logger.info(f"RENDER <= {result.content_type}, {len(result.data)} bytes for {options.url or 'inline markup'}")
        return result
