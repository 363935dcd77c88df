"""
Artifact capture: turns the loaded page into bytes plus a content type.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from playwright.async_api import Page

from headless_render.components.options.models import RenderOptions
from headless_render.core.exceptions import UnsupportedEncodingError, UnsupportedOutputError
from headless_render.core.logger import get_logger

logger = get_logger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
HTML_CONTENT_TYPE = "text/html"
IMAGE_CONTENT_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
}

SERIALIZE_BODY_SCRIPT = "() => document.body.innerHTML"


class OutputKind(str, Enum):
    PDF = "pdf"
    HTML = "html"
    SCREENSHOT = "screenshot"

    @classmethod
    def parse(cls, value: Any) -> "OutputKind":
        """
        Resolves a requested output kind.

        Raises:
            UnsupportedOutputError: For anything that is not a known kind or alias.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            kind = _OUTPUT_ALIASES.get(key)
            if kind is not None:
                return kind
        raise UnsupportedOutputError(value)


_OUTPUT_ALIASES = {
    "pdf": OutputKind.PDF,
    "document": OutputKind.PDF,
    "html": OutputKind.HTML,
    "structural-snapshot": OutputKind.HTML,
    "screenshot": OutputKind.SCREENSHOT,
    "image": OutputKind.SCREENSHOT,
    "visual-snapshot": OutputKind.SCREENSHOT,
}


@dataclass
class CapturePlan:
    """What to capture, with which Playwright arguments, and how to label it."""
    kind: OutputKind
    content_type: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    @property
    def extension(self) -> str:
        if self.kind is OutputKind.SCREENSHOT:
            return self.arguments.get("type", "png")
        return self.kind.value


def image_content_type(encoding: Any) -> str:
    """Maps a screenshot encoding to its MIME type; only png and jpeg are supported."""
    content_type = IMAGE_CONTENT_TYPES.get(encoding) if isinstance(encoding, str) else None
    if content_type is None:
        raise UnsupportedEncodingError(encoding)
    return content_type


def content_type_for(options: RenderOptions) -> str:
    """Content type the render of `options` will produce."""
    kind = OutputKind.parse(options.output)
    if kind is OutputKind.PDF:
        return PDF_CONTENT_TYPE
    if kind is OutputKind.HTML:
        return HTML_CONTENT_TYPE
    return image_content_type(options.screenshot.type)


def screenshot_arguments(options: RenderOptions) -> Dict[str, Any]:
    """
    Keyword arguments for `page.screenshot`.

    The clip region is forwarded, with all four fields, only when at least
    one of them was set; otherwise the default (full page or viewport) applies.
    """
    arguments = options.screenshot.model_dump(exclude_none=True, exclude={"clip"})
    clip = options.screenshot.clip
    if clip.is_set():
        # Playwright rejects full_page together with clip.
        arguments.pop("full_page", None)
        arguments["clip"] = {"x": clip.x, "y": clip.y, "width": clip.width, "height": clip.height}
    return arguments


class ArtifactCapturer:
    """Resolves capture plans and runs them against a page."""

    def plan(self, options: RenderOptions) -> CapturePlan:
        """
        Resolves the output kind and its capture arguments.

        Raises:
            UnsupportedOutputError: For an unknown output kind.
            UnsupportedEncodingError: For a screenshot encoding other than png/jpeg.
        """
        kind = OutputKind.parse(options.output)
        if kind is OutputKind.PDF:
            return CapturePlan(kind, PDF_CONTENT_TYPE, options.pdf.model_dump(exclude_none=True))
        if kind is OutputKind.HTML:
            return CapturePlan(kind, HTML_CONTENT_TYPE)
        if kind is OutputKind.SCREENSHOT:
            return CapturePlan(kind, image_content_type(options.screenshot.type), screenshot_arguments(options))
        raise UnsupportedOutputError(kind)

    async def capture(self, page: Page, plan: CapturePlan) -> bytes:
        """Runs the capture call for `plan.kind` and returns the raw artifact."""
        logger.debug(f"RENDER => Capturing {plan.kind.value} ({plan.content_type}) ..")
        if plan.kind is OutputKind.PDF:
            data = await page.pdf(**plan.arguments)
        elif plan.kind is OutputKind.HTML:
            markup = await page.evaluate(SERIALIZE_BODY_SCRIPT)
            data = (markup or "").encode("utf-8")
        elif plan.kind is OutputKind.SCREENSHOT:
            data = await page.screenshot(**plan.arguments)
        else:
            raise UnsupportedOutputError(plan.kind)
        logger.debug(f"RENDER <= Captured {len(data)} bytes")
        return data
