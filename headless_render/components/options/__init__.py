"""
Options component: request normalization and query parsing.
"""
from .models import (
    RenderOptions,
    ViewportOptions,
    GotoOptions,
    PdfOptions,
    PdfMargin,
    ScreenshotOptions,
    ClipRegion,
    FailurePolicy,
)
from .normalizer import DEFAULT_OPTIONS, normalize_options, describe_options, defaults_from_config
from .query import options_from_query

__all__ = [
    "RenderOptions",
    "ViewportOptions",
    "GotoOptions",
    "PdfOptions",
    "PdfMargin",
    "ScreenshotOptions",
    "ClipRegion",
    "FailurePolicy",
    "DEFAULT_OPTIONS",
    "normalize_options",
    "describe_options",
    "defaults_from_config",
    "options_from_query",
]
