"""
Components sub-package for the headless render service.

This package contains the building blocks of a render: option handling,
the pooled browser connections, and the page pipeline.

The `__all__` variable defines the public API of this sub-package,
making key components directly importable from `headless_render.components`.
"""
from .options import normalize_options, options_from_query, RenderOptions, FailurePolicy
from .pool import BrowserPool, ConnectionSelector
from .renderer import RenderPipeline, RenderResult, ArtifactCapturer, FailureClassifier, OutputKind

__all__ = [
    "normalize_options",
    "options_from_query",
    "RenderOptions",
    "FailurePolicy",
    "BrowserPool",
    "ConnectionSelector",
    "RenderPipeline",
    "RenderResult",
    "ArtifactCapturer",
    "FailureClassifier",
    "OutputKind",
]
