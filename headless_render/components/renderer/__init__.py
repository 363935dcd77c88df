"""
Renderer component for the headless render service.

This sub-package drives a single browser page through the render lifecycle
and turns the loaded page into a PDF, an HTML snapshot, or a screenshot.
"""
from .capture import ArtifactCapturer, CapturePlan, OutputKind, content_type_for
from .failures import FailureClassifier, FailureLedger, NetworkFailure
from .pipeline import PageSession, RenderContext, RenderPipeline, RenderResult
from .scrolling import auto_scroll

__all__ = [
    "ArtifactCapturer",
    "CapturePlan",
    "OutputKind",
    "content_type_for",
    "FailureClassifier",
    "FailureLedger",
    "NetworkFailure",
    "PageSession",
    "RenderContext",
    "RenderPipeline",
    "RenderResult",
    "auto_scroll",
]
