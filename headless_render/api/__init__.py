"""
API sub-package for the headless render service.

This package contains the FastAPI application, its routes, and response
models. It is the request-accepting boundary around `RenderManager`.

Nothing is exported at this level; import `api.main` or `api.routes` directly.
"""

__all__ = []
