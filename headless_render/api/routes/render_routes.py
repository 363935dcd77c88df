"""
API routes for render operations.

Both routes accept the same request shape: `GET` takes flat dotted query
parameters (`viewport.width=800`), `POST` takes the nested JSON form. The
response body is the raw artifact with its content type.
"""
import re
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import Response

from headless_render.api.models import ErrorResponse
from headless_render.components.options.query import options_from_query
from headless_render.components.renderer.pipeline import RenderResult
from headless_render.core.logger import get_logger
from headless_render.core.manager import RenderManager

logger = get_logger(__name__)

router = APIRouter()

FILE_EXTENSIONS = {
    "application/pdf": "pdf",
    "text/html": "html",
    "image/png": "png",
    "image/jpeg": "jpeg",
}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._ -]+")

# Error statuses a render can end with, documented in the OpenAPI schema.
ERROR_RESPONSES = {
    code: {"model": ErrorResponse}
    for code in (400, 412, 500, 502, 503, 504)
}


def get_render_manager(request: Request) -> RenderManager:
    """
    Dependency provider for the process-wide `RenderManager`.

    The manager is created by the application lifespan once the browser pool
    is up; until then the service answers 503.
    """
    manager = getattr(request.app.state, "render_manager", None)
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Render service is not ready: browser pool has not been started.",
        )
    return manager


def attachment_filename(result: RenderResult) -> str:
    """Header-safe download name built from the suggested attachment name."""
    stem = _UNSAFE_FILENAME_CHARS.sub("_", result.attachment_name or "").strip(" ._") or "render"
    extension = FILE_EXTENSIONS.get(result.content_type, "bin")
    return f"{stem[:100]}.{extension}"


def artifact_response(result: RenderResult) -> Response:
    return Response(
        content=result.data,
        media_type=result.content_type,
        headers={"Content-Disposition": f'inline; filename="{attachment_filename(result)}"'},
    )


@router.get(
    "",
    response_class=Response,
    responses=ERROR_RESPONSES,
    summary="Render from query parameters",
    description="Renders a URL or inline HTML described by dotted query parameters "
                "(e.g. `url`, `output`, `viewport.width`, `pdf.margin.top`).",
)
async def render_from_query(request: Request, manager: RenderManager = Depends(get_render_manager)):
    render_request = options_from_query(request.query_params)
    logger.info(f"Render requested via query for {render_request.get('url') or 'inline markup'}")
    result = await manager.render(render_request)
    return artifact_response(result)


@router.post(
    "",
    response_class=Response,
    responses=ERROR_RESPONSES,
    summary="Render from a JSON body",
    description="Renders a URL or inline HTML described by a nested JSON request.",
)
async def render_from_body(body: Optional[Dict[str, Any]] = Body(default=None),
                           manager: RenderManager = Depends(get_render_manager)):
    body = body or {}
    logger.info(f"Render requested via body for {body.get('url') or 'inline markup'}")
    result = await manager.render(body)
    return artifact_response(result)
