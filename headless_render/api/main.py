"""
Main application file for the headless render API.

This file initializes the FastAPI application, sets up logging, starts the
browser pool for the lifetime of the process, registers global exception
handlers, and includes the render router.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from headless_render import __version__
from headless_render.api.models import ServiceInfo
from headless_render.api.routes import render_router
from headless_render.components.pool.browser_pool import BrowserPool
from headless_render.core.config import config_manager
from headless_render.core.exceptions import RenderServiceError
from headless_render.core.logger import setup_logging, get_logger
from headless_render.core.manager import RenderManager

# --- Logging Setup ---
# Initialized as early as possible; the configuration is selected by APP_ENV.
setup_logging(config_manager)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Launches the browser pool once for the whole process and exposes a
    `RenderManager` over it on `app.state`.
    """
    async with BrowserPool(config=config_manager) as pool:
        app.state.browser_pool = pool
        app.state.render_manager = RenderManager(pool.selector(), config=config_manager)
        logger.info(f"Render service ready with {pool.size} pooled browser(s).")
        yield
        app.state.render_manager = None
        app.state.browser_pool = None
    logger.info("Render service stopped.")


# --- FastAPI Application Initialization ---
app = FastAPI(
    title="Headless Render API",
    description="Renders web pages or inline HTML to PDF, HTML snapshots, or screenshots "
                "through a pool of headless Chromium browsers.",
    version=__version__,
    lifespan=lifespan,
)

# --- Global Exception Handlers ---

@app.exception_handler(RenderServiceError)
async def render_service_exception_handler(request: Request, exc: RenderServiceError):
    """
    Handles all custom exceptions derived from `RenderServiceError`.

    Each error class carries its own HTTP status (412 for policy aborts,
    503 for pool attach failures, ...), which is used as-is.

    Args:
        request (Request): The incoming request that caused the exception.
        exc (RenderServiceError): The instance of the caught application exception.

    Returns:
        JSONResponse: `{"detail": message}` with the error's status code.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{exc.__class__.__name__} for request {request.method} {request.url}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handles `RequestValidationError` for request body or query parameters (HTTP 422).
    """
    logger.warning(f"RequestValidationError caught for: {request.method} {request.url}. Errors: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Request validation failed", "errors": exc.errors()},
    )

@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """
    Catch-all so the API always answers with JSON, even for unexpected errors (HTTP 500).
    """
    logger.critical(
        f"Generic unhandled exception caught: {exc.__class__.__name__} - {str(exc)} "
        f"for request: {request.method} {request.url}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected server error occurred. Please contact support if the issue persists."},
    )


# --- API Router Inclusion ---
app.include_router(
    render_router,
    prefix="/api/v1/render",
    tags=["Rendering"]
)


# --- Root Endpoint ---
@app.get("/", tags=["General"], summary="API Root Endpoint", response_model=ServiceInfo)
async def read_root(request: Request):
    """
    Provides basic information about the API and the browser pool.
    """
    pool = getattr(request.app.state, "browser_pool", None)
    return ServiceInfo(
        message="Welcome to the Headless Render API",
        version=app.version,
        pool_size=len(pool.endpoints) if pool else 0,
        documentation_url=app.docs_url,
    )


if __name__ == "__main__":
    # Local development only; deployments run uvicorn (or gunicorn with uvicorn workers) directly.
    import uvicorn

    logger.info("Starting Uvicorn server directly for local development/testing (not for production)...")
    uvicorn.run(
        app,
        host=config_manager.get("api.host", "0.0.0.0"),
        port=int(config_manager.get("api.port", 8000)),
    )
