"""
FastAPI Application
==================

Main FastAPI application serving published store pages and the editor's
content, preview and template endpoints.
"""

from contextlib import asynccontextmanager
import uuid
from typing import Any, AsyncGenerator

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from storefront import __version__
from storefront.api.routes.content import router as content_router
from storefront.api.routes.health import router as health_router
from storefront.api.routes.public import router as public_router
from storefront.api.routes.templates import router as templates_router
from storefront.config.database import close_databases, initialize_databases
from storefront.config.logging import bind_request_context, clear_request_context, get_logger
from storefront.config.settings import get_settings
from storefront.core.errors import StorageError, StoreNotFoundError, TemplateNotFound
from storefront.core.storage.repository import get_store_repository
from storefront.models.schemas import ErrorResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("Starting FastAPI application", backend=settings.store_backend)

    try:
        await initialize_databases()
        logger.info("Databases initialized")
    except Exception as e:
        logger.error("Failed to initialize databases", error=str(e))
        raise RuntimeError(f"Database initialization failed: {e}")

    try:
        yield
    finally:
        logger.info("Shutting down FastAPI application")

        try:
            await get_store_repository().close()
        except Exception as e:
            logger.error("Error closing store repository", error=str(e))

        try:
            await close_databases()
            logger.info("Databases closed")
        except Exception as e:
            logger.error("Error closing databases", error=str(e))


# Create FastAPI app
settings = get_settings()
app = FastAPI(
    title="Storefront Template Studio",
    description="Customize storefront templates and serve published store pages",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_hosts,
    allow_credentials=True,
    allow_methods=["GET", "PUT"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.include_router(public_router)
app.include_router(content_router)
app.include_router(templates_router)
app.include_router(health_router)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> JSONResponse:  # type: ignore
    """Add request ID to all requests."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    clear_request_context()
    bind_request_context(request_id=request_id, path=request.url.path)

    response = await call_next(request)  # type: ignore
    response.headers["X-Request-ID"] = request_id  # type: ignore

    return response  # type: ignore


def _error_response(
    request: Request, status_code: int, error: str, error_code: str, details: Any = None
) -> JSONResponse:
    error_response = ErrorResponse(
        error=error,
        error_code=error_code,
        details=details,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=status_code, content=error_response.model_dump(mode="json"))


# Exception handlers
@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom HTTP exception handler with structured error response."""
    logger.error(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=getattr(request.state, "request_id", None),
    )
    return _error_response(request, exc.status_code, str(exc.detail), str(exc.status_code))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject malformed request bodies with the structured error body."""
    logger.warning("Request validation failed", errors=len(exc.errors()))
    return _error_response(
        request,
        422,
        "Invalid request body",
        "VALIDATION_ERROR",
        {"errors": [f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()]},
    )


@app.exception_handler(StoreNotFoundError)
async def store_not_found_handler(request: Request, exc: StoreNotFoundError) -> JSONResponse:
    return _error_response(request, 404, str(exc), "STORE_NOT_FOUND")


@app.exception_handler(TemplateNotFound)
async def template_not_found_handler(request: Request, exc: TemplateNotFound) -> JSONResponse:
    logger.error("Template missing", template_key=exc.template_key, path=exc.path)
    return _error_response(
        request,
        500,
        "Store template unavailable",
        "TEMPLATE_NOT_FOUND",
        {"template": exc.template_key} if settings.debug else None,
    )


@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage failure", error=str(exc), request_id=getattr(request.state, "request_id", None))
    return _error_response(
        request,
        503,
        "Store data temporarily unavailable",
        "STORAGE_ERROR",
        {"message": str(exc)} if settings.debug else None,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """General exception handler for unexpected errors."""
    logger.error(
        "Unhandled exception",
        exception=str(exc),
        request_id=getattr(request.state, "request_id", None),
        exc_info=True,
    )
    return _error_response(
        request,
        500,
        "Internal server error",
        "INTERNAL_ERROR",
        {"exception": str(exc)} if settings.debug else None,
    )


# Root endpoint
@app.get("/", tags=["General"])
async def root() -> dict[str, Any]:
    """
    Root endpoint with basic API information.
    """
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs_url": "/docs" if settings.enable_docs else None,
        "health_check": "/api/v1/health",
        "endpoints": {
            "public_store": "GET /store/{domain}",
            "get_content": "GET /api/v1/stores/{store_id}/content",
            "save_content": "PUT /api/v1/stores/{store_id}/content",
            "preview": "GET /api/v1/stores/{store_id}/preview",
            "templates": "GET /api/v1/templates",
        },
    }


# Development server runner
def run_development_server() -> None:
    """Run development server with auto-reload."""
    uvicorn.run(
        "storefront.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


def create_app() -> FastAPI:
    """
    Application factory function for creating FastAPI app instance.
    Used by integration tests and deployment scripts.

    Returns:
        FastAPI application instance
    """
    return app


if __name__ == "__main__":
    run_development_server()
