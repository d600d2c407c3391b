"""
FastAPI application entry point.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from strain_tracker.core.config import settings
from strain_tracker.core.middleware import RequestIdMiddleware, get_request_id
from strain_tracker.core.logging import logger
from strain_tracker.core.exceptions import AppException, ConfigurationException
from strain_tracker.schemas.error import ErrorResponse, ErrorDetail, ErrorCode, ERROR_CODE_TO_HTTP_STATUS
from strain_tracker.services.runtime import build_runtime, shutdown_runtime

from strain_tracker.api import health, auth, reviews, dashboard, ai, reference, live


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the runtime on startup and tear it down on shutdown.

    A configuration error does not stop the process: it is kept on
    ``app.state.config_error`` and every store-backed route answers with it.
    """
    logger.info("Starting up Strain Tracker API")
    app.state.runtime = None
    app.state.config_error = None

    try:
        app.state.runtime = await build_runtime(settings)
    except ConfigurationException as e:
        logger.error(
            f"Backend configuration error: {e.message}",
            extra={"details": e.details},
        )
        app.state.config_error = e

    yield

    logger.info("Shutting down Strain Tracker API")
    if app.state.runtime is not None:
        await shutdown_runtime(app.state.runtime)
    logger.info("Runtime closed")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Private strain reviews, community favourites, and AI notes",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(RequestIdMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(code: ErrorCode, message: str, details=None) -> JSONResponse:
    error_response = ErrorResponse(
        request_id=get_request_id(),
        error=ErrorDetail(code=code, message=message, details=details or None),
    )
    return JSONResponse(
        status_code=ERROR_CODE_TO_HTTP_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content=error_response.model_dump(by_alias=True, exclude_none=True),
    )


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """
    Handle all custom application exceptions.
    """
    logger.warning(
        f"Application exception: {exc.error_code.value}",
        extra={
            "request_id": get_request_id(),
            "error_code": exc.error_code.value,
            "error_message": exc.message,
            "details": exc.details,
        },
    )
    return _error_response(exc.error_code, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle Pydantic validation errors (422).
    """
    error_details = {
        "validation_errors": [
            {
                "field": ".".join(str(loc) for loc in err["loc"]),
                "message": err["msg"],
                "type": err["type"],
            }
            for err in exc.errors()
        ]
    }

    logger.warning(
        "Validation error",
        extra={"request_id": get_request_id(), "errors": error_details},
    )
    return _error_response(ErrorCode.INVALID_ARGUMENT, "Request validation failed", error_details)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Handle all uncaught exceptions so the server never crashes.
    """
    logger.error(
        f"Uncaught exception: {str(exc)}",
        extra={"request_id": get_request_id(), "exception_type": type(exc).__name__},
        exc_info=True,
    )
    return _error_response(
        ErrorCode.INTERNAL,
        "Internal server error",
        {"error": str(exc)} if settings.DEBUG else None,
    )


app.include_router(health.router)
app.include_router(auth.router)
app.include_router(reviews.router)
app.include_router(dashboard.router)
app.include_router(ai.router)
app.include_router(reference.router)
app.include_router(live.router)


@app.get("/", include_in_schema=False)
async def root():
    """Service info."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
    }
