"""
Custom middleware for the FastAPI application.
"""
import uuid
import time
from typing import Callable, Optional
from contextvars import ContextVar
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from strain_tracker.core.logging import logger

# Request id for the request currently being served
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Tags each HTTP request with a UUID.

    The id is bound to ``request_id_var`` for log correlation, exposed on
    ``request.state.request_id``, echoed back in the ``X-Request-Id``
    response header and carried in every error envelope.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        token = request_id_var.set(request_id)
        request.state.request_id = request_id
        started = time.perf_counter()

        logger.info(
            "Incoming request",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client": request.client.host if request.client else None,
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request failed with exception: {str(e)}",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                },
                exc_info=True,
            )
            raise
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-Id"] = request_id

        logger.info(
            "Request completed",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "latency_seconds": round(time.perf_counter() - started, 4),
            },
        )

        return response


def get_request_id() -> str:
    """
    Current request id, or a fresh UUID outside of a request.
    """
    request_id = request_id_var.get()
    if request_id is None:
        return str(uuid.uuid4())
    return request_id
