"""
Error Handling Middleware
=========================

Turns every failure raised while serving a request into a consistent JSON
body built by ``format_for_transport``:

1. ClassifiedError raised by a route: rendered with its own status
2. Starlette HTTPException (unknown route, wrong method, ...): mapped onto
   the fault taxonomy
3. RequestValidationError (bad body / query): validation error, 400
4. Anything else: caught by ErrorHandlingMiddleware, classified, 500 or
   whatever status the classifier picks

Developer details (message, stack, cause chain) are only included when the
application runs outside production.

MIDDLEWARE ORDER:
-----------------
CorrelationIdMiddleware must be the outermost user middleware so the
correlation ID is bound before anything logs and is echoed on every
response, including error responses.
"""

from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from opsguard.core.config.constants import HEADER_CORRELATION_ID, Stage
from opsguard.core.exceptions import (
    ClassifiedError,
    classify,
    factory,
    format_for_transport,
    generate_correlation_id,
    log_failure,
)
from opsguard.core.logging.logger import (
    correlation_scope,
    get_correlation_id,
    get_logger,
)

logger = get_logger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Bind a correlation ID to the request.

    Reuses the inbound X-Request-ID header when present, otherwise
    generates one. The ID is available to log records through the logging
    context and is echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        inbound = request.headers.get(HEADER_CORRELATION_ID) or generate_correlation_id()

        with correlation_scope(inbound) as correlation_id:
            request.state.correlation_id = correlation_id
            response = await call_next(request)
            response.headers[HEADER_CORRELATION_ID] = correlation_id
            return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Last line of defense for exceptions no handler claimed.

    The failure is classified, logged at its severity and rendered; the
    server never sees an unhandled exception from a route.
    """

    def __init__(self, app, verbose: bool = False):
        """
        Initialize error handling middleware.

        Args:
            app: The ASGI application
            verbose: Include developer details in error bodies
                     (must be False in production)
        """
        super().__init__(app)
        self.verbose = verbose

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return error_response(request, classify(exc), self.verbose)


def error_response(
    request: Request,
    error: ClassifiedError,
    verbose: bool,
    status_code: int | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """
    Log a classified error and render it for the client.

    Args:
        request: Request being served
        error: Classified failure
        verbose: Include developer details
        status_code: Override for the taxonomy status
        headers: Extra response headers
    """
    correlation_id = getattr(request.state, "correlation_id", None) or get_correlation_id()
    error.set_correlation_id(correlation_id)

    log_failure(error, {
        "stage": Stage.BOUNDARY.value,
        "method": request.method,
        "path": request.url.path,
    })

    response_headers = dict(headers or {})
    if error.correlation_id:
        response_headers[HEADER_CORRELATION_ID] = error.correlation_id

    return JSONResponse(
        status_code=status_code or error.status,
        content=jsonable_encoder(format_for_transport(error, verbose)),
        headers=response_headers,
    )


def register_exception_handlers(app: FastAPI, verbose: bool = False) -> None:
    """
    Register handlers for ClassifiedError, HTTPException and request
    validation failures.

    Args:
        app: FastAPI application instance
        verbose: Include developer details in error bodies
    """

    @app.exception_handler(ClassifiedError)
    async def classified_error_handler(request: Request, exc: ClassifiedError):
        return error_response(request, exc, verbose)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # The router only sets "endpoint" once a route matched
        if exc.status_code == 404 and request.scope.get("endpoint") is None:
            error = factory.endpoint_not_found(request.url.path, request.method)
            error.cause = exc
            return error_response(request, error, verbose, headers=exc.headers)

        error = classify(exc, {"endpoint": request.url.path})
        if error.status == exc.status_code:
            return error_response(request, error, verbose, headers=exc.headers)

        # Statuses the taxonomy has no code for keep their HTTP status
        if exc.status_code < 500:
            error = factory.validation(str(exc.detail))
            error.cause = exc
        return error_response(request, error, verbose, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details: list[dict[str, Any]] = jsonable_encoder(exc.errors())
        field = None
        if details:
            loc = [str(part) for part in details[0].get("loc", ()) if part not in ("body", "query", "path")]
            field = ".".join(loc) or None

        error = factory.validation("Request validation failed", field).with_context(errors=details)
        error.cause = exc
        return error_response(request, error, verbose)

    logger.info("Exception handlers registered", stage=Stage.BOUNDARY.value, verbose=verbose)


def add_error_handling(app: FastAPI, verbose: bool = False) -> None:
    """
    Install the whole error boundary on an application.

    Exception handlers first, then ErrorHandlingMiddleware, then
    CorrelationIdMiddleware (added last, so it runs first).

    Args:
        app: FastAPI application instance
        verbose: Include developer details in error bodies
    """
    register_exception_handlers(app, verbose=verbose)
    app.add_middleware(ErrorHandlingMiddleware, verbose=verbose)
    app.add_middleware(CorrelationIdMiddleware)
    logger.info("Error handling middleware registered", stage=Stage.BOUNDARY.value, verbose=verbose)
