"""
Middleware Package

- error_handler: correlation IDs, exception handlers and the catch-all
  error middleware

USAGE EXAMPLE:
--------------
    from fastapi import FastAPI
    from opsguard.application.api.middleware import add_error_handling

    app = FastAPI()
    add_error_handling(app, verbose=True)
"""

from .error_handler import (
    CorrelationIdMiddleware,
    ErrorHandlingMiddleware,
    add_error_handling,
    error_response,
    register_exception_handlers,
)

__all__ = [
    "CorrelationIdMiddleware",
    "ErrorHandlingMiddleware",
    "add_error_handling",
    "error_response",
    "register_exception_handlers",
]
