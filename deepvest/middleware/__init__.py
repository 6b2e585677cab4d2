"""HTTP middleware and exception handlers."""

from .exception_handler import deepvest_exception_handler, validation_exception_handler
from .request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware", "deepvest_exception_handler", "validation_exception_handler"]
