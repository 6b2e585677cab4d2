"""Exception handlers that turn domain and request errors into JSON bodies.

Every error body has the same shape: ``{"error", "message", "details"}``.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..exceptions import DeepVestError, ErrorCode

logger = logging.getLogger(__name__)


async def deepvest_exception_handler(request: Request, exc: DeepVestError) -> JSONResponse:
    """Render a DeepVestError.

    Client errors are logged at warning level, server and upstream errors
    at error level.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"DeepVestError: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters answer 400 with the field errors."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method, "errors": len(errors)},
    )
    message = errors[0]["message"] if errors else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={
            "error": ErrorCode.VALIDATION_ERROR.value,
            "message": message,
            "details": {"errors": errors},
        },
    )
