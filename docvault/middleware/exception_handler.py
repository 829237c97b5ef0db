"""Exception handlers turning service errors into JSON responses.

Every response body has the shape ``{"error", "message", "details"}``.
"""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from ..exceptions import DocVaultException, ErrorCode

logger = logging.getLogger(__name__)


async def docvault_exception_handler(request: Request, exc: DocVaultException) -> JSONResponse:
    """Render a DocVaultException with its own status code.

    Client errors (4xx) are logged at INFO, server errors at ERROR.
    """
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(
        level,
        f"{exc.error_code.value}: {exc.message}",
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
        content=exc.to_dict()
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Opaque 500 for anything the services did not anticipate."""
    logger.exception(
        "Unhandled error",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": ErrorCode.INTERNAL_ERROR.value,
            "message": "Internal server error",
            "details": {},
        },
    )
