"""Exception handlers rendering KeeperException and store failures as JSON."""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from ..exceptions import KeeperException

logger = logging.getLogger(__name__)


async def keeper_exception_handler(request: Request, exc: KeeperException) -> JSONResponse:
    """Render a KeeperException as ``{"error", "message", "details"}``.

    Client errors (4xx) are logged at INFO, store failures at ERROR, so
    expected denials do not drown real outages.
    """
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(
        level,
        "%s: %s", exc.error_code.value, exc.message,
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code,
        },
    )

    headers = {"Retry-After": "5"} if exc.status_code == 503 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers,
    )
