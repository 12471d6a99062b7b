"""
HTTP middleware.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.status import HTTP_413_REQUEST_ENTITY_TOO_LARGE

logger = logging.getLogger(__name__)

BODY_METHODS = {"POST", "PATCH", "PUT"}


class BodyLimitMiddleware(BaseHTTPMiddleware):
    """Reject request bodies larger than ``max_bytes``."""

    def __init__(self, app, max_bytes: int = 1024 * 1024) -> None:
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next):
        if request.method in BODY_METHODS:
            declared = request.headers.get("content-length")
            if declared is not None and declared.isdigit():
                size = int(declared)
            else:
                size = len(await request.body())

            if size > self.max_bytes:
                logger.warning(f"Rejected {request.method} {request.url.path}: body of {size} bytes")
                return JSONResponse(
                    {"success": False, "error": "Requête trop volumineuse"},
                    status_code=HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                )
        return await call_next(request)
