from __future__ import annotations

import logging
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

log = logging.getLogger("otppkg.errors")


def new_error_id() -> str:
    return uuid.uuid4().hex[:12]


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """Turns anything a packaging route did not anticipate into an opaque 500.

    The traceback stays in the server log under an ``error_id`` that is also
    returned to the caller, so a failed build can be matched to its log entry.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception:
            error_id = new_error_id()
            log.exception("Unhandled error error_id=%s %s %s", error_id, request.method, request.url.path)
            return JSONResponse(
                status_code=500,
                content={"error": "internal_error", "detail": "Internal Server Error", "error_id": error_id},
            )
