from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from otp_packager.api.endpoints import health, package
from otp_packager.api.middleware.error_shaping import SafeErrorMiddleware
from otp_packager.core.errors import PackagingError

log = logging.getLogger("otppkg.errors")

app = FastAPI(
    title="OTP Packager API",
    version="0.1.0",
)

app.add_middleware(SafeErrorMiddleware)


@app.exception_handler(PackagingError)
async def packaging_error_handler(request: Request, exc: PackagingError):
    log.warning("Packaging failed: %s path=%s", exc, request.url.path)
    return JSONResponse(status_code=422, content=exc.to_dict())


app.include_router(health.router)
app.include_router(package.router)
