# workshop_app/web/errors.py
from __future__ import annotations
import logging
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

log = logging.getLogger("errors")


async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = getattr(request.state, "request_id", "-")
    log.error("unhandled_exception path=%s error=%s", request.url.path, exc, exc_info=exc, extra={"rid": rid})
    # no internals in the response, only the request id
    return JSONResponse({"ok": False, "error": "internal_error", "rid": rid}, status_code=500)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = getattr(request.state, "request_id", "-")
    log.warning("validation_error detail=%s", exc.errors(), extra={"rid": rid})
    return JSONResponse(
        {"ok": False, "error": "validation_error", "detail": exc.errors(), "rid": rid},
        status_code=422,
    )
