# workshop_app/web/middleware_logging.py
from __future__ import annotations
import logging, time, uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

log = logging.getLogger("http")


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        start = time.perf_counter()
        method = request.scope.get("method")
        path = request.scope.get("path")
        client = request.scope.get("client")
        addr = f"{client[0]}:{client[1]}" if client else "?:?"

        log.info("http_request %s %s from %s", method, path, addr, extra={"rid": rid})

        # request id for handlers and error responses
        request.state.request_id = rid

        try:
            response: Response = await call_next(request)
        except Exception:
            elapsed = (time.perf_counter() - start) * 1000
            log.exception("http_error %s %s ms=%.2f", method, path, elapsed, extra={"rid": rid})
            raise

        elapsed = (time.perf_counter() - start) * 1000
        log.info(
            "http_response %s %s status=%s ms=%.2f", method, path, response.status_code, elapsed,
            extra={"rid": rid},
        )
        response.headers["x-request-id"] = rid
        return response
