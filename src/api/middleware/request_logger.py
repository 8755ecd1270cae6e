"""
Request logging middleware

One DEBUG line per request with method, path, status and duration.
Uvicorn's own access log is disabled in APIServerWrapper, so this is the
only access log.
"""

import time

from fastapi import FastAPI, Request

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)


def register_request_logger(app: FastAPI) -> None:
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        log.debug(
            f"{request.method} {request.url.path} → {response.status_code}",
            duration=f"{elapsed_ms:.1f}ms",
        )
        return response
