"""Middlewares personalizados para SpurChat."""

from __future__ import annotations

import logging
import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from spurchat.core.logging import get_logger, resolve_log_level

logger = get_logger("spurchat.request")


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Registra información básica de cada request entrante."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        level: str | int = "info",
        skip_prefixes: tuple[str, ...] = (),
    ) -> None:
        super().__init__(app)
        self.level = resolve_log_level(level, default=logging.INFO)
        self.skip_prefixes = skip_prefixes

    async def dispatch(self, request: Request, call_next):
        request_id = uuid4().hex
        path = request.url.path
        if any(path.startswith(prefix) for prefix in self.skip_prefixes):
            response = await call_next(request)
            response.headers["x-request-id"] = request_id
            return response

        start = time.perf_counter()
        client_ip = _client_ip(request)

        logger.log(
            self.level,
            "request.started",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": path,
                "client_ip": client_ip,
                "user_agent": request.headers.get("user-agent"),
            },
        )

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                "request.failed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": path,
                    "duration_ms": round(duration_ms, 2),
                    "client_ip": client_ip,
                },
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["x-request-id"] = request_id

        # Los 5xx se registran siempre, aunque el nivel configurado sea alto
        level = logging.ERROR if response.status_code >= 500 else self.level
        logger.log(
            level,
            "request.completed",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
