# middleware.py
import logging
import time
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from legalitea.config import Settings
from legalitea.services.rate_limiter import RateLimiter, ip_identifier, resolve_client_ip

logger = logging.getLogger("legalitea.requests")


def client_ip(request: Request) -> str:
    peer = request.client.host if request.client else None
    return resolve_client_ip(request.headers, peer)


class BodySizeLimitMiddleware:
    """Answer 413 for request bodies larger than ``max_body_bytes``.

    A declared ``Content-Length`` is checked up front. Bodies without one
    (chunked uploads) are read and counted before the app sees them, then
    replayed to it unchanged.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            if content_length.isdigit() and int(content_length) > self.max_body_bytes:
                await self._reject(scope, receive, send)
                return
            await self.app(scope, receive, send)
            return

        buffered: List[Message] = []
        received = 0
        more_body = True
        while more_body:
            message = await receive()
            buffered.append(message)
            if message["type"] != "http.request":
                break
            received += len(message.get("body", b""))
            if received > self.max_body_bytes:
                await self._reject(scope, receive, send)
                return
            more_body = message.get("more_body", False)

        async def replay() -> Message:
            if buffered:
                return buffered.pop(0)
            return await receive()

        await self.app(scope, replay, send)

    @staticmethod
    async def _reject(scope: Scope, receive: Receive, send: Send) -> None:
        response = JSONResponse(status_code=413, content={"error": "Payload too large"})
        await response(scope, receive, send)


def install_middleware(app: FastAPI, settings: Settings, limiter: Optional[RateLimiter]) -> None:
    """Register rate limiting, body-size and request logging middleware.

    Starlette runs the most recently added middleware first, so requests are
    logged before they can be rejected for size or rate.
    """

    if limiter is not None:

        @app.middleware("http")
        async def rate_limit(request: Request, call_next):
            info = limiter.hit(ip_identifier(client_ip(request)))
            if not info.allowed:
                return JSONResponse(
                    status_code=429,
                    content={
                        "error": "Too many requests",
                        "message": f"Rate limit exceeded. Try again in {info.retry_after} seconds.",
                        "retryAfter": info.retry_after,
                    },
                    headers={"Retry-After": str(info.retry_after)},
                )
            response = await call_next(request)
            response.headers["X-RateLimit-Limit"] = str(info.limit)
            response.headers["X-RateLimit-Remaining"] = str(info.remaining)
            response.headers["X-RateLimit-Reset"] = datetime.fromtimestamp(
                info.reset_time, tz=timezone.utc
            ).isoformat()
            return response

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        logger.info("%s %s", request.method, request.url.path)
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error("%s %s - unhandled error - %.0fms", request.method, request.url.path, duration_ms)
            raise
        duration_ms = (time.perf_counter() - start) * 1000
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level, "%s %s - %d - %.0fms", request.method, request.url.path, response.status_code, duration_ms
        )
        return response
