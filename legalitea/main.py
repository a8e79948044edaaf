# main.py
import asyncio
import contextlib
import logging
import time
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from legalitea import __version__
from legalitea.config import Settings
from legalitea.errors import LegaliTeaError, RateLimitExceededError
from legalitea.logging_utils import configure_logging
from legalitea.middleware import install_middleware
from legalitea.routers import analysis_router, document_router, health_router
from legalitea.schemas import describe_validation_error
from legalitea.services.ai_service import AIService
from legalitea.services.rate_limiter import RateLimiter, run_periodic_cleanup
from legalitea.services.storage import create_store

logger = logging.getLogger(__name__)


# --- Error Handlers ---
def _error_body(message: str, details: Optional[list] = None, stack: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": message}
    if details:
        body["details"] = details
    if stack:
        body["stack"] = stack
    return body


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(LegaliTeaError)
    async def handle_legalitea_error(request: Request, exc: LegaliTeaError):
        body = _error_body(exc.message, exc.details)
        headers = None
        if isinstance(exc, RateLimitExceededError):
            body["retryAfter"] = exc.retry_after
            headers = {"Retry-After": str(exc.retry_after)}
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=body, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        messages = []
        for error in exc.errors():
            message = describe_validation_error(error)
            if message not in messages:
                messages.append(message)
        return JSONResponse(
            status_code=400,
            content=_error_body(messages[0] if messages else "Validation failed", messages),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = str(exc) or "Internal server error"
        if settings.is_production:
            message = "Internal server error"
        stack = None
        if settings.is_development:
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(status_code=500, content=_error_body(message, stack=stack))


# --- Application Factory ---
def create_app(
    settings: Optional[Settings] = None,
    *,
    ai_service: Optional[AIService] = None,
    store: Any = None,
) -> FastAPI:
    """Wire services, middleware and routers into a FastAPI application."""

    settings = settings or Settings.from_env()

    request_limiter = None
    if settings.rate_limit_max > 0:
        request_limiter = RateLimiter(settings.rate_limit_max, settings.rate_limit_window_seconds)
    save_limiter = RateLimiter(settings.save_rate_limit_max, settings.save_rate_limit_window_seconds)
    limiters = [limiter for limiter in (request_limiter, save_limiter) if limiter is not None]

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("LegaliTea API starting (environment: %s)", settings.environment)
        logger.info("Gemini API configured: %s", "Yes" if app.state.ai_service.configured else "No")
        if app.state.store is None:
            app.state.store = await asyncio.to_thread(create_store, settings)
        cleanup_task = asyncio.create_task(
            run_periodic_cleanup(limiters, settings.rate_limit_cleanup_seconds), name="rate-limit-cleanup"
        )
        try:
            yield
        finally:
            cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await cleanup_task

    app = FastAPI(title="LegaliTea API", version=__version__, lifespan=lifespan)

    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.ai_service = ai_service or AIService(
        settings.gemini_api_key,
        settings.gemini_model,
        fallback_enabled=settings.fallback_enabled,
    )
    # Created in lifespan when not injected
    app.state.store = store
    app.state.request_limiter = request_limiter
    app.state.save_limiter = save_limiter

    register_exception_handlers(app, settings)
    install_middleware(app, settings, request_limiter)

    # --- CORS Middleware ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router.router)
    app.include_router(analysis_router.router)
    app.include_router(document_router.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
