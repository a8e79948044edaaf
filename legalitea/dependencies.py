# dependencies.py
# Request-scoped accessors for the services created in main.create_app
from fastapi import Request

from legalitea.config import Settings
from legalitea.services.ai_service import AIService
from legalitea.services.rate_limiter import RateLimiter


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ai_service(request: Request) -> AIService:
    return request.app.state.ai_service


def get_store(request: Request):
    return request.app.state.store


def get_save_limiter(request: Request) -> RateLimiter:
    return request.app.state.save_limiter
