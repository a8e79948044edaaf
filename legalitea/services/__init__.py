from legalitea.services.ai_service import AIService
from legalitea.services.rate_limiter import RateLimiter
from legalitea.services.storage import InMemoryAnalysisStore, RedisAnalysisStore, create_store

__all__ = ["AIService", "RateLimiter", "InMemoryAnalysisStore", "RedisAnalysisStore", "create_store"]
