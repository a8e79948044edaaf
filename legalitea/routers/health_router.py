import platform
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

from legalitea import __version__
from legalitea.config import Settings
from legalitea.dependencies import get_settings

try:
    import resource
except ImportError:  # Windows
    resource = None

router = APIRouter(prefix="/api/health", tags=["health"])


def _uptime(request: Request) -> float:
    return round(time.monotonic() - request.app.state.started_at, 3)


def _peak_memory_mb() -> Optional[float]:
    if resource is None:
        return None
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS and kilobytes elsewhere
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return round(peak / divisor, 1)


def _base_status(request: Request, settings: Settings) -> Dict[str, Any]:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": _uptime(request),
        "version": __version__,
        "environment": settings.environment,
    }


@router.get("")
async def health_check(request: Request, settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Report liveness and whether Gemini is configured."""
    status = _base_status(request, settings)
    status["geminiConfigured"] = request.app.state.ai_service.configured
    return status


@router.get("/detailed")
async def detailed_health_check(request: Request, settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    status = _base_status(request, settings)
    peak_memory = _peak_memory_mb()
    status["services"] = {
        "geminiAI": request.app.state.ai_service.configured,
        "storage": request.app.state.store.backend,
        "redisConfigured": settings.redis_configured,
        "fallbackEnabled": settings.fallback_enabled,
    }
    status["system"] = {
        "memory": {"peak": f"{peak_memory} MB" if peak_memory is not None else "unavailable"},
        "pythonVersion": platform.python_version(),
        "platform": sys.platform,
        "arch": platform.machine(),
    }
    return status
