from legalitea.routers import analysis_router, document_router, health_router

__all__ = ["analysis_router", "document_router", "health_router"]
