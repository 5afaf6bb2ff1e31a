from fastapi import APIRouter

from backend.api.routes.health import router as health_router
from backend.api.routes.weather_routes import router as weather_router

# ============================================================================
# API - Endpoints
# ============================================================================

# Criar router principal
api_router = APIRouter()

# Health checks (2 endpoints)
api_router.include_router(health_router)

# Weather forecast, cache and farming alerts (5 endpoints)
api_router.include_router(weather_router)
