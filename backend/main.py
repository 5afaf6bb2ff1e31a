from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from backend.api.middleware.error_handler import register_exception_handlers
from backend.api.routes import api_router
from backend.api.services.weather_factory import WeatherServiceFactory
from backend.database.connection import close_db, get_session_maker
from config.logging_config import get_logger, setup_logging
from config.settings import get_settings

# Carregar configurações
settings = get_settings()

# Configurar logging avançado
setup_logging(
    log_level=settings.LOG_LEVEL,
    log_dir=settings.LOG_DIR,
    json_logs=settings.JSON_LOGS,
)
logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Monta os serviços compartilhados no startup e fecha no shutdown."""
    redis = WeatherServiceFactory.create_redis(settings)
    services = WeatherServiceFactory.create_services(
        settings, redis, get_session_maker()
    )
    app.state.services = services
    logger.info(f"🚀 {settings.PROJECT_NAME} API started")

    yield

    await WeatherServiceFactory.close(services)
    await close_db()
    logger.info(f"🛑 {settings.PROJECT_NAME} API stopped")


def create_application() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        lifespan=lifespan,
    )

    # Configurar CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Envelope de erro padronizado
    register_exception_handlers(app)

    # Montar rotas
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # Configurar métricas Prometheus
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    @app.get("/")
    async def root():
        return {
            "message": f"{settings.PROJECT_NAME} API",
            "docs": f"{settings.API_V1_PREFIX}/docs",
            "health": f"{settings.API_V1_PREFIX}/health",
        }

    return app


app = create_application()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG
    )
