"""Application factory for the import API."""

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from starlette.middleware.cors import CORSMiddleware

from app.api.v1 import api_router
from app.config import settings
from app.database import close_db
from app.exceptions import create_exception_handlers
from app.middleware.auth import AuthMiddleware

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])


@health_router.get("/health")
async def health_check():
    """Liveness check; needs no token."""
    return {"status": "healthy", "app": settings.app_name, "env": settings.app_env}


def configure_logging() -> int:
    """Configure root logging once; development always logs at DEBUG."""
    level = logging.DEBUG if settings.is_development else getattr(logging, settings.app_log_level)
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    return level


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} import API ({settings.app_env})")
    yield
    await close_db()
    logger.info(f"Stopped {settings.app_name} import API")


def create_app() -> FastAPI:
    """Build the import API with middleware, error envelopes and routes."""
    level = configure_logging()
    logger.debug(f"Log level {logging.getLevelName(level)}")

    docs_enabled = settings.app_debug
    app = FastAPI(
        title=f"{settings.app_name} Data Import",
        description="CSV import of students, guardians, contacts, medical conditions, staff and attendance",
        version="1.0.0",
        docs_url="/api/docs" if docs_enabled else None,
        redoc_url="/api/redoc" if docs_enabled else None,
        openapi_url="/api/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(AuthMiddleware)

    for exc_class, handler in create_exception_handlers().items():
        app.add_exception_handler(exc_class, handler)

    app.include_router(health_router)
    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()


def main():
    """Run the API under uvicorn."""
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.app_log_level.lower(),
    )


if __name__ == "__main__":
    main()
