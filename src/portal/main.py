from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.portal.api.middlewares import setup_middlewares
from src.portal.api.routes.router import portal_router
from src.portal.clients.backend import BackendClient
from src.portal.core.config import get_settings
from src.portal.core.exceptions import setup_exception_handlers
from src.portal.core.health import setup_health_endpoint, setup_metrics
from src.portal.core.logging import get_logger, setup_logging
from src.portal.core.redis import close_redis

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info(
        f"Starting {settings.app_name}",
        root_domain=settings.root_domain,
        backend=settings.api_base_url,
    )

    # Tests may install a client with a mock transport before startup
    owns_backend = getattr(app.state, "backend", None) is None
    if owns_backend:
        app.state.backend = BackendClient.create(settings)

    yield

    logger.info("Closing connections...")
    if owns_backend:
        await app.state.backend.aclose()
    await close_redis()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "root", "description": "Login, invitations and workspace selection on the root domain"},
    {"name": "workspace", "description": "Workspace dashboard, settings and members"},
    {"name": "projects", "description": "Project tree and project members"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant workspace portal served per subdomain",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.enable_openapi else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.enable_openapi else None,
    )

    setup_exception_handlers(app)
    setup_middlewares(app, settings)
    setup_health_endpoint(app)
    app.include_router(portal_router)
    setup_metrics(app)

    return app


app = create_app()
