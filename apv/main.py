from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
import uvicorn

from apv.bootstrap import RequestContext, start_request
from apv.config import Settings, get_settings, settings as default_settings
from apv.core.exceptions import register_exception_handlers
from apv.core.logging import get_logger
from apv.core.middleware import setup_middleware
from apv.db.database import Database, get_database
from apv.templating import TemplateEngine

logger = get_logger("apv.main")

HEALTH_PATH = "/api/v1/health"

pages_router = APIRouter(tags=["Pages"])
api_router = APIRouter(prefix="/api/v1")


@pages_router.get("/", name="index")
def index(request: Request, ctx: RequestContext = Depends(start_request)):
    """
    Application home page, rendered from the bootstrapped template variables.
    """
    return ctx.templates.render(request, "index.html", ctx.tpl_vars)


@api_router.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
def health_check(request: Request, settings: Settings = Depends(get_settings)):
    """
    Health check endpoint.

    Does not go through the page bootstrap, so an unreachable database is
    reported instead of terminating the request.
    """
    database_ok = get_database(request).ping()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "available" if database_ok else "unavailable",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "profile": settings.DEPLOYMENT_PROFILE,
    }


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the FastAPI application for the given settings.

    Args:
        settings: defaults to the environment-driven global settings
        database: pre-built database handle, mainly for tests

    Raises:
        ConfigurationError: unknown deployment profile or malformed DSN
    """
    settings = settings or default_settings
    database = database or Database(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Starting {settings.APP_TITLE} in {settings.ENVIRONMENT} mode",
            version=settings.APP_VERSION,
            profile=settings.DEPLOYMENT_PROFILE,
            session_enabled=settings.session_enabled,
            database=database.safe_url,
        )
        try:
            yield
        finally:
            database.dispose()
            logger.info(f"Shutting down {settings.APP_TITLE}")

    app = FastAPI(
        title=settings.APP_TITLE,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.templates = TemplateEngine(settings.TEMPLATE_DIR)
    app.dependency_overrides[get_settings] = lambda: settings

    setup_middleware(app, settings, exclude_paths=[HEALTH_PATH])
    register_exception_handlers(app)

    app.include_router(pages_router)
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "apv.main:app",
        host=default_settings.API_HOST,
        port=default_settings.API_PORT,
        reload=default_settings.API_RELOAD,
    )
