"""
Application factory.

    uvicorn catalog.main:app
    catalog-api                 # console script, same thing
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from catalog.api.v1.error_handlers import register_exception_handlers
from catalog.api.v1.products import router as product_router
from catalog.config import Settings, get_settings
from catalog.core.logging import RequestIDMiddleware, setup_logging
from catalog.database.session import dispose_engine, init_models
from catalog.utils.project import get_project_name, get_project_version

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings)
        if settings.DB_CREATE_ALL:
            await init_models()
        logger.info("app.startup", extra={"env": settings.ENV, "version": get_project_version()})
        try:
            yield
        finally:
            await dispose_engine()
            logger.info("app.shutdown")

    app = FastAPI(
        title=get_project_name(),
        version=get_project_version(),
        lifespan=lifespan,
    )
    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)
    app.include_router(product_router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("catalog.main:app", host="0.0.0.0", port=8000)
