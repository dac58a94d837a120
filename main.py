import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette import status as status_codes
from starlette.concurrency import run_in_threadpool
from starlette.responses import RedirectResponse

from keitruckhub.assets import URL_PREFIX, AssetStore
from keitruckhub.config import Settings, settings as default_settings
from keitruckhub.database import build_engine
from keitruckhub.errors import CatalogError, StorageError
from keitruckhub.logging_config import setup_logging
from keitruckhub.routers.models import router as models_router
from keitruckhub.seed import seed_catalog_if_empty
from keitruckhub.store import RecordStore, SqlRecordStore

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    assets: Optional[AssetStore] = None,
) -> FastAPI:
    """Build the catalog API.

    ``store`` and ``assets`` default to the SQL store and the upload
    directory from ``settings``; tests pass their own.
    """
    settings = settings or default_settings
    setup_logging(settings.log_level, settings.log_file)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.assets.ensure_dir()
        await run_in_threadpool(app.state.store.initialize)
        if settings.seed_catalog:
            await run_in_threadpool(seed_catalog_if_empty, app.state.store)
        logger.info("%s ready", settings.project_name)
        yield

    app = FastAPI(title=settings.project_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store or SqlRecordStore(build_engine(settings.database_url))
    app.state.assets = assets or AssetStore(settings.upload_dir)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # The directory is created at startup, not at import
    app.mount(
        URL_PREFIX,
        StaticFiles(directory=app.state.assets.upload_dir, check_dir=False),
        name="uploads",
    )
    app.include_router(models_router)

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        if isinstance(exc, StorageError):
            logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status_codes.HTTP_500_INTERNAL_SERVER_ERROR,
            content=StorageError().to_body(),
        )

    @app.get("/", include_in_schema=False)
    def redirect_to_list():
        return RedirectResponse(
            url=models_router.url_path_for("list_models"),
            status_code=status_codes.HTTP_302_FOUND,
        )

    @app.get("/status")
    async def status(request: Request):
        count = await run_in_threadpool(request.app.state.store.count)
        return {"status": "ok", "models": count}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host=default_settings.host, port=default_settings.port)
