import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from dal.gateway import GenerationRequestGateway
from dal.generation_request_dal import GenerationRequestDAL
from dal.memory_dal import InMemoryGenerationRequestDAL
from routes.health_route import router as health_router
from routes.internal_route import router as internal_router
from routes.request_route import router as request_router
from services.generation_request_service import GenerationRequestService
from services.processor_client import ProcessorClient
from services.upload_store import UploadStore
from utils.config import Settings, get_settings
from utils.database_init import AsyncDatabaseInitializer
from utils.exceptions import GenerationRequestError, NotFoundError, StorageUnavailableError
from utils.logging_config import configure_logging

LOGGER = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _build_lifespan(
    settings: Settings,
    gateway: Optional[GenerationRequestGateway],
    processor: Optional[ProcessorClient],
):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan manager to initialize:
          - the persistence gateway (SQLite at DATABASE_DIR/app.db, or in-memory)
          - the processor client
          - the request service and upload store
        and attach them to `app.state`.
        """
        settings.upload_dir.mkdir(parents=True, exist_ok=True)
        settings.output_dir.mkdir(parents=True, exist_ok=True)

        store = gateway
        if store is None:
            if settings.storage_backend == "memory":
                store = InMemoryGenerationRequestDAL()
            else:
                db_initializer = AsyncDatabaseInitializer(settings.database_dir)
                await db_initializer.ensure_database()
                app.state.db_initializer = db_initializer
                store = GenerationRequestDAL(db_initializer)

        client = processor or ProcessorClient(
            settings.processor_service_url, settings.processor_timeout_seconds
        )
        service = GenerationRequestService(store, client)

        app.state.settings = settings
        app.state.upload_store = UploadStore(settings.upload_dir)
        app.state.request_service = service
        LOGGER.info("Generation backend started with %s storage", settings.storage_backend)

        try:
            yield
        finally:
            await service.drain()
            await client.aclose()

    return lifespan


async def _domain_error_handler(request: Request, exc: GenerationRequestError) -> JSONResponse:
    LOGGER.warning("%s on %s %s: %s", exc.__class__.__name__, request.method, request.url.path, exc.message)
    if isinstance(exc, StorageUnavailableError):
        content = {"error": "Database error occurred", "timestamp": _timestamp()}
    elif isinstance(exc, NotFoundError):
        content = {"error": exc.message, "timestamp": _timestamp()}
    else:
        content = {"error": exc.message, "details": exc.details, "timestamp": _timestamp()}
    return JSONResponse(status_code=exc.status_code, content=content)


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[GenerationRequestGateway] = None,
    processor: Optional[ProcessorClient] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    `gateway` and `processor` override the ones built from settings.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Paint-by-Numbers Generation API",
        lifespan=_build_lifespan(settings, gateway, processor),
    )
    app.state.settings = settings

    app.add_exception_handler(GenerationRequestError, _domain_error_handler)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
        content = {"error": "Internal server error", "timestamp": _timestamp()}
        if settings.is_development:
            content["message"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    # Result archives written by the processor, served for download
    app.mount(
        "/api/outputs",
        StaticFiles(directory=str(settings.output_dir), check_dir=False),
        name="outputs",
    )

    app.include_router(request_router)
    app.include_router(internal_router)
    app.include_router(health_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    runtime_settings = get_settings()
    configure_logging(runtime_settings)
    uvicorn.run(create_app(runtime_settings), host="0.0.0.0", port=int(os.getenv("PORT", "3000")), log_config=None)
