"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from game_catalog.config import Settings, settings as default_settings
from game_catalog.database import build_engine, build_session_factory
from game_catalog.errors import CatalogError, PayloadTooLargeError
from game_catalog.schemas.common import ErrorResponse
from game_catalog.models import Base
from game_catalog.routes.games import router as games_router
from game_catalog.services.blob_store import BlobStore
from game_catalog.services.catalog_store import CatalogStore
from game_catalog.services.game_files import GameFileService

logger = logging.getLogger(__name__)

# Error kind -> HTTP status. Anything unlisted is a 500.
KIND_STATUS = {
    "validation": 400,
    "missing_file": 400,
    "not_found": 404,
    "payload_too_large": 413,
    "storage_write": 500,
    "internal": 500,
}


# Room for multipart boundaries and the metadata fields around the file
MULTIPART_ALLOWANCE = 64 * 1024

UPLOAD_PATH = "/api/games/upload"


def _error_response(kind: str, message: str, status_code: int | None = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code or KIND_STATUS.get(kind, 500),
        content=ErrorResponse(error=message, kind=kind).model_dump(),
        headers=headers,
    )


async def catalog_error_handler(request: Request, exc: CatalogError):
    return _error_response(exc.kind, exc.message)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Framework errors (unknown routes, 405s, missing static files) in the same shape."""
    kind = {400: "validation", 404: "not_found", 413: "payload_too_large"}.get(exc.status_code, "http")
    return _error_response(kind, str(exc.detail), status_code=exc.status_code, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        err = errors[0]
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        message = f"{field}: {err.get('msg')}" if field else str(err.get("msg"))
    else:
        message = "Invalid request"
    return _error_response("validation", message)


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return _error_response("internal", str(exc))


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response("internal", str(exc))


def upload_size_guard(max_bytes: int):
    """Reject uploads whose declared length is over the limit before the body is read."""

    async def guard(request: Request, call_next):
        if request.method == "POST" and request.url.path == UPLOAD_PATH:
            length = request.headers.get("content-length", "")
            if length.isdigit() and int(length) > max_bytes + MULTIPART_ALLOWANCE:
                exc = PayloadTooLargeError(
                    f"File exceeds the maximum upload size of {max_bytes} bytes"
                )
                return _error_response(exc.kind, exc.message)
        return await call_next(request)

    return guard


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup, dispose the engine on shutdown."""
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database ready, storing files under %s", app.state.blob_store.root)

    yield

    await app.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application and every shared resource from ``settings``."""
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Game Catalog API",
        version="1.0.0",
        description="Catalog of games with downloadable files.",
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    session_factory = build_session_factory(engine)
    blob_store = BlobStore(settings.FILE_STORAGE_PATH, settings.MAX_UPLOAD_BYTES)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.blob_store = blob_store
    app.state.game_files = GameFileService(blob_store, CatalogStore(session_factory))

    app.middleware("http")(upload_size_guard(settings.MAX_UPLOAD_BYTES))

    # CORS
    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    @app.get("/api/health")
    async def health_check():
        """Verify API and database connectivity."""
        try:
            async with session_factory() as db:
                await db.execute(text("SELECT 1"))
            return {"status": "ok", "database": "connected"}
        except Exception as e:
            return {"status": "error", "database": str(e)}

    app.include_router(games_router)

    # Legacy direct access to stored blobs by storage name
    app.mount("/downloads", StaticFiles(directory=blob_store.root), name="downloads")

    return app

