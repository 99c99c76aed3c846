import contextlib
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from . import rpc
from .config import Settings
from .database import Database
from .domain import AuthError, JournalError
from .logs import setup_logging
from .models import HealthResponse, MessageResponse, describe_errors
from .routes import auth_router, entries_router
from .services import AuthService, Journal
from .stores import JsonFileEntryStore, MemoryEntryStore, SQLiteEntryStore
from .utils import time_now

VERSION = "1.0.0"


def build_store(settings: Settings, database: Database):
    if settings.store_backend == "json":
        return JsonFileEntryStore(settings.json_path)
    if settings.store_backend == "memory":
        return MemoryEntryStore()
    return SQLiteEntryStore(database)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    purged = app.state.auth.purge_expired()
    logger.info(
        "Journal API starting up (store: {}, database: {}, expired sessions purged: {})",
        settings.store_backend, settings.database_path, purged,
    )
    yield
    logger.info("Journal API shutting down")


async def journal_error_handler(request: Request, exc: JournalError):
    if exc.status_code >= 500:
        logger.opt(exception=exc).error("{} {} failed", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)}, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": describe_errors(exc.errors())})


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Wire the store, auth service and routes for one application instance."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    database = Database(settings.database_path)
    database.migrate()
    auth = AuthService(database, settings.session_ttl, settings.min_password_length)

    app = FastAPI(
        title="Journal API",
        description="A personal journal with per-account entries and session authentication",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.auth = auth
    app.state.journal = Journal(build_store(settings, database), auth)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(JournalError, journal_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.include_router(auth_router)
    app.include_router(entries_router)
    app.include_router(rpc.router)

    @app.get("/", response_model=MessageResponse)
    def read_root():
        return MessageResponse(message="Journal API is running")

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        return HealthResponse(status="healthy", timestamp=time_now(), store_backend=settings.store_backend)

    return app


def run() -> None:
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
