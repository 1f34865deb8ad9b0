"""API process entrypoint.

To run:
    python -m src.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.routes import router
from src.app import App, create_app
from src.config.logging import configure_logging
from src.config.settings import load_settings
from src.db.registry import DatabaseExistsError, DatabaseNotFoundError
from src.sql.builder import SQLBuilderError
from src.sql.identifiers import InvalidIdentifierError

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "Invalid request: " + "; ".join(parts)


def register_exception_handlers(api: FastAPI) -> None:
    """Map domain errors onto HTTP responses with a `{"error": ...}` body."""

    @api.exception_handler(StarletteHTTPException)
    async def http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail
        if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
            message = "Endpoint not found"
        return _error(exc.status_code, str(message))

    @api.exception_handler(RequestValidationError)
    async def validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    @api.exception_handler(InvalidIdentifierError)
    async def invalid_identifier(_request: Request, exc: InvalidIdentifierError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @api.exception_handler(SQLBuilderError)
    async def builder_error(_request: Request, exc: SQLBuilderError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @api.exception_handler(DatabaseNotFoundError)
    async def database_not_found(_request: Request, exc: DatabaseNotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "Database not found")

    @api.exception_handler(DatabaseExistsError)
    async def database_exists(_request: Request, exc: DatabaseExistsError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, "Database already exists")

    @api.exception_handler(Exception)
    async def unhandled(_request: Request, _exc: Exception) -> JSONResponse:
        # Handler boundary: never leak internals to the client.
        logger.exception("request failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_api(app: App) -> FastAPI:
    """Build the FastAPI instance around an application container.

    The container is opened on startup and closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(_api: FastAPI) -> AsyncIterator[None]:
        app.open()
        try:
            yield
        finally:
            logger.info("shutting down")
            app.close()

    api = FastAPI(title="Text-to-SQL API", lifespan=lifespan)
    api.state.container = app

    api.add_middleware(
        CORSMiddleware,
        allow_origins=app.settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(api)
    api.include_router(router)
    return api


def main() -> None:
    """Run the HTTP API with uvicorn."""

    load_dotenv(".env")
    settings = load_settings()
    configure_logging(settings.log_level)

    app = create_app(settings)
    api = create_api(app)

    logger.info(
        "starting api host=%s port=%d databases_dir=%s",
        settings.host,
        settings.port,
        settings.databases_dir,
    )
    uvicorn.run(api, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
