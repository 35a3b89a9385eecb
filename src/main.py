"""Application factory."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from src.api.routes import router
from src.core.config import Settings, get_settings
from src.core.exceptions import InvalidRequestError, ShootoutError, UnavailableError
from src.core.logging import setup_logging
from src.db.database import init_db

logger = logging.getLogger(__name__)


def _error_response(error: ShootoutError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.kind, "message": error.message},
    )


def shootout_error_handler(request: Request, exc: ShootoutError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc)


def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return _error_response(InvalidRequestError(details or "Invalid request"))


def database_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("Database unavailable while serving %s %s: %s", request.method, request.url.path, exc)
    return _error_response(UnavailableError("Database not reachable"))


def create_app(settings: Optional[Settings] = None, create_tables: bool = True) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if create_tables:
            init_db()
        logger.info("Penalty shootout service ready")
        yield

    app = FastAPI(title="Penalty Shootout", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ShootoutError, shootout_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(OperationalError, database_error_handler)
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    uvicorn.run("src.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
