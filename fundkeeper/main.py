#!/usr/bin/env python
"""
fundkeeper/main.py

Builds the FastAPI application for FundKeeper, a small backend that stores
each user's saved mutual fund selections.

Key Roles:
 - create_app(settings) wires Settings, Database, CORS and the routers together
 - Domain errors and validation failures are rendered as {"error": "..."}
 - run() serves the app with uvicorn on the configured host/port

Run with:
    uvicorn fundkeeper.main:create_app --factory --port 5000
or
    python -m fundkeeper.main
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from fundkeeper.config import Settings, configure_logging
from fundkeeper.database import Database
from fundkeeper.errors import FundKeeperError
from fundkeeper.routers import fund, user

logger = logging.getLogger(__name__)


# ---------------------------------------------------------
# Error Rendering
# ---------------------------------------------------------
def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def domain_error_handler(request: Request, exc: FundKeeperError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    response = _error(exc.status_code, exc.message)
    if headers:
        response.headers.update(headers)
    return response


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Missing or malformed body fields are a plain 400 with a readable message.
    """
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "Invalid value").removeprefix("Value error, ")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return _error(400, "; ".join(parts) or "Invalid request")


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return _error(500, "Server error")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _error(500, "Server error")


# ---------------------------------------------------------
# Application Factory
# ---------------------------------------------------------
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build a FastAPI app from an explicit Settings object.
    With no argument, Settings are read from the environment / .env file.
    """
    if settings is None:
        settings = Settings.from_env()
    configure_logging(settings.log_level)

    db = Database(settings.database_url)
    db.create_tables()

    if settings.allow_insecure_password_reset:
        logger.warning(
            "ALLOW_INSECURE_PASSWORD_RESET is enabled: /reset-password accepts "
            "unauthenticated requests for any username"
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"FundKeeper backend ready on port {settings.port}")
        yield
        db.dispose()
        logger.debug("Database engine disposed")

    app = FastAPI(
        title="FundKeeper API",
        description="Register, log in, and keep a list of saved mutual funds. Bearer-token auth.",
        version="1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials="*" not in settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(FundKeeperError, domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(user.router)
    app.include_router(fund.router)

    @app.get("/")
    def read_root():
        """
        Basic root path to confirm the API is running.
        """
        return {"message": "FundKeeper backend running"}

    return app


def run(settings: Optional[Settings] = None) -> None:
    """Serve the app with uvicorn on settings.host:settings.port."""
    import uvicorn

    if settings is None:
        settings = Settings.from_env()
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
