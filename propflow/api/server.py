"""FastAPI application factory."""

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from propflow import __version__
from propflow.api.config import settings
from propflow.api.rest import router as api_router
from propflow.core.exceptions import PropFlowError
from propflow.runtime.services import get_services


async def propflow_error_handler(request: Request, exc: PropFlowError) -> JSONResponse:
    """Render domain errors with their HTTP-equivalent status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load seed listings before serving requests."""
    if settings.seed_file:
        listings = json.loads(Path(settings.seed_file).read_text())
        count = await get_services().publication.load_listings(listings)
        logger.info(f"Loaded {count} seed listing(s) from {settings.seed_file}")
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="propflow API",
        description="Property search and publication approval API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PropFlowError, propflow_error_handler)  # type: ignore[arg-type]
    app.include_router(api_router)

    return app


app = create_app()
