from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.container import ServiceContainer, build_container


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    container: ServiceContainer = app.state.container
    container.start()
    try:
        yield
    finally:
        container.shutdown()


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Sensor Window Aggregator",
        description="Environmental readings with a continuously refreshed rolling summary.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.container = container or build_container()
    app.include_router(router)
    return app


app = create_app()
