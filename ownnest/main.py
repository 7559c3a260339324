from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ownnest import __version__
from ownnest.core.config import Settings, get_settings
from ownnest.core.container import ApplicationContainer, build_container
from ownnest.core.logging import configure_logging
from ownnest.infrastructure.database import dispose_engine, init_db
from ownnest.interfaces.http import create_api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    configure_logging(settings)
    if app.state.container is not None:
        yield
        return

    await init_db()
    container = build_container(settings)
    app.state.container = container
    try:
        await container.orchestrator.recover()
        yield
    finally:
        await container.aclose()
        await dispose_engine()
        app.state.container = None


def create_app(settings: Optional[Settings] = None, container: Optional[ApplicationContainer] = None) -> FastAPI:
    settings = settings or (container.settings if container else get_settings())
    app = FastAPI(
        title=settings.project_name,
        description="Design registry with on-chain tokenization",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    # A supplied container is owned by the caller and survives the lifespan.
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_api_router(settings.api_prefix))
    return app
