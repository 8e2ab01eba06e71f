from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from homeshelf.api.main import api_router
from homeshelf.services.jellyfin.service import get_jellyfin_service
from homeshelf.services.tvdb.service import get_tvdb_service

from .config import settings
from .version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events (startup/shutdown).
    """
    yield
    for name, service in (("TVDB", get_tvdb_service()), ("Jellyfin", get_jellyfin_service())):
        try:
            await service.close()
            logger.info(f"{name} HTTP client closed")
        except Exception as exc:
            logger.warning(f"Failed to close {name} HTTP client: {exc}")


app = FastAPI(
    title="Homeshelf",
    description="New and Popular / Top picks home rows for Jellyfin",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if settings.APP_ENV != "development" else "/docs",
    redoc_url=None if settings.APP_ENV != "development" else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
