from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from digitalme.api.main import api_router
from digitalme.services.redis_service import redis_service

from .config import settings
from .version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events (startup/shutdown).
    """
    logger.info(f"Starting {settings.APP_NAME} v{__version__} ({settings.APP_ENV})")
    yield
    await redis_service.close()


app = FastAPI(
    title=settings.APP_NAME,
    description="Style profile service: multi-source merging and conversational refinement",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if settings.APP_ENV == "production" else "/docs",
    redoc_url=None if settings.APP_ENV == "production" else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
