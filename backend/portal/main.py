from contextlib import asynccontextmanager  # type: ignore[attr-defined]

import structlog
import uvicorn
from fastapi import FastAPI

from portal.api.router import api_router
from portal.core.config import settings
from portal.core.logging import setup_logging
from portal.db.session import engine

setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("portal_startup", project=settings.PROJECT_NAME)
    yield
    await engine.dispose()
    logger.info("portal_shutdown")


app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION, lifespan=lifespan)
app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Application directory is running"}


def run() -> None:
    uvicorn.run("portal.main:app", host=settings.HOST, port=settings.PORT)
