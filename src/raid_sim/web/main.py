from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from raid_sim.web.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Raid campaign API starting")
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Raid Campaign Engine", lifespan=lifespan)
    app.include_router(api_router)
    return app


app = create_app()
