from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlmodel import SQLModel

from app import dependencies
from app.logging_config import configure_logging
from app.models import document, job, social  # noqa: F401  (table registration)
from app.routers import documents, health, jobs, posts, websocket, workers
from app.services.queue_service import RedisJobQueue

configure_logging()
logger = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    SQLModel.metadata.create_all(dependencies.engine)
    app.state.queue = await RedisJobQueue().connect()
    logger.info("Queue connected", pending_key=app.state.queue.pending_key)
    try:
        yield
    finally:
        await app.state.queue.close()
        logger.info("Queue closed")

app = FastAPI(title="Content Jobs", lifespan=lifespan)

app.include_router(workers.router, prefix="/api")
app.include_router(jobs.router, prefix="/api")
app.include_router(documents.router, prefix="/api")
app.include_router(posts.router, prefix="/api")
app.include_router(health.router, prefix="/api")
app.include_router(websocket.router)
