from fastapi import FastAPI
from contextlib import asynccontextmanager
from app.core.config import settings
from app.core.db.base import dispose_engine
from app.core.logging import get_logger, setup_logging
from app.core.rate_limit import RateLimiter
from app.core.task_queue import BackgroundQueue
from app.apis.generations.main import router as generations_router
from app.modules.completions import OpenRouterClient
from app.modules.flashcards.main import FlashcardsGenerator

import uvicorn
from fastapi.middleware.cors import CORSMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # One generator per process; quota state lives in its rate limiter
    bg_queue = BackgroundQueue(concurrency=2)
    app.state.generator = FlashcardsGenerator(
        OpenRouterClient.from_settings(settings.openrouter),
        RateLimiter.from_settings(settings.rate_limit),
        queue=bg_queue,
    )
    bg_queue.start()
    try:
        yield
    finally:
        await bg_queue.stop()
        await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app.name, version=settings.app.version, lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:4321",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(generations_router)

    @app.get("/")
    async def root():
        return {
            "status": "ok",
            "app": settings.app.name,
            "version": settings.app.version,
        }

    return app


app = create_app()


if __name__ == "__main__":
    try:
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.app.port,
            reload=not settings.app.is_production,
        )
    except Exception as e:
        logger.error("Server failed to start: %s", e)
