"""servicebot - HTTP entry point."""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from servicebot import __version__
from servicebot.api.routes import router
from servicebot.core.config import settings
from servicebot.core.logging import configure_logging, logger
from servicebot.services.engine import ChatEngine, build_engine


def create_app(engine: Optional[ChatEngine] = None) -> FastAPI:
    """Build the FastAPI app; ``engine`` defaults to one wired from settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.logging.level, settings.logging.format)
        logger.info("=" * 60)
        logger.info("servicebot API starting up")
        logger.info(f"LLM endpoint: {settings.llm.base_url or 'default'}")
        logger.info(f"Session backend: {settings.sessions.backend}")
        if getattr(app.state, "engine", None) is None:
            app.state.engine = build_engine()
        logger.info(f"Services: {len(app.state.engine.registry)}")
        logger.info("=" * 60)
        yield
        logger.info("servicebot API shutting down")

    app = FastAPI(
        title="servicebot",
        description="Select an AI service, feed it inputs across turns, run it",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import os

    import uvicorn

    reload = os.getenv("SERVICEBOT_DEV_MODE", "false").lower() == "true"
    uvicorn.run(
        "servicebot.main:app",
        host="0.0.0.0",
        port=int(os.getenv("SERVICEBOT_PORT", "8080")),
        reload=reload,
        log_level="info",
    )
