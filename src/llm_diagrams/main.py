"""FastAPI entrypoint."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded

from llm_diagrams.config import Settings, get_settings, validate_settings_for_env
from llm_diagrams.diagrams.render import Renderer
from llm_diagrams.diagrams.service import build_diagram_service
from llm_diagrams.logging import configure_logging
from llm_diagrams.providers.base import MessageClient
from llm_diagrams.providers.factory import build_message_client
from llm_diagrams.routes.health import router as health_router
from llm_diagrams.routes.web import limiter
from llm_diagrams.routes.web import router as web_router

logger = logging.getLogger(__name__)


async def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> PlainTextResponse:
    del request
    return PlainTextResponse(f"rate limit exceeded: {exc.detail}", status_code=429)


def create_app(
    settings: Settings | None = None,
    *,
    client: MessageClient | None = None,
    renderer: Renderer | None = None,
) -> FastAPI:
    """Build the app; ``client`` and ``renderer`` replace the real collaborators."""
    settings = settings or get_settings()
    if client is None and settings.anthropic_api_key.strip():
        client = build_message_client(settings)
    if client is None:
        # generation requests fail with ConfigError until the key is set
        logger.warning("ANTHROPIC_API_KEY is not set; diagram generation is disabled")
    service = build_diagram_service(settings, client, renderer=renderer)
    work_dir = service.pipeline.ensure_work_dir()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        validate_settings_for_env(settings)
        configure_logging(settings.log_level)
        logger.info("Serving rendered diagrams from %s", work_dir.resolve())
        yield
        if client is not None:
            await client.aclose()

    app = FastAPI(title="LLM Diagrams", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.diagram_service = service
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)
    app.include_router(health_router)
    app.include_router(web_router)
    app.mount(
        service.pipeline.url_prefix,
        StaticFiles(directory=str(work_dir)),
        name="diagrams",
    )
    return app
