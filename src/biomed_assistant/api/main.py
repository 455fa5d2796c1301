"""FastAPI application."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from biomed_assistant import __version__
from biomed_assistant.config import Settings, get_settings
from biomed_assistant.data_sources.biomcp import ResultStreamReader, SessionSSEClient
from biomed_assistant.data_sources.pubmed import PubMedClient
from biomed_assistant.helpers.query_helpers import (
    build_context_message,
    inject_context,
    should_enrich,
)
from biomed_assistant.models.model_chat import ChatRequest, ErrorEnvelope
from biomed_assistant.services.enrichment import BioDataOrchestrator
from biomed_assistant.services.llm import ChatForwarder, UpstreamError, build_client
from biomed_assistant.utils.cache import ResultCache
from biomed_assistant.utils.log_config import configure_logging

logger = logging.getLogger(__name__)


def build_orchestrator(settings: Settings, cache: ResultCache) -> BioDataOrchestrator:
    """Wire the tool server clients and the PubMed fallback around *cache*."""
    return BioDataOrchestrator(
        session_client=SessionSSEClient(),
        stream_reader=ResultStreamReader(),
        pubmed_client=PubMedClient(cache, api_key=settings.ncbi_api_key),
        base_url=settings.biomcp_base_url,
    )


def build_forwarder(settings: Settings) -> ChatForwarder:
    return ChatForwarder(
        build_client(settings),
        model=settings.llm_model,
        max_tokens=settings.llm_max_tokens,
    )


def error_response(status: int, error: str, details: str | None = None) -> JSONResponse:
    envelope = ErrorEnvelope(error=error, details=details)
    return JSONResponse(
        status_code=status, content=envelope.model_dump(exclude_none=True)
    )


def create_app(
    settings: Settings | None = None,
    orchestrator: BioDataOrchestrator | None = None,
    forwarder: ChatForwarder | None = None,
) -> FastAPI:
    """Create the app; components not passed in are built at startup."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level, settings.log_file)
        cache = ResultCache()
        sweeper = asyncio.create_task(cache.run_sweeper())
        app.state.cache = cache
        app.state.orchestrator = orchestrator or build_orchestrator(settings, cache)
        app.state.forwarder = forwarder or build_forwarder(settings)
        logger.info("Biomedical assistant API v%s started", __version__)
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            await app.state.orchestrator.close()
            logger.info("Biomedical assistant API stopped")

    app = FastAPI(
        title="Biomedical Assistant API",
        description="Chat relay with PubMed / BioMCP enrichment",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Server error")
        return error_response(500, "Internal server error", str(exc))

    @app.get("/api/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/api/cache/stats")
    async def cache_stats(request: Request) -> dict[str, Any]:
        return request.app.state.cache.stats()

    @app.post("/api/cache/clear")
    async def cache_clear(request: Request) -> dict[str, Any]:
        cleared = request.app.state.cache.clear()
        return {"message": "Cache cleared", "entries_cleared": cleared}

    @app.post("/api/messages")

    async def post_messages(request: Request) -> JSONResponse:
        """Forward a conversation to the chat provider, enriched when relevant."""
        if not settings.anthropic_api_key:
            return error_response(
                500,
                "ANTHROPIC_API_KEY is not configured. Please set it in your .env file.",
            )

        try:
            chat = ChatRequest.model_validate(await request.json())
        except (ValueError, ValidationError) as e:
            return error_response(
                400,
                "Invalid request: messages array is required and must not be empty",
                str(e),
            )

        messages = chat.messages
        if should_enrich(messages):
            query = messages[-1].text
            result = await request.app.state.orchestrator.enrich(query)
            if result is not None:
                logger.info("Enriching query with data from %s", result.source)
                messages = inject_context(
                    messages, build_context_message(result, query)
                )

        try:
            reply = await request.app.state.forwarder.forward(messages)
        except UpstreamError as e:
            return error_response(e.status, str(e), e.body)
        return JSONResponse(content=reply)

    return app


app = create_app()
