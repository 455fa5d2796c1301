"""
Biomedical enrichment for chat turns.

The tool server is tried first under a short budget; if it is slow or
unavailable the direct PubMed lookup runs under its own budget. Every
failure ends in ``None`` so the chat request continues unenriched.
"""

import asyncio
import logging
from collections.abc import Awaitable

from biomed_assistant.constants import (
    BIOMCP_BASE_URL,
    FALLBACK_TIMEOUT,
    PRIMARY_TIMEOUT,
    PUBMED_DEFAULT_MAX_RESULTS,
)
from biomed_assistant.data_sources.base_client import DataSourceError, NoResult
from biomed_assistant.data_sources.biomcp import ResultStreamReader, SessionSSEClient
from biomed_assistant.data_sources.pubmed import PubMedClient
from biomed_assistant.models.model_biomedical import BiomedicalResult, ToolServerResult

logger = logging.getLogger(__name__)


class BioDataOrchestrator:
    """Races the tool server against a timeout, then falls back to PubMed."""

    def __init__(
        self,
        session_client: SessionSSEClient,
        stream_reader: ResultStreamReader,
        pubmed_client: PubMedClient,
        base_url: str = BIOMCP_BASE_URL,
        primary_timeout: float = PRIMARY_TIMEOUT,
        fallback_timeout: float = FALLBACK_TIMEOUT,
        max_results: int = PUBMED_DEFAULT_MAX_RESULTS,
    ) -> None:
        self.session_client = session_client
        self.stream_reader = stream_reader
        self.pubmed_client = pubmed_client
        self.base_url = base_url
        self.primary_timeout = primary_timeout
        self.fallback_timeout = fallback_timeout
        self.max_results = max_results

    async def enrich(self, query: str) -> BiomedicalResult | None:
        """Return biomedical data for *query*, or None. Never raises."""
        result = await self._run_bounded(
            "BioMCP", self._query_tool_server(query), self.primary_timeout
        )
        if result is not None:
            return result

        return await self._run_bounded(
            "PubMed",
            self.pubmed_client.search(query, self.max_results),
            self.fallback_timeout,
        )

    async def _query_tool_server(self, query: str) -> ToolServerResult:
        # the session only lives as long as its handshake stream
        async with self.session_client.session(self.base_url) as session:
            return await self.stream_reader.fetch_tool_result(
                session, query, self.max_results
            )

    async def _run_bounded(
        self, label: str, coro: Awaitable[BiomedicalResult], timeout: float
    ) -> BiomedicalResult | None:
        # wait_for cancels the loser, which closes its stream in a finally block
        try:
            return await asyncio.wait_for(coro, timeout)
        except asyncio.TimeoutError:
            logger.warning("%s lookup timed out after %.1fs", label, timeout)
        except NoResult as e:
            if e.detail is not None:
                logger.warning("%s lookup failed: %s (detail=%r)", label, e, e.detail)
            else:
                logger.warning("%s lookup failed: %s", label, e)
        except DataSourceError as e:
            logger.warning("%s lookup failed: %s", label, e)
        except Exception:
            logger.exception("%s lookup raised unexpectedly; continuing without it", label)
        return None

    async def close(self) -> None:
        await asyncio.gather(
            self.session_client.close(),
            self.stream_reader.close(),
            self.pubmed_client.close(),
        )

