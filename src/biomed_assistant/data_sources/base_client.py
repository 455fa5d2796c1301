"""
Base client for all external data source clients.

Provides: aiohttp session lifecycle, a single-attempt JSON GET with
structured logging, and the soft-failure exception hierarchy that the
enrichment layer absorbs.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import aiohttp
from pydantic import BaseModel

logger = logging.getLogger("biomed_assistant.data_sources")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ClientConfig(BaseModel):
    """Session-wide HTTP settings."""

    timeout_seconds: float = 30.0
    connect_timeout_seconds: float = 5.0


# ---------------------------------------------------------------------------
# Request context (for structured logging)
# ---------------------------------------------------------------------------


class RequestContext(BaseModel):
    """Metadata attached to every outgoing request for logging."""

    source: str  # e.g. "biomcp", "pubmed"
    method: str  # e.g. "search", "open_session"
    params: dict[str, Any] = {}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DataSourceError(Exception):
    """Base exception for data source failures."""

    def __init__(self, source: str, message: str, status_code: int | None = None):
        self.source = source
        self.status_code = status_code
        super().__init__(f"[{source}] {message}")


class NoSession(DataSourceError):
    """The tool server did not hand out a session identifier."""

    pass


class NoResult(DataSourceError):
    """A tool call produced no usable result (rejected, errored or timed out).

    ``detail`` holds the tool server's error payload when one was received.
    """

    def __init__(
        self,
        source: str,
        message: str,
        status_code: int | None = None,
        detail: Any = None,
    ):
        super().__init__(source, message, status_code=status_code)
        self.detail = detail


class UpstreamUnavailable(DataSourceError):
    """A direct API call failed at the transport or HTTP level."""

    pass


# ---------------------------------------------------------------------------
# Base client
# ---------------------------------------------------------------------------


class BaseClient(ABC):
    """
    Abstract base for the BioMCP and PubMed clients.

    Subclasses implement `_source_name` and their own typed methods. The
    aiohttp session is created lazily and shared by every request the
    client makes; `close()` (or leaving `async with`) releases it.
    """

    def __init__(self, config: ClientConfig | None = None):
        self.config = config or ClientConfig()
        self._session: aiohttp.ClientSession | None = None

    @property
    @abstractmethod
    def _source_name(self) -> str:
        """Identifier for this data source, e.g. 'pubmed'."""
        ...

    # -- Session management --------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(
                total=self.config.timeout_seconds,
                sock_connect=self.config.connect_timeout_seconds,
            )
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # -- Core request ----------------------------------------------------------

    async def _rest_get(
        self,
        url: str,
        params: dict[str, Any],
        *,
        context: RequestContext | None = None,
    ) -> Any:
        """
        Make one JSON GET request.

        There is no retry: any timeout, connection error or non-2xx status
        raises `UpstreamUnavailable` and the caller decides what to do.
        """
        ctx = context or RequestContext(source=self._source_name, method="unknown")
        start = time.monotonic()
        session = await self._get_session()

        logger.info(
            "Request [%s.%s] url=%s params=%s", ctx.source, ctx.method, url, ctx.params
        )

        try:
            resp = await session.get(url, params=params)
            try:
                if resp.status >= 300:
                    body = await resp.text()
                    raise UpstreamUnavailable(
                        ctx.source,
                        f"HTTP {resp.status}: {body[:500]}",
                        status_code=resp.status,
                    )
                data = await resp.json(content_type=None)
            finally:
                resp.release()
        except asyncio.TimeoutError:
            elapsed = time.monotonic() - start
            logger.warning(
                "Timeout [%s.%s] elapsed=%.1fs", ctx.source, ctx.method, elapsed
            )
            raise UpstreamUnavailable(ctx.source, f"Timeout after {elapsed:.1f}s")
        except aiohttp.ClientError as e:
            logger.warning("Connection error [%s.%s]: %s", ctx.source, ctx.method, e)
            raise UpstreamUnavailable(ctx.source, f"Connection error: {e}") from e
        except ValueError as e:
            raise UpstreamUnavailable(ctx.source, f"Invalid JSON: {e}") from e

        logger.info(
            "Success [%s.%s] elapsed=%.2fs",
            ctx.source,
            ctx.method,
            time.monotonic() - start,
        )
        return data
