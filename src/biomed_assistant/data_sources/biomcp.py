"""
BioMCP tool server client.

The server speaks MCP over Server-Sent Events in two stages:
  1. SessionSSEClient.session            — GET /sse, read the session id and
                                            hold the handshake open until the
                                            tool call is done
  2. ResultStreamReader.fetch_tool_result — GET /sse?session_id=..., POST the
                                            tools/call envelope, then read the
                                            result stream until a terminal frame

Every failure surfaces as NoSession / NoResult; the enrichment layer treats
both as "primary path unavailable".
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiohttp

from biomed_assistant.constants import (
    BIOMCP_TOOL_NAME,
    MIN_JSON_PAYLOAD_LENGTH,
    PUBMED_DEFAULT_MAX_RESULTS,
    RESULT_SETTLE_DELAY,
    RESULT_STREAM_TIMEOUT,
    SESSION_CONNECT_TIMEOUT,
    SESSION_MAX_CHUNKS,
    SESSION_READ_TIMEOUT,
    TERMINAL_EVENT_TYPES,
    TERMINAL_PAYLOAD_KEYS,
)
from biomed_assistant.data_sources.base_client import (
    BaseClient,
    ClientConfig,
    NoResult,
    NoSession,
)
from biomed_assistant.data_sources.sse import (
    SSEFrame,
    SSEFrameParser,
    SSELineBuffer,
    extract_session_id,
)
from biomed_assistant.models.model_biomedical import ToolServerResult
from biomed_assistant.models.model_session import Session

logger = logging.getLogger("biomed_assistant.data_sources.biomcp")

SSE_HEADERS = {"Accept": "text/event-stream"}

# Streams stay open far longer than a normal request; only the connect is bounded.
_STREAM_TIMEOUT = aiohttp.ClientTimeout(total=None, sock_connect=SESSION_CONNECT_TIMEOUT)

_CONTROL_ACCEPTED = "Accepted"
_CONTROL_ENDPOINT_MARKER = "/messages/?session_id="


class SessionSSEClient(BaseClient):
    """Opens the handshake stream and keeps it open for the session's lifetime."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        connect_timeout: float = SESSION_CONNECT_TIMEOUT,
        read_timeout: float = SESSION_READ_TIMEOUT,
        max_chunks: int = SESSION_MAX_CHUNKS,
    ) -> None:
        super().__init__(config)
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.max_chunks = max_chunks
        # handshake streams stay open while their session is in use
        self._handshakes: dict[str, aiohttp.ClientResponse] = {}

    @property
    def _source_name(self) -> str:
        return "biomcp"

    async def open_session(self, base_url: str) -> Session:
        """Connect to ``{base_url}/sse`` and return the session it announces.

        The handshake stream is kept open, since the server drops the
        session when it disconnects; release it with `close_session`.
        """
        base_url = base_url.rstrip("/")
        http = await self._get_session()

        try:
            resp = await asyncio.wait_for(
                http.get(f"{base_url}/sse", headers=SSE_HEADERS, timeout=_STREAM_TIMEOUT),
                self.connect_timeout,
            )
        except asyncio.TimeoutError:
            raise NoSession(
                self._source_name,
                f"SSE connection not established within {self.connect_timeout}s",
            )
        except aiohttp.ClientError as e:
            raise NoSession(self._source_name, f"SSE connection failed: {e}") from e

        try:
            if resp.status >= 300:
                raise NoSession(
                    self._source_name,
                    f"SSE connection failed: HTTP {resp.status}",
                    status_code=resp.status,
                )
            session_id = await self._read_session_id(resp)
            if not session_id:
                raise NoSession(self._source_name, "Could not parse session id")
        except BaseException:
            resp.close()
            raise

        self._handshakes[session_id] = resp
        logger.info("Opened BioMCP session %s", session_id)
        return Session(id=session_id, base_url=base_url)

    def close_session(self, session: Session) -> None:
        """Close the handshake stream that keeps *session* alive."""
        resp = self._handshakes.pop(session.id, None)
        if resp is not None:
            resp.close()
            logger.debug("Closed BioMCP session %s", session.id)

    @asynccontextmanager
    async def session(self, base_url: str) -> AsyncIterator[Session]:
        """Open a session for the duration of the ``async with`` block."""
        session = await self.open_session(base_url)
        try:
            yield session
        finally:
            self.close_session(session)

    async def close(self) -> None:
        for resp in self._handshakes.values():
            resp.close()
        self._handshakes.clear()
        await super().close()

    async def _read_session_id(self, resp: aiohttp.ClientResponse) -> str | None:
        buffer = SSELineBuffer()
        for _ in range(self.max_chunks):
            try:
                chunk = await asyncio.wait_for(
                    resp.content.readany(), self.read_timeout
                )
            except asyncio.TimeoutError:
                raise NoSession(
                    self._source_name, f"Read timeout after {self.read_timeout}s"
                )
            except aiohttp.ClientError as e:
                raise NoSession(self._source_name, f"SSE read error: {e}") from e

            if not chunk:
                break

            for line in buffer.feed(chunk):
                session_id = extract_session_id(line)
                if session_id:
                    return session_id

        # an unterminated last line only counts once nothing more will arrive
        return extract_session_id(buffer.pending)


class ResultStreamReader(BaseClient):
    """Submits a tool call within a session and reads its result stream."""

    _request_ids = itertools.count(1)

    def __init__(
        self,
        config: ClientConfig | None = None,
        tool_name: str = BIOMCP_TOOL_NAME,
        settle_delay: float = RESULT_SETTLE_DELAY,
        stream_timeout: float = RESULT_STREAM_TIMEOUT,
    ) -> None:
        super().__init__(config)
        self.tool_name = tool_name
        self.settle_delay = settle_delay
        self.stream_timeout = stream_timeout

    @property
    def _source_name(self) -> str:
        return "biomcp"

    async def fetch_tool_result(
        self,
        session: Session,
        query: str,
        max_results: int = PUBMED_DEFAULT_MAX_RESULTS,
    ) -> ToolServerResult:
        """Run the search tool for *query* and return its terminal payload.

        Raises NoResult if the stream cannot be opened, the call is not
        accepted, the server reports an error, or no terminal frame arrives
        before the stream ends or `stream_timeout` elapses.
        """
        http = await self._get_session()

        try:
            stream = await http.get(
                session.stream_url, headers=SSE_HEADERS, timeout=_STREAM_TIMEOUT
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NoResult(
                self._source_name, f"Results stream connection failed: {e}"
            ) from e

        try:
            if stream.status >= 300:
                raise NoResult(
                    self._source_name,
                    f"Results stream connection failed: HTTP {stream.status}",
                    status_code=stream.status,
                )
            await self._submit(http, session, query, max_results)
            # the server needs a moment before it starts emitting results
            await asyncio.sleep(self.settle_delay)
            payload = await self._read_terminal_payload(stream)
        finally:
            stream.close()

        return ToolServerResult.from_payload(payload)

    def _build_envelope(self, query: str, max_results: int) -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": "tools/call",
            "params": {
                "name": self.tool_name,
                "arguments": {"query": query, "max_results": max_results},
            },
        }

    async def _submit(
        self,
        http: aiohttp.ClientSession,
        session: Session,
        query: str,
        max_results: int,
    ) -> None:
        """POST the tools/call envelope; only 202 Accepted counts."""
        try:
            resp = await http.post(
                session.message_url, json=self._build_envelope(query, max_results)
            )
            try:
                if resp.status != 202:
                    body = await resp.text()
                    raise NoResult(
                        self._source_name,
                        f"Tool call rejected: HTTP {resp.status}: {body[:200]}",
                        status_code=resp.status,
                    )
            finally:
                resp.release()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NoResult(self._source_name, f"Tool call request failed: {e}") from e

        logger.debug("Tool call accepted for session %s", session.id)

    async def _read_terminal_payload(
        self, stream: aiohttp.ClientResponse
    ) -> dict[str, Any]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.stream_timeout
        buffer = SSELineBuffer()
        parser = SSEFrameParser()

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise self._timed_out()
            try:
                chunk = await asyncio.wait_for(stream.content.readany(), remaining)
            except asyncio.TimeoutError:
                raise self._timed_out()
            except aiohttp.ClientError as e:
                raise NoResult(self._source_name, f"SSE read error: {e}") from e

            if not chunk:
                raise NoResult(
                    self._source_name, "Result stream ended without a terminal frame"
                )

            for frame in parser.parse_lines(buffer.feed(chunk)):
                payload = self._terminal_payload(frame)
                if payload is not None:
                    return payload

    def _timed_out(self) -> NoResult:
        return NoResult(
            self._source_name,
            f"No terminal frame within {self.stream_timeout:.0f}s",
        )

    def _terminal_payload(self, frame: SSEFrame) -> dict[str, Any] | None:
        """Return the result carried by *frame*, or None if it is not terminal.

        Raises NoResult (with the server's error as ``detail``) for an
        error frame.
        """
        data = frame.data_payload
        if data == _CONTROL_ACCEPTED or _CONTROL_ENDPOINT_MARKER in data:
            return None
        if len(data) <= MIN_JSON_PAYLOAD_LENGTH:
            return None

        try:
            parsed = json.loads(data)
        except ValueError:
            return None
        if not isinstance(parsed, dict):
            return None

        if parsed.get("error"):
            raise NoResult(
                self._source_name,
                f"Tool server returned an error: {parsed['error']}",
                detail=parsed["error"],
            )

        result = parsed.get("result")
        if result:
            return result if isinstance(result, dict) else {"result": result}
        if any(parsed.get(key) for key in TERMINAL_PAYLOAD_KEYS):
            return parsed
        if frame.event_type in TERMINAL_EVENT_TYPES:
            return parsed
        return None
