"""Unit tests for base_client module."""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from biomed_assistant.data_sources.base_client import (
    BaseClient,
    DataSourceError,
    NoResult,
    RequestContext,
    UpstreamUnavailable,
)


class ConcreteTestClient(BaseClient):
    """Concrete implementation of BaseClient for testing."""

    @property
    def _source_name(self) -> str:
        return "test_client"


def _response(status: int, json_body=None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status = status
    resp.json = AsyncMock(return_value=json_body)
    resp.text = AsyncMock(return_value=text)
    return resp


@pytest.mark.asyncio
class TestBaseClient:
    """Unit tests for BaseClient session lifecycle (no network calls)."""

    async def test_client_context_manager(self):
        async with ConcreteTestClient() as client:
            assert client._session is None  # Session created lazily
            session = await client._get_session()
            assert not session.closed

        assert client._session.closed

    async def test_session_reuse(self):
        client = ConcreteTestClient()

        session1 = await client._get_session()
        session2 = await client._get_session()

        assert session1 is session2
        await client.close()


@pytest.mark.asyncio
class TestRestGet:
    async def _get(self, client, mock_session):
        with patch.object(
            client, "_get_session", new_callable=AsyncMock, return_value=mock_session
        ):
            return await client._rest_get("https://example.com/api", params={"q": "x"})

    async def test_returns_json_on_success(self):
        resp = _response(200, json_body={"ok": True})
        mock_session = MagicMock()
        mock_session.get = AsyncMock(return_value=resp)

        result = await self._get(ConcreteTestClient(), mock_session)

        assert result == {"ok": True}
        mock_session.get.assert_called_once_with(
            "https://example.com/api", params={"q": "x"}
        )
        resp.release.assert_called_once()

    async def test_non_2xx_raises_without_retry(self):
        resp = _response(500, text="Internal Server Error")
        mock_session = MagicMock()
        mock_session.get = AsyncMock(return_value=resp)

        with pytest.raises(UpstreamUnavailable, match="HTTP 500") as exc_info:
            await self._get(ConcreteTestClient(), mock_session)

        assert exc_info.value.status_code == 500
        assert exc_info.value.source == "test_client"
        assert mock_session.get.call_count == 1

    async def test_connection_error(self):
        mock_session = MagicMock()
        mock_session.get = AsyncMock(
            side_effect=aiohttp.ClientConnectionError("Connection refused")
        )

        with pytest.raises(UpstreamUnavailable, match="Connection error"):
            await self._get(ConcreteTestClient(), mock_session)

    async def test_timeout(self):
        mock_session = MagicMock()
        mock_session.get = AsyncMock(side_effect=asyncio.TimeoutError())

        with pytest.raises(UpstreamUnavailable, match="Timeout"):
            await self._get(ConcreteTestClient(), mock_session)

    async def test_invalid_json(self):
        resp = _response(200)
        resp.json = AsyncMock(side_effect=ValueError("Expecting value"))
        mock_session = MagicMock()
        mock_session.get = AsyncMock(return_value=resp)

        with pytest.raises(UpstreamUnavailable, match="Invalid JSON"):
            await self._get(ConcreteTestClient(), mock_session)

    async def test_logs_request_context(self, caplog):
        resp = _response(200, json_body={})
        mock_session = MagicMock()
        mock_session.get = AsyncMock(return_value=resp)
        client = ConcreteTestClient()
        context = RequestContext(
            source="test_client", method="lookup", params={"query": "BRCA1"}
        )

        with caplog.at_level(logging.INFO), patch.object(
            client, "_get_session", new_callable=AsyncMock, return_value=mock_session
        ):
            await client._rest_get("https://example.com/api", {}, context=context)

        assert "Request [test_client.lookup]" in caplog.text
        assert "'query': 'BRCA1'" in caplog.text


class TestDataSourceError:
    def test_error_message_format(self):
        error = DataSourceError("pubmed", "Connection failed")
        assert "[pubmed]" in str(error)
        assert "Connection failed" in str(error)

    def test_error_with_status_code(self):
        error = DataSourceError("api", "Not found", status_code=404)
        assert error.source == "api"
        assert error.status_code == 404

    def test_no_result_carries_detail(self):
        error = NoResult("biomcp", "Tool server returned an error", detail={"code": 1})
        assert isinstance(error, DataSourceError)
        assert error.detail == {"code": 1}
