"""Pytest configuration and fixtures."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest


def _make_stream_response(chunks, status: int = 200, hang: bool = False):
    """Fake aiohttp response whose body yields *chunks* then EOF (or hangs)."""
    pending = [c.encode() if isinstance(c, str) else c for c in chunks]

    async def readany() -> bytes:
        if pending:
            item = pending.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        if hang:
            await asyncio.sleep(3600)
        return b""

    resp = MagicMock()
    resp.status = status
    resp.content.readany = readany
    resp.text = AsyncMock(return_value="")
    return resp


@pytest.fixture
def stream_response():
    """Factory for fake SSE responses."""
    return _make_stream_response


@pytest.fixture
def sample_esearch() -> dict:
    """esearch reply with two PMIDs."""
    return {
        "esearchresult": {
            "count": "1234",
            "retmax": "2",
            "idlist": ["33567185", "29669224"],
        }
    }


@pytest.fixture
def sample_esummary() -> dict:
    """esummary reply matching sample_esearch."""
    return {
        "result": {
            "uids": ["33567185", "29669224"],
            "33567185": {
                "uid": "33567185",
                "title": "Once-Weekly Semaglutide in Adults with Overweight or Obesity.",
                "authors": [
                    {"name": "Wilding JPH"},
                    {"name": "Batterham RL"},
                    {"name": "Calanna S"},
                    {"name": "Davies M"},
                    {"name": "Van Gaal LF"},
                ],
                "fulljournalname": "The New England journal of medicine",
                "source": "N Engl J Med",
                "pubdate": "2021 Mar 18",
                "elocationid": "doi: 10.1056/NEJMoa2032183",
            },
            "29669224": {
                "uid": "29669224",
                "title": "",
                "authors": [{"name": "Smith A"}, {"name": "Jones B"}],
                "source": "Nature",
                "pubdate": "",
                "elocationid": "",
            },
        }
    }
