"""Shared fixtures for integration tests."""

import os

import pytest
from dotenv import load_dotenv

from biomed_assistant.data_sources.biomcp import ResultStreamReader, SessionSSEClient
from biomed_assistant.data_sources.pubmed import PubMedClient
from biomed_assistant.utils.cache import ResultCache

load_dotenv()


@pytest.fixture
async def pubmed_client():
    """Create and tear down a PubMedClient with a fresh cache."""
    c = PubMedClient(ResultCache(), api_key=os.getenv("NCBI_API_KEY", ""))
    yield c
    await c.close()


@pytest.fixture
async def biomcp_clients():
    """Create and tear down the BioMCP session client and stream reader."""
    session_client = SessionSSEClient()
    stream_reader = ResultStreamReader()
    yield session_client, stream_reader
    await session_client.close()
    await stream_reader.close()
