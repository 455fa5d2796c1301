"""Unit tests for query_helpers."""

import json

import pytest

from biomed_assistant.helpers.query_helpers import (
    build_context_message,
    inject_context,
    is_biomedical_query,
    should_enrich,
)
from biomed_assistant.models.model_biomedical import ToolServerResult
from biomed_assistant.models.model_chat import ChatMessage
from biomed_assistant.models.model_pubmed import LiteratureResult, Paper


@pytest.mark.parametrize(
    "text",
    [
        "Find recent papers on CRISPR",
        "What CLINICAL trials exist for psoriasis?",
        "Is this BRCA1 variant pathogenic?",
        "Latest PubMed results for long covid",
    ],
)
def test_biomedical_queries_detected(text):
    assert is_biomedical_query(text)


@pytest.mark.parametrize("text", ["Hello there", "What's the weather like?", ""])
def test_other_queries_not_detected(text):
    assert not is_biomedical_query(text)


def test_should_enrich_requires_user_turn():
    messages = [
        ChatMessage(role="user", content="hi"),
        ChatMessage(role="assistant", content="Here are some papers"),
    ]
    assert not should_enrich(messages)
    assert should_enrich([ChatMessage(role="user", content="gene therapy papers")])
    assert not should_enrich([])


def test_should_enrich_uses_structured_content_text():
    message = ChatMessage(
        role="user", content=[{"type": "text", "text": "drug interactions"}]
    )
    assert should_enrich([message])


def test_inject_context_goes_before_last_message():
    messages = [
        ChatMessage(role="user", content="first"),
        ChatMessage(role="assistant", content="reply"),
        ChatMessage(role="user", content="papers on BRCA1?"),
    ]
    context = ChatMessage(role="user", content="context")

    result = inject_context(messages, context)

    assert [m.content for m in result] == ["first", "reply", "context", "papers on BRCA1?"]
    assert len(messages) == 3


def test_context_message_for_pubmed_result():
    result = LiteratureResult(papers=[Paper(pmid="42")], count=1, total_found=7)

    message = build_context_message(result, "aspirin studies")

    assert message.role == "user"
    assert message.content.startswith(
        "Here is data from PubMed Direct API (NCBI E-utilities) related to your query:"
    )
    assert "answer the user's question: aspirin studies." in message.content
    assert message.content.endswith("data came from PubMed Direct API.")
    assert '"url": "https://pubmed.ncbi.nlm.nih.gov/42/"' in message.content


def test_context_message_for_tool_server_result():
    result = ToolServerResult.from_payload({"trials": [{"nct_id": "NCT01"}]})

    message = build_context_message(result, "psoriasis trials")

    assert "BioMCP Server (PubMed, ClinicalTrials.gov, MyVariant.info)" in message.content
    assert message.content.endswith("data came from BioMCP.")
    payload = message.content.split("\n\n")[1]
    assert json.loads(payload) == {
        "source": "BioMCP Server",
        "trials": [{"nct_id": "NCT01"}],
    }
