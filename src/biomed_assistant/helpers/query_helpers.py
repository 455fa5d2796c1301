"""Helpers for deciding whether and how to enrich a chat turn."""

import json

from biomed_assistant.constants import BIOMEDICAL_KEYWORDS
from biomed_assistant.models.model_biomedical import (
    BiomedicalResult,
    data_source_description,
    data_source_name,
)
from biomed_assistant.models.model_chat import ChatMessage


def is_biomedical_query(text: str) -> bool:
    """Keyword check: does the text look like a literature/trial question?"""
    lower = text.lower()
    return any(keyword in lower for keyword in BIOMEDICAL_KEYWORDS)


def should_enrich(messages: list[ChatMessage]) -> bool:
    """Enrich only when the latest turn is a biomedical question from the user."""
    if not messages:
        return False
    last = messages[-1]
    return last.role == "user" and is_biomedical_query(last.text)


def build_context_message(result: BiomedicalResult, user_query: str) -> ChatMessage:
    """Render *result* as the synthetic user-role context message."""
    payload = json.dumps(result.model_dump(mode="json"), indent=2)
    return ChatMessage(
        role="user",
        content=(
            f"Here is data from {data_source_description(result)} related to your query:"
            f"\n\n{payload}\n\n"
            f"Please use this information to answer the user's question: {user_query}. "
            "When presenting the results, please indicate that the data came from "
            f"{data_source_name(result)}."
        ),
    )


def inject_context(
    messages: list[ChatMessage], context: ChatMessage
) -> list[ChatMessage]:
    """Return a copy of *messages* with *context* just before the last message."""
    return [*messages[:-1], context, messages[-1]]
