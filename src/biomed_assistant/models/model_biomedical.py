"""Biomedical enrichment payloads.

A result is either a ``LiteratureResult`` from the direct PubMed path or a
``ToolServerResult`` carrying whatever the BioMCP tool server emitted. Both
expose ``source`` so the chat layer can label the data.
"""

from typing import Any, Union

from pydantic import BaseModel, ConfigDict

from biomed_assistant.constants import (
    BIOMCP_DATA_SOURCE,
    BIOMCP_DESCRIPTION,
    BIOMCP_SOURCE_LABEL,
    PUBMED_DATA_SOURCE,
    PUBMED_SOURCE_LABEL,
)
from biomed_assistant.models.model_pubmed import LiteratureResult


class ToolServerResult(BaseModel):
    """Tool server payload; unknown upstream fields are kept as extras."""

    model_config = ConfigDict(extra="allow")

    source: str = BIOMCP_SOURCE_LABEL

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ToolServerResult":
        data = dict(payload)
        source = data.get("source")
        if not isinstance(source, str) or not source:
            data["source"] = BIOMCP_SOURCE_LABEL
        return cls.model_validate(data)


BiomedicalResult = Union[ToolServerResult, LiteratureResult]


def data_source_name(result: BiomedicalResult) -> str:
    """Short name of the path that produced *result*."""
    if isinstance(result, LiteratureResult):
        return PUBMED_DATA_SOURCE
    return BIOMCP_DATA_SOURCE


def data_source_description(result: BiomedicalResult) -> str:
    """Long human-readable label used when presenting *result* to the LLM."""
    if isinstance(result, LiteratureResult):
        return PUBMED_SOURCE_LABEL
    return BIOMCP_DESCRIPTION
