"""Data models for the biomedical assistant."""

from biomed_assistant.models.model_biomedical import BiomedicalResult, ToolServerResult
from biomed_assistant.models.model_chat import ChatMessage, ChatRequest, ErrorEnvelope
from biomed_assistant.models.model_pubmed import LiteratureResult, Paper
from biomed_assistant.models.model_session import Session

__all__ = [
    "BiomedicalResult",
    "ChatMessage",
    "ChatRequest",
    "ErrorEnvelope",
    "LiteratureResult",
    "Paper",
    "Session",
    "ToolServerResult",
]
