"""Chat request/response models for the inbound API."""

import json
from typing import Any, Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One turn of the conversation, in the provider's message shape."""

    role: Literal["user", "assistant"]
    content: str | list[dict[str, Any]]

    @property
    def text(self) -> str:
        """Content as plain text; structured content is JSON-encoded."""
        if isinstance(self.content, str):
            return self.content
        return json.dumps(self.content)


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1)


class ErrorEnvelope(BaseModel):
    error: str
    details: str | None = None
