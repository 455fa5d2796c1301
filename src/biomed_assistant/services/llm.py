"""Chat provider relay with a single retry on overload."""

import asyncio
import logging
from typing import Any

from anthropic import APIConnectionError, APIStatusError, AsyncAnthropic

from biomed_assistant.config import Settings, get_settings
from biomed_assistant.constants import OVERLOAD_RETRY_DELAY, OVERLOADED_STATUS
from biomed_assistant.models.model_chat import ChatMessage

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The chat provider failed; carries its status and body verbatim."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"API request failed: {status}")


def build_client(settings: Settings | None = None) -> AsyncAnthropic:
    """Anthropic client with SDK retries off; overload retry is handled here."""
    settings = settings or get_settings()
    return AsyncAnthropic(
        api_key=settings.anthropic_api_key,
        base_url=settings.anthropic_base_url,
        max_retries=0,
    )


class ChatForwarder:
    """Sends the message list to the chat endpoint and returns its JSON reply."""

    def __init__(
        self,
        client: AsyncAnthropic,
        model: str,
        max_tokens: int = 4096,
        overload_delay: float = OVERLOAD_RETRY_DELAY,
    ) -> None:
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.overload_delay = overload_delay

    async def forward(self, messages: list[ChatMessage]) -> dict[str, Any]:
        """Return the provider reply body unmodified.

        A 529 is retried once after `overload_delay` seconds with the same
        body. Anything else that is not a success raises UpstreamError.
        """
        request = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [m.model_dump() for m in messages],
        }
        try:
            return await self._send(request)
        except APIStatusError as e:
            logger.error("Chat API error: %s %s", e.status_code, e.response.text)
            if e.status_code != OVERLOADED_STATUS:
                raise UpstreamError(e.status_code, e.response.text) from e

        await asyncio.sleep(self.overload_delay)
        try:
            return await self._send(request)
        except APIStatusError as e:
            logger.error("Chat API retry error: %s %s", e.status_code, e.response.text)
            raise UpstreamError(e.status_code, e.response.text) from e

    async def _send(self, request: dict[str, Any]) -> dict[str, Any]:
        try:
            raw = await self.client.messages.with_raw_response.create(**request)
        except APIConnectionError as e:
            logger.error("Chat API connection error: %s", e)
            raise UpstreamError(502, str(e)) from e
        return raw.http_response.json()
