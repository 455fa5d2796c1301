"""Tool server session model."""

from pydantic import BaseModel, ConfigDict


class Session(BaseModel):
    """Server-assigned session correlating a tool call with its result stream."""

    model_config = ConfigDict(frozen=True)

    id: str
    base_url: str

    @property
    def stream_url(self) -> str:
        return f"{self.base_url}/sse?session_id={self.id}"

    @property
    def message_path(self) -> str:
        return f"/messages/?session_id={self.id}"

    @property
    def message_url(self) -> str:
        return f"{self.base_url}{self.message_path}"
