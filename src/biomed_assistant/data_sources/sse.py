"""Server-Sent-Events line handling for the tool server streams."""

import codecs
import re
from dataclasses import dataclass

_SESSION_ID_RE = re.compile(r"session_id=([^\s\"']+)")

EVENT_PREFIX = "event: "
DATA_PREFIX = "data: "


@dataclass
class SSEFrame:
    """One ``data:`` payload together with the event type pending before it."""

    event_type: str | None
    data_payload: str


class SSELineBuffer:
    """Rolling text buffer that turns arbitrary byte chunks into whole lines.

    The trailing partial line of each chunk is held back until the next
    chunk completes it.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")

    @property
    def pending(self) -> str:
        """The incomplete trailing line not yet returned by `feed`."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        """Append *chunk* and return the trimmed complete lines it finished."""
        self._buffer += self._decoder.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        return [line.strip() for line in lines]


class SSEFrameParser:
    """Tracks ``event:`` lines and yields a frame for each ``data:`` line."""

    def __init__(self) -> None:
        self.event_type: str | None = None

    def parse_lines(self, lines: list[str]) -> list[SSEFrame]:
        frames: list[SSEFrame] = []
        for line in lines:
            if line.startswith(EVENT_PREFIX):
                self.event_type = line[len(EVENT_PREFIX) :].strip()
            elif line.startswith(DATA_PREFIX):
                frames.append(
                    SSEFrame(
                        event_type=self.event_type,
                        data_payload=line[len(DATA_PREFIX) :].strip(),
                    )
                )
                # an event type applies to the data line that follows it only
                self.event_type = None
        return frames


def extract_session_id(line: str) -> str | None:
    """Return the session token from a ``data:`` line, if it carries one."""
    line = line.strip()
    if not line.startswith(DATA_PREFIX):
        return None
    match = _SESSION_ID_RE.search(line[len(DATA_PREFIX) :])
    return match.group(1) if match else None
