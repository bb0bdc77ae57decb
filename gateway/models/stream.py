"""
Data model for the stream transcoding pipeline.

RawFrame   - one `data:` line pulled out of the upstream byte stream
DeltaEvent - one incremental message fragment in the gateway's schema
StreamState - lifecycle of a single streaming session
"""

import enum
import itertools
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

SSE_DONE_DATA = "[DONE]"


@dataclass(frozen=True)
class RawFrame:
    """Payload of a single `data:` line (prefix already removed)"""

    data: str

    @property
    def is_done(self) -> bool:
        return self.data == SSE_DONE_DATA


@dataclass(frozen=True)
class DeltaFragment:
    content: str = ""
    role: Optional[str] = None  # Only set on the first fragment of a message


@dataclass(frozen=True)
class DeltaEvent:
    """Schema-normalized incremental unit sent to the caller"""

    id: Optional[str]
    delta: DeltaFragment
    finish_reason: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        delta: Dict[str, Any] = {}
        if self.delta.role is not None:
            delta["role"] = self.delta.role
        delta["content"] = self.delta.content

        payload: Dict[str, Any] = {"id": self.id, "delta": delta}
        if self.finish_reason is not None:
            payload["finishReason"] = self.finish_reason
        return payload


class StreamState(str, enum.Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (StreamState.COMPLETED, StreamState.ERRORED)


@dataclass
class StreamSession:
    """Per-request bookkeeping owned by the lifecycle controller"""

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: StreamState = StreamState.IDLE
    frames_sent: int = 0
    frames_skipped: int = 0
    error: Optional[str] = None
    closed: bool = False
    _sequence: Iterator[int] = field(default_factory=itertools.count, repr=False)

    def next_sequence(self) -> int:
        """Monotonic frame number, used only in log lines."""
        return next(self._sequence)

    def close(self) -> bool:
        """Mark the session closed. Returns False if it already was."""
        if self.closed:
            return False
        self.closed = True
        return True
