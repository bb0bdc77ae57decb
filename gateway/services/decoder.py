"""
Incremental server-sent-event frame decoder.

Upstream bodies arrive in arbitrary byte chunks: a chunk may end in the middle
of a line, in the middle of a JSON payload or in the middle of a multi-byte
UTF-8 character. The decoder keeps the undecoded bytes and the unfinished line
between chunks and only emits complete `data:` lines, in arrival order.
"""

import codecs
import logging
from typing import AsyncIterable, AsyncIterator, List, Optional

from gateway.models.stream import RawFrame

logger = logging.getLogger(__name__)

SSE_DATA_FIELD = "data:"


def parse_line(line: str) -> Optional[RawFrame]:
    """Turn one complete line into a frame, or None for lines to discard."""
    if line.endswith("\r"):
        line = line[:-1]
    if not line.strip():
        return None
    if not line.startswith(SSE_DATA_FIELD):
        # Comments (": keep-alive"), event:, id:, retry: fields
        return None
    data = line[len(SSE_DATA_FIELD):]
    if data.startswith(" "):
        data = data[1:]
    return RawFrame(data=data)


class SSEFrameDecoder:
    """Per-session accumulator turning byte chunks into RawFrames."""

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> List[RawFrame]:
        """Consume one chunk and return the frames it completed."""
        self._buffer += self._decoder.decode(chunk)
        if "\n" not in self._buffer:
            return []

        *lines, self._buffer = self._buffer.split("\n")
        frames = []
        for line in lines:
            frame = parse_line(line)
            if frame is not None:
                frames.append(frame)
        return frames

    def flush(self) -> List[RawFrame]:
        """End of input: emit the last line if it was never newline-terminated."""
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        frames = []
        for line in tail.split("\n"):
            frame = parse_line(line)
            if frame is not None:
                frames.append(frame)
        return frames

    async def decode(self, byte_source: AsyncIterable[bytes]) -> AsyncIterator[RawFrame]:
        async for chunk in byte_source:
            for frame in self.feed(chunk):
                yield frame
        for frame in self.flush():
            logger.debug("Emitting unterminated trailing frame at end of stream")
            yield frame
