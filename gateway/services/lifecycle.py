"""
Stream lifecycle controller.

Drives one streaming session end to end:

    idle -> streaming -> completed   (upstream sent [DONE])
    idle -> errored                  (upstream refused the request)
    streaming -> errored             (read failure, timeout, caller gone)

`stream()` is an async generator of outgoing SSE frames, served through
StreamingResponse. The response awaits each send before pulling the next
frame, so upstream is never read faster than the caller consumes. Exactly one
terminal frame is yielded (the sentinel or an error frame, none if the caller
disconnected) and the session is closed once, in the generator's `finally`.
"""

import asyncio
import logging
from contextlib import aclosing
from typing import AsyncIterator, Optional

import httpx

from gateway.models.request import GenerationParams
from gateway.models.stream import StreamSession, StreamState
from gateway.providers.base import (
    OpenAIFormatProvider,
    UpstreamError,
    UpstreamReadTimeout,
    UpstreamStreamIncomplete,
)
from gateway.services.decoder import SSEFrameDecoder
from gateway.services.transcoder import FrameParseError, transcode
from gateway.utils.sse import format_delta, format_done, format_error

logger = logging.getLogger(__name__)


class StreamDurationExceeded(Exception):
    """The session ran past its total duration limit."""


async def _read_chunk(chunks: AsyncIterator[bytes]) -> Optional[bytes]:
    """Next upstream chunk, or None at end of body."""
    try:
        return await chunks.__anext__()
    except StopAsyncIteration:
        return None
    except (TimeoutError, asyncio.TimeoutError) as e:
        # Keep upstream timeouts apart from the session duration limit
        raise UpstreamReadTimeout(f"Upstream read timed out: {str(e) or type(e).__name__}") from e


class StreamLifecycleController:
    """Owns one StreamSession and its upstream connection."""

    def __init__(
        self,
        provider: OpenAIFormatProvider,
        max_duration: Optional[float] = None,
    ):
        self.provider = provider
        self.max_duration = max_duration
        self.session = StreamSession()

    @property
    def state(self) -> StreamState:
        return self.session.state

    def _transition(self, state: StreamState, error: Optional[str] = None) -> None:
        if self.session.state.is_terminal:
            return
        logger.debug(f"[{self.session.id}] {self.session.state.value} -> {state.value}")
        self.session.state = state
        if error is not None:
            self.session.error = error

    async def stream(
        self, messages: list[dict], params: Optional[GenerationParams] = None
    ) -> AsyncIterator[str]:
        """Yield outgoing SSE frames for one completion."""
        logger.info(
            f"[{self.session.id}] Stream started ({self.provider.name}, "
            f"{len(messages)} messages)"
        )
        try:
            error = None
            try:
                async with aclosing(self._frames(messages, params)) as frames:
                    async for frame in frames:
                        yield frame
            except (GeneratorExit, asyncio.CancelledError):
                logger.info(f"[{self.session.id}] Caller disconnected, upstream read aborted")
                self._transition(StreamState.ERRORED, "caller disconnected")
                raise
            except StreamDurationExceeded as e:
                error = str(e)
            except UpstreamError as e:
                error = str(e)
            except httpx.HTTPError as e:
                logger.warning(f"[{self.session.id}] Upstream connection error: {e!r}")
                error = f"Upstream connection error: {str(e) or type(e).__name__}"
            except Exception as e:
                logger.exception(f"[{self.session.id}] Unexpected streaming error")
                error = str(e) or type(e).__name__

            if error is not None:
                self._transition(StreamState.ERRORED, error)
                logger.warning(f"[{self.session.id}] Stream error: {error}")
                yield format_error(error)
        finally:
            self._close()

    def _close(self) -> None:
        if not self.session.close():
            return
        logger.info(
            f"[{self.session.id}] Stream {self.session.state.value}: "
            f"{self.session.frames_sent} frames sent, "
            f"{self.session.frames_skipped} skipped"
        )

    async def _frames(
        self, messages: list[dict], params: Optional[GenerationParams]
    ) -> AsyncIterator[str]:
        decoder = SSEFrameDecoder()

        async with self.provider.open_stream(messages, params) as body:
            self._transition(StreamState.STREAMING)

            async with aclosing(self._bounded(body)) as chunks:
                async with aclosing(decoder.decode(chunks)) as raw_frames:
                    async for frame in raw_frames:
                        seq = self.session.next_sequence()

                        if frame.is_done:
                            yield format_done()
                            self._transition(StreamState.COMPLETED)
                            return

                        try:
                            event = transcode(frame.data)
                        except FrameParseError as e:
                            self.session.frames_skipped += 1
                            logger.warning(f"[{self.session.id}] Skipping frame #{seq}: {e}")
                            continue

                        yield format_delta(event)
                        self.session.frames_sent += 1
                        logger.debug(f"[{self.session.id}] Sent frame #{seq}")

        raise UpstreamStreamIncomplete("Upstream stream ended before completion")

    async def _bounded(self, body: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        """Upstream chunks, cut off once the session outlives `max_duration`."""
        loop = asyncio.get_running_loop()
        deadline = None
        if self.max_duration is not None:
            deadline = loop.time() + self.max_duration

        async with aclosing(body):
            while True:
                timeout = None
                if deadline is not None:
                    timeout = deadline - loop.time()
                    if timeout <= 0:
                        raise StreamDurationExceeded(
                            f"Stream exceeded {self.max_duration}s limit"
                        )
                try:
                    chunk = await asyncio.wait_for(_read_chunk(body), timeout=timeout)
                except asyncio.TimeoutError:
                    raise StreamDurationExceeded(
                        f"Stream exceeded {self.max_duration}s limit"
                    ) from None
                if chunk is None:
                    return
                yield chunk
