"""Shared fakes for the streaming pipeline tests."""

import asyncio
from typing import Callable, List, Optional

import httpx
import orjson

from gateway.providers.deepseek import DeepSeekProvider


class ChunkedStream(httpx.AsyncByteStream):
    """Upstream body delivered in exactly the given chunks."""

    def __init__(
        self,
        chunks: List[bytes],
        error: Optional[Exception] = None,
        hang: bool = False,
    ):
        self.chunks = chunks
        self.error = error
        self.hang = hang
        self.chunks_read = 0
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            self.chunks_read += 1
            yield chunk
        if self.error is not None:
            raise self.error
        if self.hang:
            await asyncio.sleep(3600)

    async def aclose(self):
        self.closed = True


def sse(payload) -> bytes:
    """One upstream `data:` line for a JSON payload (or raw string)."""
    if not isinstance(payload, (str, bytes)):
        payload = orjson.dumps(payload).decode()
    if isinstance(payload, bytes):
        payload = payload.decode()
    return f"data: {payload}\n\n".encode("utf-8")


def chunk_payload(content=None, role=None, finish_reason=None, id="chatcmpl-1") -> dict:
    delta = {}
    if role is not None:
        delta["role"] = role
    if content is not None:
        delta["content"] = content
    return {
        "id": id,
        "object": "chat.completion.chunk",
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }


DONE = b"data: [DONE]\n\n"


def make_provider(
    handler: Callable[[httpx.Request], httpx.Response],
    api_key: Optional[str] = "test-key",
) -> DeepSeekProvider:
    return DeepSeekProvider(
        api_key=api_key,
        model="deepseek-chat",
        transport=httpx.MockTransport(handler),
    )


def streaming_provider(stream: ChunkedStream, requests: Optional[list] = None) -> DeepSeekProvider:
    """Provider whose upstream answers 200 with the given body stream."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(
            200, headers={"content-type": "text/event-stream"}, stream=stream
        )

    return make_provider(handler)


async def collect(controller, messages, params=None) -> List[str]:
    """Drain a controller's outgoing frames."""
    return [frame async for frame in controller.stream(messages, params)]
