import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
import orjson

from gateway.config import settings
from gateway.models.request import GenerationParams

logger = logging.getLogger(__name__)

# Constants
SSE_MEDIA_TYPE = "text/event-stream"
CHAT_COMPLETIONS_PATH = "/chat/completions"


class UpstreamError(Exception):
    """Fatal upstream failure for the current stream session."""


class UpstreamStatusError(UpstreamError):
    """Upstream answered with a non-success HTTP status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class UpstreamStreamIncomplete(UpstreamError):
    """Upstream body ended before the [DONE] sentinel."""


class UpstreamReadTimeout(UpstreamError):
    """A read from the upstream body timed out."""


def extract_error_message(body: bytes, status_code: int) -> str:
    """
    Pull a human-readable message out of an upstream error body.

    JSON bodies are searched for `error.message`, then `message`, then `detail`;
    anything else is returned as raw text.
    """
    text = body.decode("utf-8", errors="replace").strip()
    try:
        data = orjson.loads(body)
    except orjson.JSONDecodeError:
        return text or f"Upstream returned HTTP {status_code}"

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        for key in ("message", "detail"):
            if data.get(key):
                return str(data[key])
    return text or f"Upstream returned HTTP {status_code}"


class OpenAIFormatProvider:
    """Streaming reader for upstreams speaking the OpenAI chat-completions format.

    Subclasses only need to set `name` and `base_url` class attributes.
    Every call to `open_stream` gets its own HTTP client, so connections are
    never shared between stream sessions.
    """

    name: str = ""  # Override in subclass
    base_url: str = ""  # Override in subclass

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        if base_url:
            self.base_url = base_url.rstrip("/")
        self._transport = transport

    @property
    def timeout(self) -> float:
        """Get the configured provider timeout in seconds."""
        return float(settings.provider_timeout)

    def is_configured(self) -> bool:
        """Check if provider has valid API key"""
        return bool(self.api_key)

    def build_payload(
        self, messages: list[dict], params: Optional[GenerationParams] = None
    ) -> dict:
        payload = {
            "model": self.model,
            "messages": messages,
            "stream": True,
        }
        if params is not None:
            payload.update(params.to_upstream())
        return payload

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
                "Accept": SSE_MEDIA_TYPE,
            },
            timeout=self.timeout,
            transport=self._transport,
        )

    @asynccontextmanager
    async def open_stream(
        self, messages: list[dict], params: Optional[GenerationParams] = None
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        """
        Open a streaming chat completion and yield the raw body byte iterator.

        Raises:
            UpstreamStatusError: upstream answered with a non-2xx status
            httpx.HTTPError: connection or read failure
        """
        payload = self.build_payload(messages, params)

        async with self._client() as client:
            async with client.stream(
                "POST", CHAT_COMPLETIONS_PATH, json=payload
            ) as response:
                if not response.is_success:
                    body = await response.aread()
                    message = extract_error_message(body, response.status_code)
                    logger.warning(
                        f"{self.name} responded with HTTP {response.status_code}: {message}"
                    )
                    raise UpstreamStatusError(response.status_code, message)

                yield response.aiter_bytes()
