"""
Streaming chat routes.

POST /api/chat/stream - plain JSON body {messages, temperature?, maxTokens?, ...}
POST /graphql         - GraphQL-style document {query, variables} for `streamMessage`

Both answer with an event stream of delta frames:
    data: {"id": "...", "delta": {"role"?: "...", "content": "..."}, "finishReason"?: "..."}
terminated by `data: [DONE]`, or by a single `data: {"error": {"message": "..."}}`.
"""

import re
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from gateway.config import settings
from gateway.models.request import ChatStreamRequest, GenerationParams, GraphQLRequest
from gateway.providers.base import OpenAIFormatProvider
from gateway.providers.deepseek import get_upstream_provider
from gateway.services.lifecycle import StreamLifecycleController
from gateway.utils.exceptions import graphql_error, raise_configuration_error
from gateway.utils.sse import SSE_HEADERS

router = APIRouter()
graphql_router = APIRouter()

STREAM_OPERATION = "streamMessage"
_OPERATION_RE = re.compile(rf"\b{STREAM_OPERATION}\b")


def missing_key_message(provider: OpenAIFormatProvider) -> str:
    return f"{provider.name.upper()}_API_KEY is not configured"


def stream_response(
    provider: OpenAIFormatProvider,
    messages: list[dict],
    params: Optional[GenerationParams],
) -> StreamingResponse:
    """Build the event-stream response; the pipeline starts once the server iterates it."""
    controller = StreamLifecycleController(
        provider, max_duration=settings.max_stream_seconds
    )
    return StreamingResponse(
        controller.stream(messages, params),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/chat/stream")
async def chat_stream(
    request: ChatStreamRequest,
    provider: OpenAIFormatProvider = Depends(get_upstream_provider),
):
    """
    POST /api/chat/stream - stream a chat completion as server-sent events.
    """
    if not provider.is_configured():
        raise_configuration_error(missing_key_message(provider))

    return stream_response(
        provider, request.message_dicts(), request.generation_params()
    )


@graphql_router.post("/graphql")
async def graphql_stream(
    request: GraphQLRequest,
    provider: OpenAIFormatProvider = Depends(get_upstream_provider),
):
    """
    POST /graphql - GraphQL-style entry point for the `streamMessage` operation.

    Variables carry the same fields as /api/chat/stream. A single
    `variables.message` string is accepted as shorthand for one user message.
    """
    if not isinstance(request.query, str) or not _OPERATION_RE.search(request.query):
        return graphql_error("Invalid GraphQL query")

    if request.variables is None:
        variables = {}
    elif isinstance(request.variables, dict):
        variables = dict(request.variables)
    else:
        return graphql_error("Variables must be an object")

    message = variables.pop("message", None)
    if not variables.get("messages"):
        if not isinstance(message, str) or not message:
            return graphql_error("Message is required")
        variables["messages"] = [{"role": "user", "content": message}]

    try:
        chat_request = ChatStreamRequest.model_validate(variables)
    except ValidationError as e:
        return graphql_error(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )

    if not provider.is_configured():
        return graphql_error(
            missing_key_message(provider),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return stream_response(
        provider, chat_request.message_dicts(), chat_request.generation_params()
    )
