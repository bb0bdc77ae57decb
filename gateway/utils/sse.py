import orjson
from typing import Any, Dict

from gateway.models.stream import SSE_DONE_DATA, DeltaEvent

SSE_DONE_FRAME = f"data: {SSE_DONE_DATA}\n\n"

SSE_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def format_sse_data(payload: Dict[str, Any]) -> str:
    """Format a JSON payload as a single SSE data frame"""
    return f"data: {orjson.dumps(payload).decode()}\n\n"


def format_delta(event: DeltaEvent) -> str:
    return format_sse_data(event.to_payload())


def format_error(message: str) -> str:
    """Terminal error frame: {"error": {"message": ...}}"""
    return format_sse_data({"error": {"message": message}})


def format_done() -> str:
    return SSE_DONE_FRAME
