from gateway.utils.sse import SSE_HEADERS, format_delta, format_done, format_error, format_sse_data

__all__ = ["SSE_HEADERS", "format_delta", "format_done", "format_error", "format_sse_data"]
