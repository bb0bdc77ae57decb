from gateway.providers.base import (
    OpenAIFormatProvider,
    UpstreamError,
    UpstreamReadTimeout,
    UpstreamStatusError,
    UpstreamStreamIncomplete,
)
from gateway.providers.deepseek import DeepSeekProvider, get_upstream_provider

__all__ = [
    "DeepSeekProvider",
    "OpenAIFormatProvider",
    "UpstreamError",
    "UpstreamReadTimeout",
    "UpstreamStatusError",
    "UpstreamStreamIncomplete",
    "get_upstream_provider",
]
