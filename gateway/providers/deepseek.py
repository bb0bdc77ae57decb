from gateway.config import settings
from gateway.providers.base import OpenAIFormatProvider


class DeepSeekProvider(OpenAIFormatProvider):
    """DeepSeek chat-completion provider."""

    name = "deepseek"
    base_url = "https://api.deepseek.com/v1"


def get_upstream_provider() -> DeepSeekProvider:
    """FastAPI dependency: provider built from the current settings."""
    return DeepSeekProvider(
        api_key=settings.deepseek_api_key,
        model=settings.deepseek_model,
        base_url=settings.deepseek_base_url,
    )
