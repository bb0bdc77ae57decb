from fastapi import APIRouter, Depends

from gateway.providers.base import OpenAIFormatProvider
from gateway.providers.deepseek import get_upstream_provider


router = APIRouter()


@router.get("/health")
async def health(provider: OpenAIFormatProvider = Depends(get_upstream_provider)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "provider": provider.name,
        "model": provider.model,
        "configured": provider.is_configured(),
    }
