import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from gateway.config import settings, warn_if_unconfigured

logger = logging.getLogger(__name__)
from gateway.routes import chat, health


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle events"""
    # Missing credential is reported per request, not fatal at startup
    if warn_if_unconfigured():
        logger.info(
            f"Relaying to {settings.deepseek_base_url} with model {settings.deepseek_model}"
        )

    yield


app = FastAPI(
    title="DeepSeek Stream Gateway",
    description="Chat gateway relaying DeepSeek completions as SSE delta streams",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware (handles browser preflight for the streaming endpoints)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(chat.router, prefix="/api", tags=["chat"])
app.include_router(chat.graphql_router, tags=["graphql"])


def run():
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "gateway.main:app",
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )
