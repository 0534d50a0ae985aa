"""FastAPI application entrypoint with Lambda handler."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from .config import settings
from .routes import commands, health, webhook
from .services.focalboard import FocalboardClient, FocalboardConfig
from .services.line_messaging import LineMessagingClient
from .services.message_processor import MessageProcessor

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.debug else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the Focalboard and LINE clients at startup and close them at shutdown."""
    logger.info(f"Starting {settings.service_name} in {settings.environment} mode")

    storage: FocalboardClient | None = None
    line_client: LineMessagingClient | None = None

    if settings.focalboard_api_url:
        storage = FocalboardClient(FocalboardConfig.from_settings(settings))
        await storage.initialize()
        app.state.processor = MessageProcessor(storage, locale=settings.reply_locale)
    else:
        logger.warning("FOCALBOARD_API_URL not set; webhook events will be rejected")

    if settings.line_channel_access_token:
        line_client = LineMessagingClient(settings.line_channel_access_token, settings.line_api_base_url)
        app.state.line_client = line_client
    else:
        logger.warning("LINE_CHANNEL_ACCESS_TOKEN not set; replies cannot be sent")

    yield

    if storage is not None:
        await storage.aclose()
    if line_client is not None:
        await line_client.aclose()
    logger.info(f"Shutting down {settings.service_name}")


app = FastAPI(
    title="LINE Task Bridge",
    description="Chat commands from LINE turned into Focalboard task cards",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(webhook.router)
app.include_router(commands.router)

# Lambda handler via Mangum
handler = Mangum(app, lifespan="auto")
