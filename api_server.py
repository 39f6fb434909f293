"""
FastAPI Integration Server
Payment checkout, delivery quotes and media storage for the marketplace storefront
"""

import logging
import os
import sys
import time
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from config import Config, IntegrationSettings
from routes.deliveries import router as deliveries_router
from routes.media import router as media_router
from routes.payments import router as payments_router
from services.integration_dispatcher import DeliveryQuoteDispatcher, PaymentCheckoutDispatcher
from services.provider_registry import DELIVERY_PROVIDERS, PAYMENT_PROVIDERS
from services.s3_media_service import S3MediaService
from utils.exception_handler import install_exception_handlers

logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logging.getLogger("botocore").setLevel(logging.WARNING)
logging.getLogger("boto3").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[IntegrationSettings] = None,
    media_service: Optional[S3MediaService] = None,
) -> FastAPI:
    """Build the application around one immutable settings snapshot"""
    settings = settings or Config.load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.started_at = time.time()
        logger.info(f"🚀 Integration server worker {os.getpid()} starting...")
        Config.log_integration_config(settings)
        yield
        logger.info(f"🔄 Integration server worker {os.getpid()} shutting down...")

    app = FastAPI(
        title="Marketplace Integration Gateway",
        description="Provider-agnostic payment checkout, delivery quotes and media storage",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.started_at = time.time()
    app.state.payment_dispatcher = PaymentCheckoutDispatcher(settings)
    app.state.delivery_dispatcher = DeliveryQuoteDispatcher(settings)
    app.state.media_service = media_service or S3MediaService(settings.storage())

    if Config.CORS_ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=Config.CORS_ALLOWED_ORIGINS,
            allow_methods=["GET", "HEAD", "POST"],
            allow_headers=["*"],
        )

    app.include_router(payments_router, prefix=Config.API_PREFIX)
    app.include_router(deliveries_router, prefix=Config.API_PREFIX)
    app.include_router(media_router, prefix=Config.API_PREFIX)
    install_exception_handlers(app)

    @app.get("/health")
    async def health_check():
        """Configuration presence only; values are never reported"""
        storage = settings.storage()
        return {
            "status": "ok",
            "service": "integration-gateway",
            "environment": Config.CURRENT_ENVIRONMENT,
            "uptime_seconds": round(time.time() - app.state.started_at, 2),
            "providers": {
                provider: all(settings.get(key) for key in adapter.required_settings)
                for provider, adapter in {**PAYMENT_PROVIDERS, **DELIVERY_PROVIDERS}.items()
            },
            "storage": "configured" if storage.bucket and storage.region else "missing",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api_server:app", host="0.0.0.0", port=Config.PORT)
