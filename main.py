from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from order_alerts.config import get_settings
from order_alerts.infrastructure.notifications import notification_manager
from order_alerts.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close every notification socket when the server shuts down."""

    logger.info("Order notification server starting")
    yield
    await notification_manager.close_all()
    logger.info("Order notification server stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    app = FastAPI(title="Order Alerts", lifespan=lifespan)

    # Only the storefront client may open notification sockets from a browser.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
