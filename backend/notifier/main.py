"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, settings
from .database import build_engine, build_session_factory, close_db, init_db
from .errors import register_error_handlers
from .routers import cron_router, devices_router, notifications_router
from .services import PushGateway, build_services
from .services.scheduler import SchedulerService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    config: Settings = app.state.services.config
    logger.info("Starting notifications backend")

    await init_db(app.state.engine)
    logger.info("Database initialized")

    scheduler: Optional[SchedulerService] = None
    if config.scheduler_enabled:
        scheduler = SchedulerService(
            app.state.services.reminders,
            app.state.session_factory,
            timezone=config.reminder_timezone,
        )
        scheduler.start()

    yield

    if scheduler:
        scheduler.stop()
    await close_db(app.state.engine)
    logger.info("Shutdown complete")


def create_app(
    config: Settings = settings,
    gateway: Optional[PushGateway] = None,
    clock=None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Notifications backend",
        description="Device registration, event notifications and cron reminders",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.engine = build_engine(config)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.services = build_services(config, gateway=gateway, clock=clock)

    # The web client is served from another origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(devices_router)
    app.include_router(notifications_router)
    app.include_router(cron_router)

    @app.get("/health")
    async def health_check():
        return {"ok": True, "time": datetime.now(timezone.utc).isoformat()}

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)
