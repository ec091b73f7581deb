"""FastAPI application hosting the monitor engine's background jobs."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI

from .config import settings
from .database import init_db, close_db
from .services.scheduler import scheduler_service

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Starting statusboard")

    await init_db()
    scheduler_service.start()

    yield

    scheduler_service.stop()
    await close_db()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="statusboard",
        description="Multi-protocol endpoint monitoring with rolling uptime history",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "scheduler_running": scheduler_service.scheduler is not None and scheduler_service.scheduler.running,
            "timestamp": datetime.now().isoformat(),
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)
