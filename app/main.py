from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from app.api import flights, prices, health, notifications
from app.scheduler import start_scheduler, stop_scheduler
from app.services.notification import shutdown_notifier
from app.config import get_settings
from app.database import create_tables

settings = get_settings()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting Fare Watch")

    if settings.database_url.startswith("sqlite"):
        logger.info("SQLite detected - creating tables if needed")
        create_tables()

    if settings.scheduler_enabled:
        try:
            start_scheduler()
            logger.info("✅ APScheduler started")
        except Exception as e:
            logger.error(f"❌ Scheduler startup failed: {e}")
    else:
        logger.info("Scheduler disabled - price checks run only via /api/check-prices")

    yield

    logger.info("🛑 Shutting down Fare Watch")

    try:
        stop_scheduler()
        await shutdown_notifier()
    except Exception as e:
        logger.error(f"❌ Shutdown error: {e}")


app = FastAPI(
    title="Fare Watch",
    description="Tracks air fares for saved flights and flags significant price changes",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["health"])
app.include_router(flights.router, prefix="/api/flights", tags=["flights"])
app.include_router(prices.router, prefix="/api", tags=["prices"])
app.include_router(notifications.router, prefix="/api", tags=["notifications"])


@app.get("/ping")
async def ping():
    """Simple ping endpoint for health checks."""
    return {"status": "ok"}
