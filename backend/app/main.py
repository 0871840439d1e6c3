"""
Opportunity Aggregator API - FastAPI backend for external opportunity ingestion
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

from app.aggregator_service import AggregatorService
from app.config import get_settings
from app.database import async_session_factory, dispose_engine, ensure_indexes
from app.opportunity_store import SqlOpportunityStore
from app.routers import health
from app.routers.admin import router as admin_router
from app.scheduler import AggregatorScheduler


def build_scheduler() -> AggregatorScheduler | None:
    """Wire store -> service -> scheduler, or None when storage is not configured."""
    if async_session_factory is None:
        logger.warning("Aggregator disabled: DATABASE_URL not set")
        return None
    settings = get_settings()
    service = AggregatorService(SqlOpportunityStore(async_session_factory), settings=settings)
    return AggregatorScheduler(service, settings=settings)


# Lifecycle management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown"""
    # Startup
    scheduler = build_scheduler()
    app.state.aggregator_scheduler = scheduler

    if scheduler is not None:
        try:
            await ensure_indexes()
        except Exception as e:
            logger.error(f"Could not verify opportunities URL index: {e}")

    if scheduler is not None and get_settings().enable_scheduler:
        scheduler.start()
    else:
        logger.info("Scheduler disabled (set AGGREGATOR_ENABLE_SCHEDULER=true to enable)")
    logger.info("Aggregator API started")
    yield
    # Shutdown
    if scheduler is not None:
        await scheduler.shutdown()
    await dispose_engine()
    logger.info("Aggregator API shutdown complete")


# Initialize FastAPI app
app = FastAPI(
    title="Opportunity Aggregator API",
    description="Scheduled ingestion of external job and opportunity listings",
    version="1.0.0",
    lifespan=lifespan,
)

# =============================================================================
# CORS Configuration
# =============================================================================
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173"
    ).split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With"],
)

app.include_router(health.router)
app.include_router(admin_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
