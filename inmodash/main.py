"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from inmodash.config import settings
from inmodash.middleware import setup_rate_limiting
from inmodash.routes import register_all_routes
from inmodash.scheduler import setup_apscheduler

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = AsyncIOScheduler()
        setup_apscheduler(scheduler)
        scheduler.start()
        logger.info("Background scheduler started")
    yield
    if scheduler is not None:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")


# Create FastAPI app
app = FastAPI(
    title="Inmodash API",
    description="Property management backend - obligations, owner settlements and agency accounting",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_rate_limiting(app)

# Include routers
register_all_routes(app, settings.API_V1_PREFIX)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Inmodash API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "inmodash.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
