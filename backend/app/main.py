"""
Baithaka Pricing - application entry point
Hosts the pricing resolution engine for the booking/quoting layer
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings, configure_logging
from app.database import init_db
from app.routers import pricing, rates

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan"""
    configure_logging()
    init_db()
    logger.info(f"{settings.APP_NAME} started (currency {settings.DEFAULT_CURRENCY})")

    yield


# Create application
app = FastAPI(
    title=settings.APP_NAME,
    description="Multi-dimensional price resolution: rate matrix, overrides and adjustment rules",
    version="1.0.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(pricing.router)
app.include_router(rates.router)


@app.get("/")
def root():
    """Root"""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "description": "Pricing resolution engine"
    }


@app.get("/health")
def health_check():
    """Health check"""
    return {"status": "healthy"}
