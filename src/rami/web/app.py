"""
Rami Web - FastAPI application.

Mounts the onboarding wizard router under /api. Identity is taken from the
X-User-Id header set by the auth proxy in front of this service.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from onboarding.api import router as onboarding_router
from rami import __version__
from rami.config import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Rami", version=__version__)


@app.on_event("startup")
async def startup_event():
    """Log configuration on startup."""
    logger.info("Rami starting up...")
    logger.info(f"  Environment: {settings.rami_env}")
    logger.info(f"  Draft backend: {settings.draft_backend} (background writes: {settings.draft_background_writes})")
    logger.info(f"  Session logs: {settings.session_log_enabled}")


# CORS for the frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",  # Vite dev server
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(onboarding_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__, "service": "rami"}
