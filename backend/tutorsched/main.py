# backend/tutorsched/main.py
"""
FastAPI application exposing the scheduling core.

Run with: uvicorn tutorsched.main:app
"""

import logging

from fastapi import APIRouter, FastAPI

from .core.config import settings
from .errors import register_error_handlers
from .routes.v1 import availability as availability_v1
from .routes.v1 import dst as dst_v1
from .routes.v1 import metrics as metrics_v1
from .routes.v1 import patterns as patterns_v1
from .routes.v1 import teachers as teachers_v1

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

API_TITLE = "Tutor Scheduling API"
API_VERSION = "1.0.0"


def create_app() -> FastAPI:
    application = FastAPI(
        title=API_TITLE,
        description="Availability, recurrence, DST re-anchoring and teacher search",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    register_error_handlers(application)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(availability_v1.router, prefix="/availability")
    api_v1.include_router(patterns_v1.router, prefix="/patterns")
    api_v1.include_router(dst_v1.router, prefix="/dst")
    api_v1.include_router(teachers_v1.router, prefix="/teachers")
    application.include_router(api_v1)
    application.include_router(metrics_v1.router)

    @application.get("/health")
    def health() -> dict[str, str]:
        return {"status": "healthy", "environment": settings.environment}

    return application


app = create_app()
