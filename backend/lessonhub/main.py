# backend/lessonhub/main.py
"""
LessonHub scheduling API.

Run locally with ``uvicorn lessonhub.main:app --reload`` from ``backend/``.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.routing import APIRoute

from .core.config import settings
from .errors import register_error_handlers
from .routes import health, prometheus
from .routes.v1 import (
    availability as availability_v1,
    lesson_status as lesson_status_v1,
    time_off as time_off_v1,
    tutors as tutors_v1,
)

API_TITLE = "LessonHub Scheduling API"
API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}, timezone: {settings.local_timezone}")
    if not settings.lesson_space_enabled:
        logger.info("Video room integration disabled; using the in-memory fake client")
    yield
    logger.info(f"{API_TITLE} shutting down...")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


def create_app() -> FastAPI:
    application = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
        generate_unique_id_function=_unique_operation_id,
    )
    register_error_handlers(application)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(availability_v1.router, prefix="/availability")
    api_v1.include_router(time_off_v1.router, prefix="/time-off")
    api_v1.include_router(lesson_status_v1.router, prefix="/lesson-status")
    api_v1.include_router(tutors_v1.router, prefix="/tutors")
    application.include_router(api_v1)

    application.include_router(health.router)
    application.include_router(prometheus.router)
    return application


app = create_app()
