import logging
import os
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

# Load env from backend/.env
backend_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(backend_dir, ".env"))

# Import after dotenv is loaded
from backend.core.config import settings, validate_config  # noqa: E402
from backend.core.logging import LOGGER_NAME, configure_logging  # noqa: E402
from backend.core.middleware.request_id import RequestIdMiddleware  # noqa: E402
from backend.core.errors import (  # noqa: E402
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from backend.api import health, levels, progress, reminders, streaks, tracker  # noqa: E402
from backend.features.tracker.service import get_tracker_store  # noqa: E402

configure_logging(settings.ENV)
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger(LOGGER_NAME)
    logger.info("Starting identity tracker backend...")
    app.state.startup_time = time.time()
    store = get_tracker_store()
    logger.info(f"Tracker store: {type(store).__name__}")
    try:
        yield
    finally:
        logging.getLogger(LOGGER_NAME).info("Stopping identity tracker backend...")


app = FastAPI(title="Identity Tracker - Backend", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["health"])
app.include_router(streaks.router, tags=["streaks"])
app.include_router(levels.router, tags=["levels"])
app.include_router(progress.router, tags=["progress"])
app.include_router(tracker.router, tags=["tracker"])
app.include_router(reminders.router, tags=["reminders"])
