import logging
import os
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

# Load env from the project root before settings are read
package_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(os.path.dirname(package_dir), ".env"))

from prompt_machine.core.config import settings, validate_config  # noqa: E402
from prompt_machine.core.logging import LOGGER_NAME, configure_logging  # noqa: E402
from prompt_machine.core.middleware.request_id import RequestIdMiddleware  # noqa: E402
from prompt_machine.core.middleware.metrics import MetricsMiddleware  # noqa: E402
from prompt_machine.core.errors import (  # noqa: E402
    AppError,
    ProjectAccessDeniedError,
    UpgradeRequiredError,
    app_error_handler,
    http_error_handler,
    project_access_denied_handler,
    unhandled_exception_handler,
    upgrade_required_handler,
)
from prompt_machine.api import access, health, metrics, projects, submissions, users  # noqa: E402

configure_logging(settings.ENV, settings.LOG_LEVEL)
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger(LOGGER_NAME)
    logger.info("Starting Prompt Machine access service...")
    app.state.startup_time = time.time()
    try:
        yield
    finally:
        logging.getLogger(LOGGER_NAME).info("Stopping Prompt Machine access service...")


app = FastAPI(title="Prompt Machine - Access & Scoring", lifespan=lifespan)

# Middlewares
app.add_middleware(RequestIdMiddleware)
app.add_middleware(MetricsMiddleware)

app.add_exception_handler(UpgradeRequiredError, upgrade_required_handler)
app.add_exception_handler(ProjectAccessDeniedError, project_access_denied_handler)
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

app.include_router(projects.router, tags=["projects"])
app.include_router(submissions.router, tags=["submissions"])
app.include_router(users.router, tags=["users"])
app.include_router(access.router, tags=["access"])
app.include_router(health.router, tags=["health"])
app.include_router(metrics.router, tags=["metrics"])


def run() -> None:
    import uvicorn

    uvicorn.run("prompt_machine.main:app", host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    run()
