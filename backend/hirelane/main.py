import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import application as application_api
from .api import files as files_api
from .api import jobs as jobs_api
from .api import score as score_api
from .api import users as users_api
from .database import init_db
from .logging_config import configure_logging
from .utils.error_handlers import register_exception_handlers

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Hirelane Recruitment API")

app.include_router(application_api.router)
app.include_router(jobs_api.router)
app.include_router(score_api.router)
app.include_router(users_api.router)
app.include_router(files_api.router)

register_exception_handlers(app)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "Backend running",
        "service": "Hirelane Recruitment API"
    }


_default_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
_extra_origins = [
    origin.strip()
    for origin in os.getenv("FRONTEND_ORIGINS", "").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=[*_default_origins, *_extra_origins],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    logger.info("Database ready")
