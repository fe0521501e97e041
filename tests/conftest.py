import json
import os
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


# Ensure `import backend.hirelane...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Must be set before backend.hirelane.config is imported anywhere.
os.environ["DISABLE_DOTENV"] = "1"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["IDENTITY_JWT_SECRET"] = "test-identity-secret"
os.environ.pop("IDENTITY_JWT_AUDIENCE", None)
os.environ.pop("IDENTITY_JWT_ISSUER", None)
# Tests never reach a real scoring backend; the proxy tests inject a mock transport.
os.environ["SCORING_BACKEND_URL"] = ""
os.environ["SCORING_API_KEY"] = ""


@pytest.fixture()
def storage(tmp_path: Path):
    from backend.hirelane.services.storage import LocalBlobStorage

    return LocalBlobStorage(str(tmp_path / "uploads"), "resumes", "http://testserver")


@pytest.fixture()
def sleeps() -> list[float]:
    """Delays requested by the retry helper (nothing actually sleeps)."""
    return []


@pytest.fixture()
def app(tmp_path: Path, storage, sleeps) -> FastAPI:
    """
    Create a FastAPI app wired to a temporary SQLite DB.

    We intentionally do NOT import `hirelane.main` so startup hooks never touch the dev DB.
    """
    from backend.hirelane import database as db

    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'test.sqlite3'}",
        connect_args={"check_same_thread": False},
    )
    db.enable_sqlite_foreign_keys(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the shared database module so router dependencies use the test DB.
    db.engine = engine
    db.SessionLocal = TestingSessionLocal

    db.import_models()
    db.Base.metadata.create_all(bind=engine)

    from backend.hirelane.api import application as application_api
    from backend.hirelane.api import files as files_api
    from backend.hirelane.api import jobs as jobs_api
    from backend.hirelane.api import score as score_api
    from backend.hirelane.api import users as users_api
    from backend.hirelane.utils.dependencies import get_retry_sleep, get_storage
    from backend.hirelane.utils.error_handlers import register_exception_handlers

    fastapi_app = FastAPI()
    fastapi_app.include_router(application_api.router)
    fastapi_app.include_router(jobs_api.router)
    fastapi_app.include_router(score_api.router)
    fastapi_app.include_router(users_api.router)
    fastapi_app.include_router(files_api.router)
    register_exception_handlers(fastapi_app)

    fastapi_app.dependency_overrides[get_storage] = lambda: storage
    fastapi_app.dependency_overrides[get_retry_sleep] = lambda: sleeps.append

    yield fastapi_app

    engine.dispose()


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(app: FastAPI):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    from backend.hirelane.database import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def make_user(db_session):
    from backend.hirelane.models.user import User

    def _make(user_id: str, role: str | None = "candidate", email: str | None = None) -> User:
        user = User(id=user_id, email=email or f"{user_id}@example.com", role=role)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_job(db_session):
    from backend.hirelane.models.job import Job

    def _make(recruiter_id: str, **overrides) -> Job:
        fields = {
            "recruiter_id": recruiter_id,
            "job_title": "Backend Engineer",
            "company_name": "Acme",
            "workplace_type": "Remote",
            "job_location": "Berlin",
            "employment_type": "Full-time",
            "job_description": "Build APIs with Python and FastAPI.",
            "skills": json.dumps(["python", "fastapi"]),
            "status": "active",
        }
        fields.update(overrides)
        job = Job(**fields)
        db_session.add(job)
        db_session.commit()
        db_session.refresh(job)
        return job

    return _make
