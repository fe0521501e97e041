import os
from pathlib import Path
from dotenv import load_dotenv

# Override=True so changes in backend/.env take effect on process reload (and not get
# stuck on old environment variables).
#
# For automated tests (SQLite), we need to prevent backend/.env from overriding the
# test DATABASE_URL. Set DISABLE_DOTENV=1 to skip loading .env.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)


def _flag(name: str, default: str = "0") -> bool:
    return (os.getenv(name, default) or default).strip() in {"1", "true", "True", "yes", "YES"}


_raw_database_url = (os.getenv("DATABASE_URL") or "").strip()
# Default to a local SQLite DB for dev so the backend can start out-of-the-box.
# Use an absolute path so it works regardless of current working directory.
_default_sqlite_path = (Path(__file__).resolve().parent.parent / "dev.db").as_posix()
DATABASE_URL = _raw_database_url or f"sqlite:///{_default_sqlite_path}"

# -------------------- Blob storage (resumes) --------------------
# Absolute path; override with UPLOAD_DIR in env (useful for tests).
UPLOAD_DIR = os.getenv("UPLOAD_DIR") or (Path(__file__).resolve().parent.parent / "uploads").as_posix()
RESUME_BUCKET = os.getenv("RESUME_BUCKET", "resumes")
# Public URLs handed back to clients are built from this prefix.
PUBLIC_BASE_URL = (os.getenv("PUBLIC_BASE_URL", "http://localhost:8000") or "").rstrip("/")
MAX_RESUME_BYTES = int(os.getenv("MAX_RESUME_BYTES", str(5 * 1024 * 1024)) or str(5 * 1024 * 1024))

# -------------------- Identity provider --------------------
# Tokens are minted by the hosted identity provider; we only verify them.
# NOTE: keep a default for local dev so the server can boot even if the secret isn't set.
IDENTITY_JWT_SECRET = os.getenv("IDENTITY_JWT_SECRET", "dev_secret_change_me")
IDENTITY_JWT_ALGORITHM = os.getenv("IDENTITY_JWT_ALGORITHM", "HS256")
IDENTITY_JWT_AUDIENCE = os.getenv("IDENTITY_JWT_AUDIENCE") or None
IDENTITY_JWT_ISSUER = os.getenv("IDENTITY_JWT_ISSUER") or None

# -------------------- Scoring backend --------------------
SCORING_BACKEND_URL = (os.getenv("SCORING_BACKEND_URL") or "").rstrip("/")
SCORING_API_KEY = os.getenv("SCORING_API_KEY") or ""

# -------------------- Jobs --------------------
JOB_LOOKUP_MAX_RETRIES = int(os.getenv("JOB_LOOKUP_MAX_RETRIES", "2") or "2")
JOB_LOOKUP_BASE_DELAY_S = float(os.getenv("JOB_LOOKUP_BASE_DELAY_S", "1.0") or "1.0")
DEFAULT_JOB_EXPIRY_DAYS = int(os.getenv("DEFAULT_JOB_EXPIRY_DAYS", "30") or "30")

# Listing a job's applicants is open to any signed-in user unless this is enabled.
APPLICATIONS_OWNER_ONLY = _flag("APPLICATIONS_OWNER_ONLY")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
