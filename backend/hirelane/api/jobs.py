from datetime import datetime, timedelta, timezone
import json
import logging
import math

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import DEFAULT_JOB_EXPIRY_DAYS, JOB_LOOKUP_BASE_DELAY_S, JOB_LOOKUP_MAX_RETRIES
from ..database import get_db
from ..models.job import Job
from ..repositories.jobs import JobRepository
from ..services.retry import retry_with_backoff
from ..utils.dependencies import get_current_user, get_optional_user, get_retry_sleep
from ..utils.error_handlers import (
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    get_error_message,
)
from ..utils.roles import recruiter_only
from ..utils.validation import (
    is_valid_linkedin_url,
    validate_integer_field,
    validate_string_field,
    validate_workplace_type,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])

PUBLIC_PAGE_SIZE = 12
PUBLIC_MAX_PAGE_SIZE = 50


def _iso(value):
    return value.isoformat() if isinstance(value, datetime) else value


def _skills_list(job: Job) -> list[str]:
    raw = getattr(job, "skills", None)
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return [str(x) for x in parsed] if isinstance(parsed, list) else []


def job_to_public(job: Job) -> dict:
    return {
        "id": job.id,
        "recruiter_id": job.recruiter_id,
        "job_title": job.job_title,
        "company_name": job.company_name,
        "company_linkedin_url": job.company_linkedin_url,
        "workplace_type": job.workplace_type,
        "job_location": job.job_location,
        "employment_type": job.employment_type,
        "job_description": job.job_description,
        "skills": _skills_list(job),
        "industry": job.industry,
        "job_function": job.job_function,
        "salary_min": job.salary_min,
        "salary_max": job.salary_max,
        "salary_currency": job.salary_currency,
        "status": job.status or "active",
        "expiry_date": _iso(job.expiry_date),
        "applicants_count": job.applicants_count or 0,
        "created_at": _iso(job.created_at),
        "updated_at": _iso(job.updated_at),
    }


class JobCreate(BaseModel):
    # Everything optional so missing fields come back as 400 with the field name.
    job_title: str | None = None
    company_name: str | None = None
    company_linkedin_url: str | None = None
    workplace_type: str | None = None
    job_location: str | None = None
    employment_type: str | None = None
    job_description: str | None = None
    skills: list[str] | None = None
    industry: str | None = None
    job_function: str | None = None
    salary_min: int | None = None
    salary_max: int | None = None
    salary_currency: str | None = None
    expiry_date: str | None = None


_REQUIRED_TEXT_FIELDS = (
    ("job_title", 150),
    ("company_name", 150),
    ("workplace_type", 20),
    ("job_location", 150),
    ("employment_type", 50),
    ("job_description", 20000),
)


@router.post("", status_code=201)
def create_job(
    payload: JobCreate,
    db: Session = Depends(get_db),
    user=Depends(recruiter_only),
):
    values = {}
    for field, max_length in _REQUIRED_TEXT_FIELDS:
        values[field] = validate_string_field(getattr(payload, field), field, max_length=max_length)

    if not payload.skills:
        raise HTTPException(status_code=400, detail="Missing required field: skills")
    for field in ("industry", "job_function"):
        values[field] = validate_string_field(getattr(payload, field), field, max_length=100)

    validate_workplace_type(values["workplace_type"])

    skills = [str(s).strip() for s in payload.skills if str(s).strip()]
    if not skills:
        raise HTTPException(status_code=400, detail="Skills must be a non-empty array")

    linkedin_url = validate_string_field(
        payload.company_linkedin_url, "company_linkedin_url", max_length=255, required=False
    )
    if linkedin_url and not is_valid_linkedin_url(linkedin_url):
        raise HTTPException(status_code=400, detail="Invalid LinkedIn URL format")

    if payload.salary_min is not None and payload.salary_max is not None and payload.salary_min > payload.salary_max:
        raise HTTPException(status_code=400, detail="Salary minimum cannot be greater than maximum")

    if payload.expiry_date:
        try:
            expiry_date = datetime.fromisoformat(payload.expiry_date.replace("Z", "+00:00"))
        except (ValueError, AttributeError):
            raise HTTPException(status_code=400, detail="Invalid expiry_date format. Use ISO 8601 format.")
    else:
        expiry_date = datetime.now(timezone.utc) + timedelta(days=DEFAULT_JOB_EXPIRY_DAYS)

    try:
        job = JobRepository(db).create(
            recruiter_id=user["sub"],
            skills=json.dumps(skills, ensure_ascii=False),
            company_linkedin_url=linkedin_url,
            salary_min=payload.salary_min or None,
            salary_max=payload.salary_max or None,
            salary_currency=(payload.salary_currency or "").strip() or "USD",
            expiry_date=expiry_date,
            status="active",
            **values,
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database error creating job: %s", e)
        raise PersistenceError("Failed to create job") from e

    logger.info("Job created id=%s recruiter_id=%s", job.id, job.recruiter_id)
    return {"success": True, "job": job_to_public(job)}


@router.get("")
def list_jobs(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    try:
        jobs = JobRepository(db).list_active_with_recruiter()
    except SQLAlchemyError as e:
        logger.error("Database error listing jobs: %s", e)
        raise PersistenceError("Failed to fetch jobs") from e

    items = []
    for job in jobs:
        payload = job_to_public(job)
        recruiter = job.recruiter
        payload["recruiter"] = (
            {"id": recruiter.id, "email": recruiter.email, "role": recruiter.role} if recruiter else None
        )
        items.append(payload)
    return {"success": True, "jobs": items}


@router.get("/my-jobs")
def list_my_jobs(
    status: str | None = Query(default=None, description="active/closed"),
    db: Session = Depends(get_db),
    user=Depends(recruiter_only),
):
    status_filter = status if status in ("active", "closed") else None
    try:
        jobs = JobRepository(db).list_for_recruiter(user["sub"], status=status_filter)
    except SQLAlchemyError as e:
        logger.error("Database error listing jobs for recruiter %s: %s", user["sub"], e)
        raise PersistenceError("Failed to fetch jobs") from e
    return {"success": True, "jobs": [job_to_public(j) for j in jobs]}


def _lenient_int(raw: str | None, default: int) -> int:
    try:
        return int(raw) if raw not in (None, "") else default
    except (TypeError, ValueError):
        return default


@router.get("/public")
def list_public_jobs(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user=Depends(get_optional_user),
):
    """Paginated active jobs; signing in is optional."""
    page_num = max(1, _lenient_int(page, 1))
    page_size = min(PUBLIC_MAX_PAGE_SIZE, max(1, _lenient_int(limit, PUBLIC_PAGE_SIZE)))
    offset = (page_num - 1) * page_size

    repo = JobRepository(db)
    try:
        total = repo.count_active()
        jobs = repo.list_active(offset=offset, limit=page_size)
    except SQLAlchemyError as e:
        logger.error("Database error loading public jobs: %s", e)
        raise PersistenceError(
            get_error_message("jobs_load_failed"),
            details=["An unexpected error occurred"],
        ) from e

    total_pages = math.ceil(total / page_size)
    return {
        "jobs": [job_to_public(j) for j in jobs],
        "total": total,
        "page": page_num,
        "limit": page_size,
        "totalPages": total_pages,
        "hasMore": page_num < total_pages,
    }


@router.get("/public/{job_id}")
def get_public_job(
    job_id: str,
    db: Session = Depends(get_db),
    sleep=Depends(get_retry_sleep),
):
    if not job_id or not job_id.strip():
        raise HTTPException(status_code=400, detail=get_error_message("job_id_invalid"))
    try:
        job_pk = validate_integer_field(job_id, "Job ID", min_value=1)
    except HTTPException:
        raise HTTPException(status_code=400, detail=get_error_message("job_id_invalid")) from None

    repo = JobRepository(db)

    def _lookup() -> Job:
        try:
            return repo.get_or_raise(job_pk)
        except SQLAlchemyError:
            # A failed statement poisons the session; reset it before the next attempt.
            db.rollback()
            raise

    try:
        job = retry_with_backoff(
            _lookup,
            max_retries=JOB_LOOKUP_MAX_RETRIES,
            base_delay=JOB_LOOKUP_BASE_DELAY_S,
            sleep=sleep,
        )
    except NotFoundError:
        raise
    except Exception as e:
        logger.error("Database error fetching job_id=%s: %s (%s)", job_pk, e, type(e).__name__)
        raise PersistenceError(get_error_message("job_fetch_failed")) from e

    return job_to_public(job)


@router.delete("/{job_id}", status_code=200)
def delete_job(
    job_id: str,
    db: Session = Depends(get_db),
    user=Depends(recruiter_only),
):
    job_pk = validate_integer_field(job_id, "Job ID", min_value=1)
    repo = JobRepository(db)

    job = repo.get(job_pk)
    if not job:
        raise NotFoundError(get_error_message("job_not_found"))

    if job.recruiter_id != user["sub"]:
        raise ForbiddenError("You do not have permission to delete this job")

    try:
        repo.delete(job)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database error deleting job %s: %s", job_pk, e)
        raise PersistenceError("Failed to delete job") from e

    logger.info("Job deleted id=%s recruiter_id=%s", job_pk, user["sub"])
    return {"success": True, "message": "Job deleted successfully"}
