from datetime import datetime
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import APPLICATIONS_OWNER_ONLY, MAX_RESUME_BYTES
from ..database import get_db
from ..models.application import Application
from ..services.applications import ApplicantDetails, ApplicationWorkflow, ResumeUpload
from ..services.storage import LocalBlobStorage
from ..utils.dependencies import get_current_user, get_storage
from ..utils.error_handlers import PersistenceError, get_error_message
from ..utils.validation import validate_float_field, validate_integer_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/application", tags=["Applications"])


def application_to_public(application: Application, *, include_scores: bool = False) -> dict:
    payload = {
        "id": application.id,
        "job_id": application.job_id,
        "candidate_id": application.candidate_id,
        "full_name": application.full_name,
        "email": application.email,
        "phone": application.phone,
        "education_level": application.education_level,
        "years_of_experience": application.years_of_experience,
        "cover_letter": application.cover_letter,
        "resume_url": application.resume_url,
        "resume_text": application.resume_text,
        "status": application.status,
        "rejection_feedback": application.rejection_feedback,
        "created_at": application.created_at.isoformat()
        if isinstance(application.created_at, datetime)
        else application.created_at,
    }
    if include_scores:
        payload["scores"] = [{"score": s.score} for s in application.scores]
    return payload


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


async def _read_resume(resume: UploadFile) -> bytes:
    size = 0
    chunks = []
    try:
        while True:
            chunk = await resume.read(1024 * 1024)
            if not chunk:
                break
            size += len(chunk)
            if size > MAX_RESUME_BYTES:
                raise HTTPException(status_code=413, detail="File too large (max 5MB)")
            chunks.append(chunk)
    finally:
        await resume.close()
    return b"".join(chunks)


@router.post("")
async def submit_application(
    job_id: str | None = Form(default=None, alias="jobId"),
    name: str | None = Form(default=None),
    email: str | None = Form(default=None),
    phone: str | None = Form(default=None, alias="phoneNumber"),
    education: str | None = Form(default=None, alias="educationLevel"),
    experience: str | None = Form(default=None, alias="yearsOfExperience"),
    cover_letter: str | None = Form(default=None, alias="coverLetter"),
    resume: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    storage: LocalBlobStorage = Depends(get_storage),
    user=Depends(get_current_user),
):
    job_pk = validate_integer_field(job_id, "Job ID", min_value=1, required=False)

    upload = None
    if resume is not None and resume.filename:
        upload = ResumeUpload(
            filename=resume.filename,
            content_type=resume.content_type,
            data=await _read_resume(resume),
        )

    details = ApplicantDetails(
        full_name=_clean(name),
        email=_clean(email),
        phone=_clean(phone),
        education_level=_clean(education),
        years_of_experience=validate_float_field(experience, "Years of experience"),
        cover_letter=_clean(cover_letter),
    )

    application = ApplicationWorkflow(db, storage=storage).submit(
        job_id=job_pk,
        candidate_id=user["sub"],
        details=details,
        resume=upload,
    )
    return {"success": True, "application": application_to_public(application)}


@router.get("")
def get_applications(
    job_id: str | None = Query(default=None, alias="jobId"),
    check: str | None = Query(default=None),
    db: Session = Depends(get_db),
    storage: LocalBlobStorage = Depends(get_storage),
    user=Depends(get_current_user),
):
    if not job_id:
        raise HTTPException(status_code=400, detail=get_error_message("job_id_required"))
    job_pk = validate_integer_field(job_id, "Job ID", min_value=1)

    workflow = ApplicationWorkflow(db, storage=storage)

    if check == "true":
        try:
            return workflow.check(job_id=job_pk, candidate_id=user["sub"])
        except SQLAlchemyError as e:
            logger.error("Application check failed job_id=%s: %s", job_pk, e)
            raise PersistenceError(get_error_message("check_failed")) from e

    # Recruiter view
    try:
        applications = workflow.list_for_job(
            job_id=job_pk,
            caller_id=user["sub"],
            owner_only=APPLICATIONS_OWNER_ONLY,
        )
    except SQLAlchemyError as e:
        logger.error("Application listing failed job_id=%s: %s", job_pk, e)
        raise PersistenceError(get_error_message("applications_fetch_failed")) from e

    return {"applications": [application_to_public(a, include_scores=True) for a in applications]}


class ApplicationReview(BaseModel):
    applicationId: int | str | None = None
    status: str | None = None
    feedback: str | None = None


@router.patch("")
def review_application(
    payload: ApplicationReview,
    db: Session = Depends(get_db),
    storage: LocalBlobStorage = Depends(get_storage),
    user=Depends(get_current_user),
):
    application_pk = validate_integer_field(payload.applicationId, "Application ID", min_value=1, required=False)
    application = ApplicationWorkflow(db, storage=storage).review(
        application_id=application_pk,
        status=payload.status,
        feedback=payload.feedback,
        caller_id=user["sub"],
    )
    logger.info("Application %s moved to %s by %s", application.id, application.status, user["sub"])
    return {"success": True, "application": application_to_public(application)}
