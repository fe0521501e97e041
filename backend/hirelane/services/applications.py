"""
Application lifecycle: submission, existence check, listing and review.

The workflow only talks to narrow collaborators (repositories over one
SQLAlchemy session, a BlobStorage, and the resume text extractor), so it can
be exercised without the HTTP layer.
"""
import logging
import re
import time
from dataclasses import dataclass
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.application import Application
from ..repositories.applications import ApplicationRepository
from ..repositories.jobs import JobRepository
from .resume_text import extract_resume_text, file_extension
from .storage import BlobStorage
from ..utils.error_handlers import (
    DuplicateApplicationError,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    UnauthorizedError,
    ValidationError,
    get_error_message,
)

logger = logging.getLogger(__name__)

REVIEW_STATUSES = ("shortlisted", "rejected")


@dataclass(frozen=True)
class ResumeUpload:
    filename: str
    content_type: str | None
    data: bytes


@dataclass(frozen=True)
class ApplicantDetails:
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    education_level: str | None = None
    years_of_experience: float | None = None
    cover_letter: str | None = None


_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def resume_object_path(*, job_id: int, candidate_id: str, ext: str, now_ms: int) -> str:
    # Identity subjects may carry "/", "." or "|"; the object name must stay a single path segment.
    safe_candidate = _UNSAFE_NAME_CHARS.sub("_", candidate_id)
    name = f"{safe_candidate}-{now_ms}"
    if ext:
        name = f"{name}.{ext}"
    return f"{job_id}/{name}"


class ApplicationWorkflow:
    def __init__(
        self,
        db: Session,
        *,
        storage: BlobStorage,
        clock: Callable[[], float] = time.time,
    ):
        self.db = db
        self.jobs = JobRepository(db)
        self.applications = ApplicationRepository(db)
        self.storage = storage
        self._clock = clock

    def submit(
        self,
        *,
        job_id: int | None,
        candidate_id: str | None,
        details: ApplicantDetails,
        resume: ResumeUpload | None,
    ) -> Application:
        if not candidate_id:
            raise UnauthorizedError()
        if not job_id or resume is None or not resume.filename:
            raise ValidationError(get_error_message("missing_fields"))

        self.jobs.get_or_raise(job_id)

        if self.applications.find_for_candidate(job_id=job_id, candidate_id=candidate_id):
            raise DuplicateApplicationError()

        resume_text = extract_resume_text(resume.data, resume.filename)

        object_path = resume_object_path(
            job_id=job_id,
            candidate_id=candidate_id,
            ext=file_extension(resume.filename),
            now_ms=int(self._clock() * 1000),
        )
        self.storage.upload(object_path, resume.data, resume.content_type)
        public_url = self.storage.public_url(object_path)

        try:
            application = self.applications.insert_or_conflict(
                job_id=job_id,
                candidate_id=candidate_id,
                full_name=details.full_name,
                email=details.email,
                phone=details.phone,
                education_level=details.education_level,
                years_of_experience=details.years_of_experience,
                cover_letter=details.cover_letter,
                resume_url=public_url,
                resume_text=resume_text,
                status="pending",
            )
            # Same transaction as the insert: count and rows cannot drift.
            self.jobs.increment_applicants_count(job_id)
            self.db.commit()
        except DuplicateApplicationError:
            self.storage.remove(object_path)
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            self.storage.remove(object_path)
            logger.error("Failed to save application job_id=%s candidate_id=%s: %s", job_id, candidate_id, e)
            raise PersistenceError(get_error_message("application_save_failed")) from e

        self.db.refresh(application)
        logger.info(
            "Application submitted id=%s job_id=%s candidate_id=%s text_chars=%d",
            application.id,
            job_id,
            candidate_id,
            len(resume_text),
        )
        return application

    def check(self, *, job_id: int, candidate_id: str) -> dict:
        application = self.applications.find_for_candidate(job_id=job_id, candidate_id=candidate_id)
        return {
            "hasApplied": application is not None,
            "application": {"id": application.id, "status": application.status} if application else None,
        }

    def list_for_job(self, *, job_id: int, caller_id: str, owner_only: bool = False) -> list[Application]:
        if owner_only:
            job = self.jobs.get_or_raise(job_id)
            if job.recruiter_id != caller_id:
                raise ForbiddenError()
        return self.applications.list_for_job(job_id)

    def review(
        self,
        *,
        application_id: int | None,
        status: str | None,
        feedback: str | None,
        caller_id: str,
    ) -> Application:
        if not application_id or not status:
            raise ValidationError(get_error_message("missing_fields"))
        if status not in REVIEW_STATUSES:
            raise ValidationError("Invalid status. Must be shortlisted or rejected")

        application = self.applications.get_with_job(application_id)
        if application is None:
            raise NotFoundError(get_error_message("application_not_found"))

        if application.job is None or application.job.recruiter_id != caller_id:
            logger.warning(
                "Review denied application_id=%s caller=%s",
                application_id,
                caller_id,
            )
            raise ForbiddenError()

        if application.status != "pending":
            raise ValidationError("Application has already been reviewed")

        feedback = (feedback or "").strip() or None
        try:
            return self.applications.update_status(application, status=status, feedback=feedback)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to update application id=%s: %s", application_id, e)
            raise PersistenceError(get_error_message("application_update_failed")) from e
