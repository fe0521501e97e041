import logging

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from ..models.job import Job
from ..utils.error_handlers import NotFoundError

logger = logging.getLogger(__name__)


class JobRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields) -> Job:
        job = Job(**fields)
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        return job

    def get(self, job_id: int) -> Job | None:
        return self.db.query(Job).filter(Job.id == job_id).first()

    def get_or_raise(self, job_id: int) -> Job:
        job = self.get(job_id)
        if job is None:
            raise NotFoundError("Job not found")
        return job

    def _active(self):
        return self.db.query(Job).filter(Job.status == "active")

    def count_active(self) -> int:
        return self._active().count()

    def list_active(self, *, offset: int = 0, limit: int | None = None) -> list[Job]:
        q = self._active().order_by(Job.created_at.desc(), Job.id.desc()).offset(offset)
        if limit is not None:
            q = q.limit(limit)
        return q.all()

    def list_active_with_recruiter(self) -> list[Job]:
        return (
            self._active()
            .options(joinedload(Job.recruiter))
            .order_by(Job.created_at.desc(), Job.id.desc())
            .all()
        )

    def list_for_recruiter(self, recruiter_id: str, *, status: str | None = None) -> list[Job]:
        q = self.db.query(Job).filter(Job.recruiter_id == recruiter_id)
        if status:
            q = q.filter(Job.status == status)
        return q.order_by(Job.created_at.desc(), Job.id.desc()).all()

    def delete(self, job: Job) -> None:
        self.db.delete(job)
        self.db.commit()

    def increment_applicants_count(self, job_id: int) -> None:
        """Atomic counter bump; joins the caller's open transaction (no commit)."""
        self.db.execute(
            update(Job)
            .where(Job.id == job_id)
            .values(applicants_count=Job.applicants_count + 1)
            .execution_options(synchronize_session=False)
        )
