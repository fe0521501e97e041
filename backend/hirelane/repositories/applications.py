import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from ..models.application import Application
from ..utils.error_handlers import DuplicateApplicationError

logger = logging.getLogger(__name__)

PAIR_CONSTRAINT = "uq_applications_job_candidate"


def _is_pair_violation(exc: IntegrityError) -> bool:
    """True only when the (job_id, candidate_id) unique constraint fired."""
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint == PAIR_CONSTRAINT
    # SQLite names the columns, not the constraint.
    message = str(exc.orig)
    return PAIR_CONSTRAINT in message or (
        "UNIQUE constraint failed" in message
        and "applications.job_id" in message
        and "applications.candidate_id" in message
    )


class ApplicationRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_for_candidate(self, *, job_id: int, candidate_id: str) -> Application | None:
        return (
            self.db.query(Application)
            .filter(Application.job_id == job_id, Application.candidate_id == candidate_id)
            .first()
        )

    def insert_or_conflict(self, **fields) -> Application:
        """Add and flush a new application inside the caller's transaction.

        The (job_id, candidate_id) unique constraint is the source of truth:
        a violation rolls back and raises DuplicateApplicationError.
        """
        application = Application(**fields)
        self.db.add(application)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            if not _is_pair_violation(e):
                raise
            logger.info(
                "Duplicate application rejected by store job_id=%s candidate_id=%s: %s",
                fields.get("job_id"),
                fields.get("candidate_id"),
                type(e).__name__,
            )
            raise DuplicateApplicationError() from None
        return application

    def list_for_job(self, job_id: int) -> list[Application]:
        return (
            self.db.query(Application)
            .options(selectinload(Application.scores))
            .filter(Application.job_id == job_id)
            .order_by(Application.created_at.desc(), Application.id.desc())
            .all()
        )

    def get_with_job(self, application_id: int) -> Application | None:
        return (
            self.db.query(Application)
            .options(joinedload(Application.job))
            .filter(Application.id == application_id)
            .first()
        )

    def update_status(self, application: Application, *, status: str, feedback: str | None = None) -> Application:
        application.status = status
        if status == "rejected" and feedback:
            application.rejection_feedback = feedback
        self.db.commit()
        self.db.refresh(application)
        return application
