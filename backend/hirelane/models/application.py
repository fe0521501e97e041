from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        # One application per candidate per job, enforced by the store itself.
        UniqueConstraint("job_id", "candidate_id", name="uq_applications_job_candidate"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    candidate_id = Column(String(128), nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    education_level = Column(String(100), nullable=True)
    years_of_experience = Column(Float, nullable=True)
    cover_letter = Column(Text, nullable=True)
    resume_url = Column(String(1000), nullable=True)
    resume_text = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    rejection_feedback = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    job = relationship("Job", back_populates="applications")
    scores = relationship("Score", back_populates="application", cascade="all, delete-orphan", passive_deletes=True)
