from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    recruiter_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_title = Column(String(150), nullable=False)
    company_name = Column(String(150), nullable=False)
    company_linkedin_url = Column(String(255), nullable=True)
    workplace_type = Column(String(20), nullable=False)  # On-site / Hybrid / Remote
    job_location = Column(String(150), nullable=False)
    employment_type = Column(String(50), nullable=False)
    job_description = Column(Text, nullable=False)
    skills = Column(Text, nullable=True)  # JSON string list
    industry = Column(String(100), nullable=True)
    job_function = Column(String(100), nullable=True)
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    salary_currency = Column(String(5), nullable=True, default="USD")
    status = Column(String(20), nullable=False, default="active")
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    applicants_count = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    recruiter = relationship("User", back_populates="jobs")
    # DB-level cascade removes applications; passive_deletes lets the database do it.
    applications = relationship(
        "Application",
        back_populates="job",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
