from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class User(Base):
    __tablename__ = "users"

    # Stable subject issued by the identity provider
    id = Column(String(128), primary_key=True)
    email = Column(String(255), index=True, nullable=True)
    role = Column(String(20), nullable=True)  # candidate / recruiter, write-once
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    jobs = relationship("Job", back_populates="recruiter", passive_deletes=True)
