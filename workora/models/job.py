from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, true
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Job(Base):
    __tablename__ = "jobs"

    job_id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    salary = Column(Integer, nullable=False)
    location = Column(String(255), nullable=False)
    role = Column(String(255), nullable=False)
    job_type = Column(String(50), nullable=True)  # Full-time | Part-time | Contract | Internship
    work_location = Column(String(50), nullable=True)  # On-site | Remote | Hybrid
    company_id = Column(Integer, ForeignKey("companies.company_id", ondelete="CASCADE"), nullable=False, index=True)
    posted_by_recruiter_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    openings = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    company = relationship("Company", back_populates="jobs")
    applications = relationship(
        "Application",
        back_populates="job",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
