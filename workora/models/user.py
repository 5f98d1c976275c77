from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash, never the plaintext
    phone_number = Column(String(50), nullable=False)
    role = Column(String(20), nullable=False)  # recruiter / jobseeker
    bio = Column(Text, nullable=True)
    resume = Column(String(500), nullable=True)
    resume_public_id = Column(String(255), nullable=True)
    profile_pic = Column(String(500), nullable=True)
    profile_pic_public_id = Column(String(255), nullable=True)
    subscription = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    skills = relationship("Skill", secondary="user_skills", order_by="Skill.name", viewonly=True)
    companies = relationship("Company", back_populates="recruiter")


class Skill(Base):
    __tablename__ = "skills"

    skill_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)


class UserSkill(Base):
    __tablename__ = "user_skills"
    __table_args__ = (
        UniqueConstraint("user_id", "skill_id", name="uq_user_skills_user_skill"),
    )

    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True)
    skill_id = Column(Integer, ForeignKey("skills.skill_id", ondelete="CASCADE"), primary_key=True)
