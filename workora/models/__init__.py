from .application import Application
from .company import Company
from .job import Job
from .outbox import OutboxMessage
from .user import Skill, User, UserSkill

__all__ = ["Application", "Company", "Job", "OutboxMessage", "Skill", "User", "UserSkill"]
