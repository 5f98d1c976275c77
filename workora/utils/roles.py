from enum import Enum

from fastapi import Depends

from ..models.user import User
from .dependencies import get_current_user
from .error_handlers import ForbiddenError, ValidationError, get_error_message


class Role(str, Enum):
    RECRUITER = "recruiter"
    JOBSEEKER = "jobseeker"

    @classmethod
    def parse(cls, value: str | None) -> "Role":
        try:
            return cls(value or "")
        except ValueError:
            raise ValidationError(get_error_message("invalid_role")) from None


def role_of(user: User) -> Role:
    return Role(user.role)


def _role_required(required_role: Role, action: str):
    def check_role(user: User = Depends(get_current_user)) -> User:
        if role_of(user) is not required_role:
            raise ForbiddenError(f"Forbidden: Only {required_role.value}s can {action}")
        return user
    return check_role


recruiter_only = _role_required(Role.RECRUITER, "perform this action")
jobseeker_only = _role_required(Role.JOBSEEKER, "perform this action")
