import logging

from fastapi import Depends, Request
from jose import JWTError
from sqlalchemy.orm import Session, selectinload

from ..database import get_db
from ..models.user import User
from .error_handlers import UnauthorizedError, get_error_message
from .jwt import decode_token

logger = logging.getLogger(__name__)


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization") or ""
    if not auth_header.startswith("Bearer "):
        raise UnauthorizedError(get_error_message("no_token"))
    token = auth_header.split(" ", 1)[1].strip()
    if not token:
        raise UnauthorizedError(get_error_message("no_token"))
    return token


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Resolve the account behind `Authorization: Bearer <token>`.

    Fails closed: every failure, including unexpected lookup errors, is a 401.
    """
    token = _bearer_token(request)

    try:
        payload = decode_token(token, request.app.state.settings.jwt_secret)
    except JWTError as e:
        logger.info("Rejected bearer token: %s", e)
        raise UnauthorizedError(get_error_message("auth_failed")) from None

    user_id = payload.get("id")
    if not user_id:
        raise UnauthorizedError(get_error_message("invalid_token"))

    try:
        user = (
            db.query(User)
            .options(selectinload(User.skills))
            .filter(User.user_id == int(user_id))
            .first()
        )
    except Exception as e:
        logger.error("Authorization lookup failed: %s", e)
        raise UnauthorizedError(get_error_message("auth_failed")) from None

    if not user:
        raise UnauthorizedError(get_error_message("token_user_missing"))
    return user


def get_settings(request: Request):
    return request.app.state.settings
