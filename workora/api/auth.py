import logging
from typing import assert_never

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..config import Settings
from ..database import commit_and_refresh, get_db
from ..models.user import User
from ..serializers import user_to_public
from ..services.notifications import SEND_MAIL_TOPIC, NotificationRelay, get_notifier
from ..services.templates import forgot_password_template
from ..services.uploads import UploadClient, file_to_data_uri, get_upload_client
from ..utils.dependencies import get_settings
from ..utils.error_handlers import NotFoundError, ValidationError, get_error_message
from ..utils.jwt import create_access_token, create_reset_token, decode_reset_token
from ..utils.roles import Role
from ..utils.security import hash_password, verify_password
from ..utils.validation import clean_optional, require_fields

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class ForgotPasswordRequest(BaseModel):
    email: str | None = None


class ResetPasswordRequest(BaseModel):
    password: str | None = None


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _hash_or_400(password: str) -> str:
    try:
        return hash_password(password)
    except ValueError:
        raise ValidationError(get_error_message("password_too_long")) from None


def _email_taken(db: Session, email: str) -> bool:
    return db.query(User.user_id).filter(User.email == email).first() is not None


def _reserve_account(db: Session, user: User) -> None:
    # Flushing inserts the row inside the open transaction, so a concurrent
    # registration for the same email fails here, before any file is uploaded.
    try:
        db.add(user)
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ValidationError(get_error_message("email_exists")) from None


@router.post("/register", status_code=201)
async def register_user(
    name: str | None = Form(default=None),
    email: str | None = Form(default=None),
    password: str | None = Form(default=None),
    phone_number: str | None = Form(default=None, alias="phoneNumber"),
    role: str | None = Form(default=None),
    bio: str | None = Form(default=None),
    file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    uploads: UploadClient = Depends(get_upload_client),
    settings: Settings = Depends(get_settings),
):
    require_fields(
        get_error_message("missing_register_fields"),
        name=name, email=email, password=password, phone_number=phone_number, role=role,
    )
    email = _normalize_email(email)

    if await run_in_threadpool(_email_taken, db, email):
        raise ValidationError(get_error_message("email_exists"))

    account_role = Role.parse(role)

    if account_role is Role.RECRUITER:
        resume_file = None
    elif account_role is Role.JOBSEEKER:
        if file is None:
            raise ValidationError(get_error_message("resume_required"))
        resume_file = file
    else:
        assert_never(account_role)

    hashed = await run_in_threadpool(_hash_or_400, password)

    user = User(
        name=name.strip(),
        email=email,
        password=hashed,
        phone_number=phone_number.strip(),
        role=account_role.value,
        bio=clean_optional(bio),
    )
    await run_in_threadpool(_reserve_account, db, user)

    try:
        if resume_file is not None:
            buffer = await file_to_data_uri(resume_file)
            uploaded = await uploads.upload(buffer)
            user.resume = uploaded.url
            user.resume_public_id = uploaded.public_id
        await run_in_threadpool(commit_and_refresh, db, user)
    except Exception:
        await run_in_threadpool(db.rollback)
        raise

    token = create_access_token(user.user_id, settings.jwt_secret)
    logger.info("Registered %s account %s", user.role, user.user_id)

    return {
        "message": "User registered successfully",
        "user": await run_in_threadpool(user_to_public, user),
        "token": token,
    }


@router.post("/login")
def login_user(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    require_fields(get_error_message("missing_login_fields"), email=payload.email, password=payload.password)

    user = (
        db.query(User)
        .options(selectinload(User.skills))
        .filter(User.email == _normalize_email(payload.email))
        .first()
    )

    # Unknown email and wrong password are indistinguishable to the caller.
    if not user or not verify_password(payload.password, user.password):
        raise ValidationError(get_error_message("invalid_credentials"))

    token = create_access_token(user.user_id, settings.jwt_secret)
    return {
        "message": "User logged in successfully",
        "user": user_to_public(user),
        "token": token,
    }


@router.post("/forgot-password")
def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    notifier: NotificationRelay = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
):
    require_fields("Email is required", email=payload.email)
    email = _normalize_email(payload.email)

    # Same acknowledgement whether or not the account exists.
    acknowledgement = {"message": get_error_message("reset_link_sent")}

    user = db.query(User.user_id, User.email).filter(User.email == email).first()
    if not user:
        return acknowledgement

    reset_token = create_reset_token(user.email, settings.jwt_secret)
    reset_link = f"{settings.frontend_url}/reset/{reset_token}"

    notifier.publish(
        SEND_MAIL_TOPIC,
        {
            "to": user.email,
            "subject": "Reset Your Password - Work-Ora",
            "html": forgot_password_template(reset_link),
        },
    )
    return acknowledgement


@router.post("/reset-password/{token}")
def reset_password(
    token: str,
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    require_fields("Password is required", password=payload.password)

    email = decode_reset_token(token, settings.jwt_secret)
    if not email:
        raise ValidationError(get_error_message("invalid_reset_token"))

    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise NotFoundError(get_error_message("user_not_found"))

    user.password = _hash_or_400(payload.password)
    db.commit()

    return {"message": "Password reset successfully"}
