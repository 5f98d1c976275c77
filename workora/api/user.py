import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from ..database import commit_and_refresh, get_db, insert_for
from ..models.application import Application
from ..models.job import Job
from ..models.user import Skill, User, UserSkill
from ..serializers import application_to_public, user_to_public
from ..services.uploads import UploadClient, file_to_data_uri, get_upload_client
from ..utils.dependencies import get_current_user
from ..utils.error_handlers import ConflictError, NotFoundError, ValidationError, get_error_message
from ..utils.roles import jobseeker_only
from ..utils.validation import clean_optional, validate_integer_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


class ProfileUpdate(BaseModel):
    name: str | None = None
    phone_number: str | None = None
    bio: str | None = None


class SkillRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    skill_name: str | None = Field(default=None, alias="skillName")


class ApplyRequest(BaseModel):
    job_id: int | None = None


def _skill_name_or_400(payload: SkillRequest) -> str:
    skill_name = clean_optional(payload.skill_name)
    if not skill_name:
        raise ValidationError("Please provide a skill name")
    return skill_name


@router.get("/me")
def my_profile(user: User = Depends(get_current_user)):
    return user_to_public(user)


@router.get("/{user_id:int}")
def get_user_profile(
    user_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    user = (
        db.query(User)
        .options(selectinload(User.skills))
        .filter(User.user_id == user_id)
        .first()
    )
    if not user:
        raise NotFoundError(get_error_message("user_not_found"))
    return user_to_public(user)


@router.put("/update/profile")
def update_user_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    # Absent or empty values keep the current ones.
    user.name = clean_optional(payload.name) or user.name
    user.phone_number = clean_optional(payload.phone_number) or user.phone_number
    user.bio = clean_optional(payload.bio) or user.bio
    db.commit()
    db.refresh(user)

    return {"message": "Profile updated successfully", "user": user_to_public(user)}


@router.put("/update/profile-pic")
async def update_profile_picture(
    file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    uploads: UploadClient = Depends(get_upload_client),
    user: User = Depends(get_current_user),
):
    if file is None:
        raise ValidationError("No image file uploaded")

    buffer = await file_to_data_uri(file)
    uploaded = await uploads.upload(buffer, public_id=user.profile_pic_public_id)

    user.profile_pic = uploaded.url
    user.profile_pic_public_id = uploaded.public_id
    await run_in_threadpool(commit_and_refresh, db, user)

    public = await run_in_threadpool(user_to_public, user)
    return {"message": "Profile picture updated successfully", "user": public}


@router.put("/update/resume")
async def update_resume(
    file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    uploads: UploadClient = Depends(get_upload_client),
    user: User = Depends(get_current_user),
):
    if file is None:
        raise ValidationError("No resume file uploaded")

    buffer = await file_to_data_uri(file)
    uploaded = await uploads.upload(buffer, public_id=user.resume_public_id)

    user.resume = uploaded.url
    user.resume_public_id = uploaded.public_id
    await run_in_threadpool(commit_and_refresh, db, user)

    public = await run_in_threadpool(user_to_public, user)
    return {"message": "Resume updated successfully", "user": public}


@router.post("/skill/add")
def add_skill_to_user(
    payload: SkillRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    skill_name = _skill_name_or_400(payload)
    user_id = user.user_id

    try:
        if not db.query(User.user_id).filter(User.user_id == user_id).first():
            raise NotFoundError(get_error_message("user_not_found"))

        # No-op update on conflict so RETURNING yields the existing id too.
        skill_id = db.execute(
            insert_for(db, Skill)
            .values(name=skill_name)
            .on_conflict_do_update(index_elements=[Skill.name], set_={"name": skill_name})
            .returning(Skill.skill_id)
        ).scalar_one()

        inserted = db.execute(
            insert_for(db, UserSkill)
            .values(user_id=user_id, skill_id=skill_id)
            .on_conflict_do_nothing(index_elements=[UserSkill.user_id, UserSkill.skill_id])
            .returning(UserSkill.skill_id)
        ).first()

        db.commit()
    except Exception:
        db.rollback()
        raise

    if inserted is None:
        return {"message": "User already possesses this skill"}
    return {"message": f"Skill {skill_name} added successfully"}


@router.delete("/skill/delete")
def delete_skill_from_user(
    payload: SkillRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    skill_name = _skill_name_or_400(payload)

    association = (
        db.query(UserSkill)
        .join(Skill, Skill.skill_id == UserSkill.skill_id)
        .filter(UserSkill.user_id == user.user_id, Skill.name == skill_name)
        .first()
    )
    if not association:
        raise NotFoundError("Skill not found")

    db.delete(association)
    db.commit()

    return {"message": f"Skill {skill_name} was deleted successfully"}


# -------------------- Applications (jobseeker side) --------------------

@router.post("/apply/job", status_code=201)
def apply_for_job(
    payload: ApplyRequest,
    db: Session = Depends(get_db),
    user: User = Depends(jobseeker_only),
):
    job_id = validate_integer_field(payload.job_id, "Job ID", min_value=1)

    job = db.query(Job).filter(Job.job_id == job_id).first()
    if not job:
        raise NotFoundError(get_error_message("job_not_found"))
    if not job.is_active:
        raise ValidationError("You cannot apply to an inactive job")
    if not user.resume:
        raise ValidationError("Please add a resume to your profile before applying")

    existing = (
        db.query(Application.application_id)
        .filter(Application.job_id == job_id, Application.applicant_id == user.user_id)
        .first()
    )
    if existing:
        raise ConflictError(get_error_message("already_applied"))

    application = Application(
        job_id=job_id,
        applicant_id=user.user_id,
        applicant_email=user.email,
        resume=user.resume,
        status="Submitted",
    )
    try:
        db.add(application)
        db.commit()
        db.refresh(application)
    except IntegrityError:
        db.rollback()
        raise ConflictError(get_error_message("already_applied")) from None

    return {"message": "Applied for job successfully", "application": application_to_public(application)}


@router.get("/application/all")
def my_applications(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    applications = (
        db.query(Application)
        .options(joinedload(Application.job))
        .filter(Application.applicant_id == user.user_id)
        .order_by(Application.applied_at.desc(), Application.application_id.desc())
        .all()
    )
    return {"applications": [application_to_public(a, include_job=True) for a in applications]}
