import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from ..database import commit_and_refresh, get_db
from ..models.application import Application
from ..models.company import Company
from ..models.job import Job
from ..models.user import User
from ..serializers import application_to_public, company_to_public, job_to_public
from ..services.notifications import SEND_MAIL_TOPIC, NotificationRelay, get_notifier
from ..services.templates import application_status_template
from ..services.uploads import UploadClient, file_to_data_uri, get_upload_client
from ..utils.dependencies import get_current_user
from ..utils.error_handlers import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    get_error_message,
)
from ..utils.roles import recruiter_only
from ..utils.validation import (
    clean_optional,
    require_fields,
    validate_application_status,
    validate_integer_field,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


class JobCreate(BaseModel):
    title: str | None = None
    description: str | None = None
    salary: int | None = None
    location: str | None = None
    role: str | None = None
    job_type: str | None = None
    work_location: str | None = None
    company_id: int | None = None
    openings: int | None = None


class JobUpdate(JobCreate):
    is_active: bool | None = None


class ApplicationStatusUpdate(BaseModel):
    status: str | None = None


def _owned_company(db: Session, *, company_id: int | None, recruiter_id: int) -> Company:
    company = None
    if company_id is not None:
        company = (
            db.query(Company)
            .filter(Company.company_id == int(company_id), Company.recruiter_id == int(recruiter_id))
            .first()
        )
    if not company:
        raise NotFoundError(get_error_message("company_not_found"))
    return company


def _posted_job(db: Session, *, job_id: int, recruiter_id: int, action: str) -> Job:
    job = db.query(Job).filter(Job.job_id == int(job_id)).first()
    if not job:
        raise NotFoundError(get_error_message("job_not_found"))
    if job.posted_by_recruiter_id != int(recruiter_id):
        raise ForbiddenError(f"Forbidden: You are not allowed to {action}")
    return job


# -------------------- Companies --------------------

def _company_name_taken(db: Session, name: str) -> bool:
    return db.query(Company.company_id).filter(Company.name == name).first() is not None


def _save_company(db: Session, company: Company) -> Company:
    name = company.name
    try:
        db.add(company)
        return commit_and_refresh(db, company)
    except IntegrityError:
        raise ConflictError(f"Company with this name: {name} already exists") from None


@router.post("/company/new", status_code=201)
async def create_company(
    name: str | None = Form(default=None),
    description: str | None = Form(default=None),
    website: str | None = Form(default=None),
    file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    uploads: UploadClient = Depends(get_upload_client),
    user: User = Depends(recruiter_only),
):
    require_fields(
        "Please provide all required fields: name, description, website",
        name=name, description=description, website=website,
    )
    name = name.strip()

    if await run_in_threadpool(_company_name_taken, db, name):
        raise ConflictError(f"Company with this name: {name} already exists")

    if file is None:
        raise ValidationError("Company logo file is required")

    buffer = await file_to_data_uri(file)
    uploaded = await uploads.upload(buffer)

    company = Company(
        name=name,
        description=description.strip(),
        website=website.strip(),
        logo=uploaded.url,
        logo_public_id=uploaded.public_id,
        recruiter_id=user.user_id,
    )
    company = await run_in_threadpool(_save_company, db, company)

    return {"message": "Company created successfully", "company": company_to_public(company)}


@router.delete("/company/{company_id:int}")
def delete_company(
    company_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    company = db.query(Company).filter(Company.company_id == company_id).first()
    if not company:
        raise NotFoundError(get_error_message("company_not_found"))

    if company.recruiter_id != user.user_id:
        raise ForbiddenError("Forbidden: You are not allowed to delete this company")

    try:
        db.delete(company)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Company %s deleted by recruiter %s", company_id, user.user_id)
    return {"message": "Company and all associated jobs have been deleted successfully"}


@router.get("/company/all")
def list_my_companies(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    companies = (
        db.query(Company)
        .filter(Company.recruiter_id == user.user_id)
        .order_by(Company.created_at.desc(), Company.company_id.desc())
        .all()
    )
    return {"companies": [company_to_public(c) for c in companies]}


@router.get("/company/{company_id:int}")
def get_company(company_id: int, db: Session = Depends(get_db)):
    company = (
        db.query(Company)
        .options(selectinload(Company.jobs))
        .filter(Company.company_id == company_id)
        .first()
    )
    if not company:
        raise NotFoundError(get_error_message("company_not_found"))
    return {"company": company_to_public(company, include_jobs=True)}


# -------------------- Jobs --------------------

@router.post("/new", status_code=201)
def create_job(
    payload: JobCreate,
    db: Session = Depends(get_db),
    user: User = Depends(recruiter_only),
):
    require_fields(
        get_error_message("missing_job_fields"),
        title=payload.title,
        description=payload.description,
        salary=payload.salary,
        location=payload.location,
        role=payload.role,
        openings=payload.openings,
    )
    salary = validate_integer_field(payload.salary, "Salary", min_value=0)
    openings = validate_integer_field(payload.openings, "Openings", min_value=1)

    company = _owned_company(db, company_id=payload.company_id, recruiter_id=user.user_id)

    job = Job(
        title=payload.title.strip(),
        description=payload.description.strip(),
        salary=salary,
        location=payload.location.strip(),
        role=payload.role.strip(),
        job_type=clean_optional(payload.job_type),
        work_location=clean_optional(payload.work_location),
        company_id=company.company_id,
        posted_by_recruiter_id=user.user_id,
        openings=openings,
    )
    db.add(job)
    db.commit()
    db.refresh(job)

    return {"message": "Job created successfully", "job": job_to_public(job)}


@router.put("/{job_id:int}")
def update_job(
    job_id: int,
    payload: JobUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(recruiter_only),
):
    job = _posted_job(db, job_id=job_id, recruiter_id=user.user_id, action="update this job")

    if payload.company_id is not None and payload.company_id != job.company_id:
        job.company_id = _owned_company(db, company_id=payload.company_id, recruiter_id=user.user_id).company_id
    if payload.title is not None:
        require_fields("Title cannot be empty", title=payload.title)
        job.title = payload.title.strip()
    if payload.description is not None:
        require_fields("Description cannot be empty", description=payload.description)
        job.description = payload.description.strip()
    if payload.salary is not None:
        job.salary = validate_integer_field(payload.salary, "Salary", min_value=0)
    if payload.location is not None:
        require_fields("Location cannot be empty", location=payload.location)
        job.location = payload.location.strip()
    if payload.role is not None:
        require_fields("Role cannot be empty", role=payload.role)
        job.role = payload.role.strip()
    if payload.job_type is not None:
        job.job_type = clean_optional(payload.job_type)
    if payload.work_location is not None:
        job.work_location = clean_optional(payload.work_location)
    if payload.openings is not None:
        job.openings = validate_integer_field(payload.openings, "Openings", min_value=1)
    if payload.is_active is not None:
        job.is_active = payload.is_active

    db.commit()
    db.refresh(job)

    return {"message": "Job updated successfully", "job": job_to_public(job)}


@router.get("/all")
def search_jobs(
    title: str | None = Query(default=None, description="Case-insensitive partial match on title"),
    location: str | None = Query(default=None, description="Case-insensitive partial match on location"),
    db: Session = Depends(get_db),
):
    q = db.query(Job).options(joinedload(Job.company)).filter(Job.is_active.is_(True))

    title = clean_optional(title)
    if title:
        q = q.filter(Job.title.icontains(title, autoescape=True))
    location = clean_optional(location)
    if location:
        q = q.filter(Job.location.icontains(location, autoescape=True))

    jobs = q.order_by(Job.created_at.desc(), Job.job_id.desc()).all()
    return {"jobs": [job_to_public(j, include_company=True) for j in jobs]}


@router.get("/{job_id:int}")
def get_job(job_id: int, db: Session = Depends(get_db)):
    job = db.query(Job).options(joinedload(Job.company)).filter(Job.job_id == job_id).first()
    if not job:
        raise NotFoundError(get_error_message("job_not_found"))
    return {"job": job_to_public(job, include_company=True)}


# -------------------- Applications (recruiter side) --------------------

@router.get("/application/{job_id:int}")
def list_job_applications(
    job_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(recruiter_only),
):
    job = _posted_job(db, job_id=job_id, recruiter_id=user.user_id, action="view these applications")

    applications = (
        db.query(Application)
        .filter(Application.job_id == job.job_id)
        .order_by(Application.applied_at.desc(), Application.application_id.desc())
        .all()
    )
    return {"applications": [application_to_public(a) for a in applications]}


@router.put("/application/{application_id:int}")
def update_application_status(
    application_id: int,
    payload: ApplicationStatusUpdate,
    db: Session = Depends(get_db),
    notifier: NotificationRelay = Depends(get_notifier),
    user: User = Depends(recruiter_only),
):
    status = validate_application_status(payload.status)

    application = (
        db.query(Application)
        .options(joinedload(Application.job))
        .filter(Application.application_id == application_id)
        .first()
    )
    if not application:
        raise NotFoundError(get_error_message("application_not_found"))

    job = application.job
    if job is None or job.posted_by_recruiter_id != user.user_id:
        raise ForbiddenError("Forbidden: You are not allowed to update this application")

    application.status = status.value
    db.commit()
    db.refresh(application)

    # Best-effort: the relay logs and swallows its own failures.
    notifier.publish(
        SEND_MAIL_TOPIC,
        {
            "to": application.applicant_email,
            "subject": "Application Update - Work-Ora",
            "html": application_status_template(job.title, status.value),
        },
    )

    return {"message": "Application updated successfully", "application": application_to_public(application)}
