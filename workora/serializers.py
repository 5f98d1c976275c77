from datetime import datetime

from .models.application import Application
from .models.company import Company
from .models.job import Job
from .models.user import User


def _iso(value):
    return value.isoformat() if isinstance(value, datetime) else value


def user_to_public(user: User, *, include_skills: bool = True) -> dict:
    # Never expose the password hash.
    payload = {
        "user_id": user.user_id,
        "name": user.name,
        "email": user.email,
        "phone_number": user.phone_number,
        "role": user.role,
        "bio": user.bio,
        "resume": user.resume,
        "resume_public_id": user.resume_public_id,
        "profile_pic": user.profile_pic,
        "profile_pic_public_id": user.profile_pic_public_id,
        "subscription": user.subscription,
        "created_at": _iso(user.created_at),
    }
    if include_skills:
        payload["skills"] = [s.name for s in (user.skills or [])]
    return payload


def company_to_public(company: Company, *, include_jobs: bool = False) -> dict:
    payload = {
        "company_id": company.company_id,
        "name": company.name,
        "description": company.description,
        "website": company.website,
        "logo": company.logo,
        "logo_public_id": company.logo_public_id,
        "recruiter_id": company.recruiter_id,
        "created_at": _iso(company.created_at),
    }
    if include_jobs:
        payload["jobs"] = [job_to_public(j) for j in company.jobs]
    return payload


def job_to_public(job: Job, *, include_company: bool = False) -> dict:
    payload = {
        "job_id": job.job_id,
        "title": job.title,
        "description": job.description,
        "salary": job.salary,
        "location": job.location,
        "role": job.role,
        "job_type": job.job_type,
        "work_location": job.work_location,
        "company_id": job.company_id,
        "posted_by_recruiter_id": job.posted_by_recruiter_id,
        "openings": job.openings,
        "is_active": bool(job.is_active),
        "created_at": _iso(job.created_at),
    }
    if include_company and job.company is not None:
        payload["company_name"] = job.company.name
        payload["company_logo"] = job.company.logo
    return payload


def application_to_public(application: Application, *, include_job: bool = False) -> dict:
    payload = {
        "application_id": application.application_id,
        "job_id": application.job_id,
        "applicant_id": application.applicant_id,
        "applicant_email": application.applicant_email,
        "status": application.status,
        "resume": application.resume,
        "applied_at": _iso(application.applied_at),
    }
    if include_job and application.job is not None:
        payload["job_title"] = application.job.title
        payload["job_salary"] = application.job.salary
        payload["job_location"] = application.job.location
    return payload
