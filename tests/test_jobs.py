from workora.models.application import Application
from workora.models.company import Company
from workora.models.job import Job

from helpers import auth_headers, create_company, create_job, register_token


def _recruiter_with_company(client, *, email: str = "rec@example.com", company: str = "Acme"):
    token = register_token(client, email=email, role="recruiter")
    r = create_company(client, token, name=company)
    assert r.status_code == 201, r.text
    return token, r.json()["company"]["company_id"]


# -------------------- Companies --------------------

def test_create_company_uploads_logo(client, uploads):
    token = register_token(client, email="rec@example.com", role="recruiter")
    r = create_company(client, token, name="Acme")
    assert r.status_code == 201, r.text
    company = r.json()["company"]
    assert company["name"] == "Acme"
    assert company["logo"] == "https://media.test/asset-1"
    assert company["logo_public_id"] == "asset-1"
    assert uploads.calls[0]["buffer"].startswith("data:image/png;base64,")


def test_create_company_requires_logo(client):
    token = register_token(client, email="rec@example.com", role="recruiter")
    r = create_company(client, token, name="Acme", with_logo=False)
    assert r.status_code == 400, r.text
    assert r.json()["message"] == "Company logo file is required"


def test_create_company_missing_fields(client):
    token = register_token(client, email="rec@example.com", role="recruiter")
    r = client.post("/jobs/company/new", headers=auth_headers(token), data={"name": "Acme"})
    assert r.status_code == 400, r.text
    assert r.json()["message"].startswith("Please provide all required fields")


def test_create_company_duplicate_name(client, uploads):
    token, _ = _recruiter_with_company(client)
    other = register_token(client, email="rec2@example.com", role="recruiter")

    r = create_company(client, other, name="Acme")
    assert r.status_code == 409, r.text
    assert r.json()["message"] == "Company with this name: Acme already exists"
    # The duplicate is caught before any upload happens.
    assert len(uploads.calls) == 1


def test_upload_failure_surfaces_as_500(client, uploads, db_session):
    token = register_token(client, email="rec@example.com", role="recruiter")
    uploads.fail = True
    r = create_company(client, token, name="Acme")
    assert r.status_code == 500, r.text
    assert r.json()["message"] == "Failed to upload file"
    assert db_session.query(Company).count() == 0


def test_list_my_companies_only_returns_own(client):
    token, _ = _recruiter_with_company(client, company="Acme")
    other, _ = _recruiter_with_company(client, email="rec2@example.com", company="Globex")

    r = client.get("/jobs/company/all", headers=auth_headers(token))
    assert r.status_code == 200, r.text
    assert [c["name"] for c in r.json()["companies"]] == ["Acme"]


def test_get_company_is_public_and_includes_jobs(client):
    token, company_id = _recruiter_with_company(client)
    assert create_job(client, token, company_id).status_code == 201

    r = client.get(f"/jobs/company/{company_id}")
    assert r.status_code == 200, r.text
    company = r.json()["company"]
    assert company["name"] == "Acme"
    assert [j["title"] for j in company["jobs"]] == ["Backend Engineer"]


def test_get_company_not_found(client):
    r = client.get("/jobs/company/999")
    assert r.status_code == 404, r.text
    assert r.json()["message"] == "Company not found"


def test_delete_company_cascades_to_jobs_and_applications(client, db_session):
    token, company_id = _recruiter_with_company(client)
    job_id = create_job(client, token, company_id).json()["job"]["job_id"]
    seeker = register_token(client, email="seeker@example.com", role="jobseeker")
    r = client.post("/users/apply/job", headers=auth_headers(seeker), json={"job_id": job_id})
    assert r.status_code == 201, r.text

    r = client.delete(f"/jobs/company/{company_id}", headers=auth_headers(token))
    assert r.status_code == 200, r.text
    assert r.json()["message"] == "Company and all associated jobs have been deleted successfully"

    assert db_session.query(Company).count() == 0
    assert db_session.query(Job).count() == 0
    assert db_session.query(Application).count() == 0


def test_delete_company_not_owner(client, db_session):
    _, company_id = _recruiter_with_company(client)
    other = register_token(client, email="rec2@example.com", role="recruiter")

    r = client.delete(f"/jobs/company/{company_id}", headers=auth_headers(other))
    assert r.status_code == 403, r.text
    assert r.json()["message"] == "Forbidden: You are not allowed to delete this company"
    assert db_session.query(Company).count() == 1


def test_delete_company_jobseeker_forbidden(client, db_session):
    _, company_id = _recruiter_with_company(client)
    seeker = register_token(client, email="seeker@example.com", role="jobseeker")

    r = client.delete(f"/jobs/company/{company_id}", headers=auth_headers(seeker))
    assert r.status_code == 403, r.text
    assert r.json()["message"] == "Forbidden: You are not allowed to delete this company"
    assert db_session.query(Company).count() == 1


def test_create_company_name_race_is_conflict(client, db_session, monkeypatch):
    _recruiter_with_company(client, company="Acme")
    other = register_token(client, email="rec2@example.com", role="recruiter")
    # Simulate another recruiter committing the same name after the lookup.
    monkeypatch.setattr("workora.api.job._company_name_taken", lambda db, name: False)

    r = create_company(client, other, name="Acme")
    assert r.status_code == 409, r.text
    assert r.json()["message"] == "Company with this name: Acme already exists"
    assert db_session.query(Company).count() == 1


def test_delete_company_not_found(client):
    token = register_token(client, email="rec@example.com", role="recruiter")
    r = client.delete("/jobs/company/999", headers=auth_headers(token))
    assert r.status_code == 404, r.text


# -------------------- Jobs --------------------

def test_create_job_success(client):
    token, company_id = _recruiter_with_company(client)
    r = create_job(client, token, company_id)
    assert r.status_code == 201, r.text
    job = r.json()["job"]
    assert job["title"] == "Backend Engineer"
    assert job["salary"] == 120000
    assert job["openings"] == 2
    assert job["is_active"] is True
    assert job["company_id"] == company_id


def test_create_job_missing_fields(client):
    token, company_id = _recruiter_with_company(client)
    r = client.post("/jobs/new", headers=auth_headers(token), json={"title": "PM", "company_id": company_id})
    assert r.status_code == 400, r.text
    assert r.json()["message"] == "Please provide all required fields"


def test_create_job_for_someone_elses_company(client):
    _, company_id = _recruiter_with_company(client)
    other = register_token(client, email="rec2@example.com", role="recruiter")
    r = create_job(client, other, company_id)
    assert r.status_code == 404, r.text
    assert r.json()["message"] == "Company not found"


def test_create_job_rejects_bad_numbers(client):
    token, company_id = _recruiter_with_company(client)
    r = create_job(client, token, company_id, openings=0)
    assert r.status_code == 400, r.text

    r = create_job(client, token, company_id, salary="lots")
    assert r.status_code == 400, r.text


def test_update_job_partial(client):
    token, company_id = _recruiter_with_company(client)
    job = create_job(client, token, company_id).json()["job"]

    r = client.put(
        f"/jobs/{job['job_id']}",
        headers=auth_headers(token),
        json={"title": "Staff Engineer", "is_active": False},
    )
    assert r.status_code == 200, r.text
    updated = r.json()["job"]
    assert updated["title"] == "Staff Engineer"
    assert updated["is_active"] is False
    # Untouched fields keep their values.
    assert updated["salary"] == job["salary"]
    assert updated["location"] == job["location"]


def test_update_job_not_poster(client):
    token, company_id = _recruiter_with_company(client)
    job_id = create_job(client, token, company_id).json()["job"]["job_id"]
    other = register_token(client, email="rec2@example.com", role="recruiter")

    r = client.put(f"/jobs/{job_id}", headers=auth_headers(other), json={"title": "Hijacked"})
    assert r.status_code == 403, r.text
    assert r.json()["message"] == "Forbidden: You are not allowed to update this job"


def test_update_job_not_found(client):
    token = register_token(client, email="rec@example.com", role="recruiter")
    r = client.put("/jobs/999", headers=auth_headers(token), json={"title": "X"})
    assert r.status_code == 404, r.text
    assert r.json()["message"] == "Job not found"


def test_get_job_is_public(client):
    token, company_id = _recruiter_with_company(client)
    job_id = create_job(client, token, company_id).json()["job"]["job_id"]

    r = client.get(f"/jobs/{job_id}")
    assert r.status_code == 200, r.text
    job = r.json()["job"]
    assert job["company_name"] == "Acme"
    assert job["company_logo"] == "https://media.test/asset-1"

    assert client.get("/jobs/999").status_code == 404


def test_search_jobs_filters_and_orders(client):
    token, company_id = _recruiter_with_company(client)
    first = create_job(client, token, company_id, title="Python Developer", location="Berlin").json()["job"]
    second = create_job(client, token, company_id, title="Senior python engineer", location="Remote").json()["job"]
    create_job(client, token, company_id, title="Designer", location="Berlin")
    closed = create_job(client, token, company_id, title="Python Intern", location="Berlin").json()["job"]
    client.put(f"/jobs/{closed['job_id']}", headers=auth_headers(token), json={"is_active": False})

    r = client.get("/jobs/all")
    assert r.status_code == 200, r.text
    titles = [j["title"] for j in r.json()["jobs"]]
    assert "Python Intern" not in titles
    assert titles == ["Designer", "Senior python engineer", "Python Developer"]

    r = client.get("/jobs/all", params={"title": "PYTHON"})
    assert [j["job_id"] for j in r.json()["jobs"]] == [second["job_id"], first["job_id"]]

    r = client.get("/jobs/all", params={"title": "python", "location": "berl"})
    assert [j["job_id"] for j in r.json()["jobs"]] == [first["job_id"]]


def test_search_jobs_treats_wildcards_literally(client):
    token, company_id = _recruiter_with_company(client)
    create_job(client, token, company_id, title="Backend Engineer")

    r = client.get("/jobs/all", params={"title": "%"})
    assert r.status_code == 200, r.text
    assert r.json()["jobs"] == []
