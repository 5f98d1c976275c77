TEST_SECRET = "test-secret"

PDF_BYTES = b"%PDF-1.4\n%Fake resume\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client, *, email: str, role: str, password: str = "Testpass123!", name: str = "Test User",
             phone: str = "5550100", bio: str | None = None, with_resume: bool | None = None):
    data = {"name": name, "email": email, "password": password, "phoneNumber": phone, "role": role}
    if bio is not None:
        data["bio"] = bio
    if with_resume is None:
        with_resume = role == "jobseeker"
    files = {"file": ("resume.pdf", PDF_BYTES, "application/pdf")} if with_resume else None
    return client.post("/auth/register", data=data, files=files)


def register_token(client, *, email: str, role: str, **kwargs) -> str:
    r = register(client, email=email, role=role, **kwargs)
    assert r.status_code == 201, r.text
    return r.json()["token"]


def create_company(client, token: str, *, name: str = "Acme", with_logo: bool = True):
    files = {"file": ("logo.png", PNG_BYTES, "image/png")} if with_logo else None
    return client.post(
        "/jobs/company/new",
        headers=auth_headers(token),
        data={"name": name, "description": "We build things", "website": "https://acme.test"},
        files=files,
    )


def create_job(client, token: str, company_id: int, **overrides):
    body = {
        "title": "Backend Engineer",
        "description": "Python services",
        "salary": 120000,
        "location": "Berlin",
        "role": "Engineering",
        "job_type": "Full-time",
        "work_location": "Hybrid",
        "company_id": company_id,
        "openings": 2,
    }
    body.update(overrides)
    return client.post("/jobs/new", headers=auth_headers(token), json=body)
