from datetime import datetime, timedelta, timezone

from jose import jwt

from workora.models.user import User
from workora.utils.jwt import ALGORITHM, create_access_token, create_reset_token

from helpers import TEST_SECRET, auth_headers, register_token


def test_missing_header_is_rejected(client):
    r = client.get("/users/me")
    assert r.status_code == 401, r.text
    assert r.json()["message"] == "Unauthorized: No token provided"


def test_non_bearer_header_is_rejected(client):
    r = client.get("/users/me", headers={"Authorization": "Token abc"})
    assert r.status_code == 401, r.text
    assert r.json()["message"] == "Unauthorized: No token provided"


def test_garbage_token_is_rejected(client):
    r = client.get("/users/me", headers=auth_headers("not.a.jwt"))
    assert r.status_code == 401, r.text
    assert r.json()["message"] == "Authorization Failed: Please login again"


def test_token_signed_with_other_secret_is_rejected(client):
    register_token(client, email="a@example.com", role="recruiter")
    forged = create_access_token(1, "some-other-secret")
    r = client.get("/users/me", headers=auth_headers(forged))
    assert r.status_code == 401, r.text


def test_expired_token_is_rejected(client):
    register_token(client, email="b@example.com", role="recruiter")
    expired = jwt.encode(
        {"id": 1, "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        TEST_SECRET,
        algorithm=ALGORITHM,
    )
    r = client.get("/users/me", headers=auth_headers(expired))
    assert r.status_code == 401, r.text
    assert r.json()["message"] == "Authorization Failed: Please login again"


def test_reset_token_cannot_authenticate(client):
    register_token(client, email="c@example.com", role="recruiter")
    reset = create_reset_token("c@example.com", TEST_SECRET)
    r = client.get("/users/me", headers=auth_headers(reset))
    assert r.status_code == 401, r.text
    assert r.json()["message"] == "Unauthorized: Invalid token"


def test_token_for_deleted_account_is_rejected(client, db_session):
    token = register_token(client, email="d@example.com", role="recruiter")
    db_session.query(User).filter(User.email == "d@example.com").delete()
    db_session.commit()

    r = client.get("/users/me", headers=auth_headers(token))
    assert r.status_code == 401, r.text
    assert r.json()["message"] == "Unauthorized: User associated with token not found"


def test_jobseeker_cannot_use_recruiter_routes(client):
    token = register_token(client, email="seeker@example.com", role="jobseeker")
    r = client.post("/jobs/new", headers=auth_headers(token), json={"title": "PM"})
    assert r.status_code == 403, r.text
    assert r.json()["message"] == "Forbidden: Only recruiters can perform this action"


def test_recruiter_cannot_apply(client):
    token = register_token(client, email="rec@example.com", role="recruiter")
    r = client.post("/users/apply/job", headers=auth_headers(token), json={"job_id": 1})
    assert r.status_code == 403, r.text
    assert r.json()["message"] == "Forbidden: Only jobseekers can perform this action"


def test_unknown_route_uses_message_body(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json() == {"message": "Not Found"}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200, r.text
    assert r.json() == {"status": "ok", "services": ["auth", "job", "user", "utils"]}
