from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from backend.hirelane.models.application import Application
from backend.hirelane.models.job import Job
from backend.hirelane.repositories.jobs import JobRepository
from backend.hirelane.utils.jwt import create_access_token


def _auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


def _job_payload(**overrides) -> dict:
    payload = {
        "job_title": "Platform Engineer",
        "company_name": "Acme",
        "company_linkedin_url": "https://www.linkedin.com/company/acme",
        "workplace_type": "Hybrid",
        "job_location": "Lisbon",
        "employment_type": "Full-time",
        "job_description": "Own our Kubernetes platform.",
        "skills": ["kubernetes", "terraform"],
        "industry": "Software",
        "job_function": "Engineering",
        "salary_min": 50000,
        "salary_max": 70000,
    }
    payload.update(overrides)
    return payload


# --- create ---


def test_recruiter_can_create_job(client, make_user):
    make_user("rec-1", role="recruiter")

    r = client.post("/jobs", json=_job_payload(), headers=_auth_headers("rec-1"))
    assert r.status_code == 201, r.text
    job = r.json()["job"]
    assert job["recruiter_id"] == "rec-1"
    assert job["status"] == "active"
    assert job["skills"] == ["kubernetes", "terraform"]
    assert job["applicants_count"] == 0
    assert job["salary_currency"] == "USD"


def test_create_job_defaults_expiry_to_thirty_days(client, make_user):
    make_user("rec-1", role="recruiter")

    r = client.post("/jobs", json=_job_payload(), headers=_auth_headers("rec-1"))
    assert r.status_code == 201, r.text
    expiry = datetime.fromisoformat(r.json()["job"]["expiry_date"])
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    delta = expiry - datetime.now(timezone.utc)
    assert timedelta(days=29) < delta <= timedelta(days=30)


def test_candidate_cannot_create_job(client, make_user):
    make_user("cand-1", role="candidate")

    r = client.post("/jobs", json=_job_payload(), headers=_auth_headers("cand-1"))
    assert r.status_code == 403, r.text


def test_unknown_user_cannot_create_job(client):
    r = client.post("/jobs", json=_job_payload(), headers=_auth_headers("ghost"))
    assert r.status_code == 404, r.text
    assert r.json()["error"] == "User not found"


def test_create_job_requires_authentication(client):
    r = client.post("/jobs", json=_job_payload())
    assert r.status_code == 401, r.text


@pytest.mark.parametrize(
    "overrides,expected",
    [
        ({"job_title": ""}, "Missing required field: job_title"),
        ({"skills": []}, "Missing required field: skills"),
        ({"skills": ["  "]}, "Skills must be a non-empty array"),
        ({"industry": None}, "Missing required field: industry"),
        ({"company_linkedin_url": "https://example.com/acme"}, "Invalid LinkedIn URL format"),
        ({"salary_min": 90000, "salary_max": 10000}, "Salary minimum cannot be greater than maximum"),
        ({"expiry_date": "next tuesday"}, "Invalid expiry_date format. Use ISO 8601 format."),
    ],
)
def test_create_job_validation(client, make_user, overrides, expected):
    make_user("rec-1", role="recruiter")

    r = client.post("/jobs", json=_job_payload(**overrides), headers=_auth_headers("rec-1"))
    assert r.status_code == 400, r.text
    assert r.json()["error"] == expected


def test_create_job_rejects_unknown_workplace_type(client, make_user):
    make_user("rec-1", role="recruiter")

    r = client.post("/jobs", json=_job_payload(workplace_type="Spaceship"), headers=_auth_headers("rec-1"))
    assert r.status_code == 400, r.text


# --- listings ---


def test_authenticated_listing_includes_recruiter(client, make_user, make_job):
    make_user("rec-1", role="recruiter")
    make_job("rec-1")
    make_job("rec-1", status="closed")

    r = client.get("/jobs", headers=_auth_headers("cand-1"))
    assert r.status_code == 200, r.text
    jobs = r.json()["jobs"]
    assert len(jobs) == 1
    assert jobs[0]["recruiter"]["id"] == "rec-1"


def test_my_jobs_only_returns_own_jobs(client, make_user, make_job):
    make_user("rec-1", role="recruiter")
    make_user("rec-2", role="recruiter")
    mine_active = make_job("rec-1")
    mine_closed = make_job("rec-1", status="closed")
    make_job("rec-2")

    r = client.get("/jobs/my-jobs", headers=_auth_headers("rec-1"))
    assert r.status_code == 200, r.text
    assert {j["id"] for j in r.json()["jobs"]} == {mine_active.id, mine_closed.id}

    r = client.get("/jobs/my-jobs", params={"status": "closed"}, headers=_auth_headers("rec-1"))
    assert [j["id"] for j in r.json()["jobs"]] == [mine_closed.id]


def test_public_listing_paginates_active_jobs(client, make_user, make_job):
    make_user("rec-1", role="recruiter")
    for i in range(5):
        make_job("rec-1", job_title=f"Job {i}")
    make_job("rec-1", status="closed")

    r = client.get("/jobs/public", params={"page": 2, "limit": 2})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["total"] == 5
    assert body["page"] == 2
    assert body["limit"] == 2
    assert body["totalPages"] == 3
    assert body["hasMore"] is True
    assert len(body["jobs"]) == 2


def test_public_listing_clamps_bad_paging_values(client):
    r = client.get("/jobs/public", params={"page": "zero", "limit": 500})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["page"] == 1
    assert body["limit"] == 50
    assert body["total"] == 0
    assert body["hasMore"] is False


# --- public detail ---


def test_public_job_detail(client, make_user, make_job, sleeps):
    make_user("rec-1", role="recruiter")
    job = make_job("rec-1")

    r = client.get(f"/jobs/public/{job.id}")
    assert r.status_code == 200, r.text
    assert r.json()["id"] == job.id
    assert r.json()["job_title"] == "Backend Engineer"
    assert sleeps == []


def test_public_job_detail_not_found(client, sleeps):
    r = client.get("/jobs/public/4242")
    assert r.status_code == 404, r.text
    assert r.json()["error"] == "Job not found"
    assert sleeps == []


@pytest.mark.parametrize("job_id", ["abc", "0", "%20"])
def test_public_job_detail_invalid_id(client, job_id):
    r = client.get(f"/jobs/public/{job_id}")
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "Valid Job ID is required"


def _flaky_lookup(monkeypatch, failures: int):
    calls = {"n": 0}
    real = JobRepository.get_or_raise

    def flaky(self, job_id):
        calls["n"] += 1
        if calls["n"] <= failures:
            raise OperationalError("SELECT jobs", {}, Exception("server closed the connection unexpectedly"))
        return real(self, job_id)

    monkeypatch.setattr(JobRepository, "get_or_raise", flaky)
    return calls


def test_public_job_detail_retries_transient_failures(client, monkeypatch, make_user, make_job, sleeps):
    make_user("rec-1", role="recruiter")
    job = make_job("rec-1")
    calls = _flaky_lookup(monkeypatch, failures=2)

    r = client.get(f"/jobs/public/{job.id}")
    assert r.status_code == 200, r.text
    assert calls["n"] == 3
    assert sleeps == [1.0, 2.0]


def test_public_job_detail_gives_up_after_retries(client, monkeypatch, sleeps):
    calls = _flaky_lookup(monkeypatch, failures=10)

    r = client.get("/jobs/public/1")
    assert r.status_code == 500, r.text
    assert r.json()["error"] == "Failed to fetch job data"
    assert calls["n"] == 3
    assert sleeps == [1.0, 2.0]


# --- delete ---


def test_owner_can_delete_job_and_applications_go_with_it(client, db_session, make_user, make_job):
    make_user("rec-1", role="recruiter")
    job = make_job("rec-1")
    db_session.add(Application(job_id=job.id, candidate_id="cand-1", status="pending"))
    db_session.commit()

    r = client.delete(f"/jobs/{job.id}", headers=_auth_headers("rec-1"))
    assert r.status_code == 200, r.text
    assert r.json() == {"success": True, "message": "Job deleted successfully"}

    db_session.expire_all()
    assert db_session.get(Job, job.id) is None
    assert db_session.query(Application).count() == 0


def test_other_recruiter_cannot_delete_job(client, db_session, make_user, make_job):
    make_user("rec-1", role="recruiter")
    make_user("rec-2", role="recruiter")
    job = make_job("rec-1")

    r = client.delete(f"/jobs/{job.id}", headers=_auth_headers("rec-2"))
    assert r.status_code == 403, r.text

    db_session.expire_all()
    assert db_session.get(Job, job.id) is not None


def test_delete_unknown_job_is_404(client, make_user):
    make_user("rec-1", role="recruiter")

    r = client.delete("/jobs/999", headers=_auth_headers("rec-1"))
    assert r.status_code == 404, r.text
