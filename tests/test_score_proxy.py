import json

import httpx
import pytest

from backend.hirelane.services.scoring_client import ScoringClient, ScoringClientError
from backend.hirelane.utils.dependencies import get_scoring_client
from backend.hirelane.utils.jwt import create_access_token


def _auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


def _use_backend(app, handler):
    client = ScoringClient(
        base_url="http://scoring.internal/",
        api_key="secret-key",
        transport=httpx.MockTransport(handler),
    )
    app.dependency_overrides[get_scoring_client] = lambda: client


def test_score_passes_upstream_response_through(app, client):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["api_key"] = request.headers.get("X-API-Key")
        seen["body"] = request.content
        return httpx.Response(200, json={"scored": 3, "job_id": 7})

    _use_backend(app, handler)

    r = client.post("/score", json={"job_id": 7}, headers=_auth_headers("rec-1"))
    assert r.status_code == 200, r.text
    assert r.json() == {"scored": 3, "job_id": 7}
    assert seen["url"] == "http://scoring.internal/score"
    assert seen["api_key"] == "secret-key"
    assert json.loads(seen["body"]) == {"job_id": 7}


def test_score_forwards_upstream_error_status(app, client):
    _use_backend(app, lambda request: httpx.Response(422, json={"error": "No applications to score"}))

    r = client.post("/score", json={"job_id": 7}, headers=_auth_headers("rec-1"))
    assert r.status_code == 422, r.text
    assert r.json()["error"] == "No applications to score"


def test_score_upstream_error_without_message(app, client):
    _use_backend(app, lambda request: httpx.Response(503, json={}))

    r = client.post("/score", json={"job_id": 7}, headers=_auth_headers("rec-1"))
    assert r.status_code == 503, r.text
    assert r.json()["error"] == "Failed to score applications"


def test_score_unreachable_backend_is_500(app, client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    _use_backend(app, handler)

    r = client.post("/score", json={"job_id": 7}, headers=_auth_headers("rec-1"))
    assert r.status_code == 500, r.text
    assert r.json()["error"] == "Internal server error"


def test_score_non_json_reply_is_500(app, client):
    _use_backend(app, lambda request: httpx.Response(200, text="<html>oops</html>"))

    r = client.post("/score", json={"job_id": 7}, headers=_auth_headers("rec-1"))
    assert r.status_code == 500, r.text


def test_score_without_configuration_is_500(client):
    r = client.post("/score", json={"job_id": 7}, headers=_auth_headers("rec-1"))
    assert r.status_code == 500, r.text
    assert r.json()["error"] == "Server configuration error"


def test_score_requires_job_id(app, client):
    _use_backend(app, lambda request: httpx.Response(200, json={}))

    r = client.post("/score", json={}, headers=_auth_headers("rec-1"))
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "Job ID is required"


def test_score_requires_authentication(client):
    r = client.post("/score", json={"job_id": 7})
    assert r.status_code == 401, r.text


def test_client_refuses_missing_configuration():
    with pytest.raises(ScoringClientError):
        ScoringClient(base_url="", api_key="k")
    with pytest.raises(ScoringClientError):
        ScoringClient(base_url="http://scoring.internal", api_key="")
