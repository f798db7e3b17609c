"""Hosted-backend report repository, exercised against a stub HTTP session."""
from __future__ import annotations

import json

import pytest
import requests

from app.schemas.report import ReportCreate
from app.services.reports import AlreadyUpvoted, RemoteError, ReportNotFound
from app.services.supabase_reports import SupabaseReportRepository

ROW = {
    "id": "7d5c9a1e-2f0b-4c39-9a55-0d1a2b3c4d5e",
    "title": "Broken street light",
    "category": "Lighting",
    "description": "Lamp flickers all night",
    "status": "In Progress",
    "priority": "High",
    "lat": 45.1,
    "lng": 13.9,
    "image_url": "",
    "upvotes": 4,
    "estimated_cost": 650,
    "user_id": "0b8f6c2e-5f77-4a0f-8d7c-1d2e3f4a5b6c",
    "created_at": "2025-02-01T10:00:00+00:00",
}


class StubResponse:
    def __init__(self, status_code: int, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.text = json.dumps(payload) if payload is not None else ""
        self.content = self.text.encode()

    def json(self):
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


class StubSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _repo(*responses) -> tuple[SupabaseReportRepository, StubSession]:
    session = StubSession(*responses)
    return SupabaseReportRepository("https://city.supabase.co/", "service-key", session=session), session


def test_rows_map_to_reports() -> None:
    repo, session = _repo(StubResponse(200, [ROW]))

    [report] = repo.list()

    assert report.status.value == "In Progress"
    assert report.coordinates.lat == 45.1
    assert report.image_url is None
    assert report.user_id == ROW["user_id"]
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", "https://city.supabase.co/rest/v1/reports")
    assert kwargs["headers"]["apikey"] == "service-key"
    assert kwargs["params"]["order"] == "created_at.desc"


def test_create_sends_client_ref_and_ignores_duplicates() -> None:
    repo, session = _repo(StubResponse(201, [dict(ROW, client_ref="offline-1")]))
    draft = ReportCreate(title="Broken street light", category="Lighting",
                         coordinates={"lat": 45.1, "lng": 13.9})

    report = repo.create(draft, owner_id=ROW["user_id"], client_ref="offline-1")

    assert report.client_ref == "offline-1"
    _, _, kwargs = session.calls[0]
    assert kwargs["json"]["client_ref"] == "offline-1"
    assert kwargs["json"]["category"] == "Lighting"
    assert "resolution=ignore-duplicates" in kwargs["headers"]["Prefer"]


def test_duplicate_create_returns_stored_row() -> None:
    repo, session = _repo(StubResponse(201, []), StubResponse(200, [dict(ROW, client_ref="offline-1")]))
    draft = ReportCreate(title="Broken street light", category="Lighting",
                         coordinates={"lat": 45.1, "lng": 13.9})

    report = repo.create(draft, client_ref="offline-1")

    assert report.id == ROW["id"]
    assert session.calls[1][2]["params"]["client_ref"] == "eq.offline-1"


def test_network_failure_becomes_remote_error() -> None:
    repo, _ = _repo(requests.ConnectionError("no route to host"))

    with pytest.raises(RemoteError) as info:
        repo.list()
    assert isinstance(info.value.cause, requests.ConnectionError)


def test_already_upvoted_message_maps_to_already_upvoted() -> None:
    repo, _ = _repo(StubResponse(400, {"message": "User has already upvoted this report"}))

    with pytest.raises(AlreadyUpvoted):
        repo.upvote(ROW["id"], ROW["user_id"])


def test_other_backend_errors_stay_remote_errors() -> None:
    repo, _ = _repo(StubResponse(500, {"message": "internal"}))

    with pytest.raises(RemoteError) as info:
        repo.upvote(ROW["id"], ROW["user_id"])
    assert not isinstance(info.value, AlreadyUpvoted)


def test_update_of_missing_row_is_not_found() -> None:
    repo, session = _repo(StubResponse(200, []))

    with pytest.raises(ReportNotFound):
        repo.update("missing", {"status": "Resolved", "coordinates": {"lat": 1.0, "lng": 2.0}})
    assert session.calls[0][2]["json"] == {"status": "Resolved", "lat": 1.0, "lng": 2.0}


def test_unreadable_row_becomes_remote_error() -> None:
    repo, _ = _repo(StubResponse(200, [dict(ROW, status="Closed")]))

    with pytest.raises(RemoteError):
        repo.get(ROW["id"])


def test_invalid_json_body_becomes_remote_error() -> None:
    garbled = StubResponse(200)
    garbled.content = b"<html>gateway</html>"
    repo, _ = _repo(garbled)

    with pytest.raises(RemoteError):
        repo.list()


def test_repositories_expose_every_report_operation() -> None:
    from app.services.reports import ReportRepository, SqlReportRepository

    operations = {"create", "list", "get", "update", "delete", "upvote", "upvoted_by"}
    for cls in (ReportRepository, SqlReportRepository, SupabaseReportRepository):
        assert operations <= set(vars(cls)), cls.__name__
