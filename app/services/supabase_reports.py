# File: app/services/supabase_reports.py
# Project: citycare-backend

from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from pydantic import ValidationError

from app.schemas.report import Coordinates, ReportCreate, ReportOut
from app.services.reports import AlreadyUpvoted, RemoteError, ReportNotFound

logger = logging.getLogger(__name__)

TIMEOUT = 15


def _row_to_out(row: dict) -> ReportOut:
    try:
        return _map_row(row)
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise RemoteError(f"Report backend returned an unreadable row: {e}", e) from e


def _map_row(row: dict) -> ReportOut:
    return ReportOut(
        id=str(row["id"]),
        title=row["title"],
        category=row["category"],
        description=row.get("description") or "",
        status=row.get("status") or "Pending",
        priority=row.get("priority") or "Medium",
        coordinates=Coordinates(lat=row["lat"], lng=row["lng"]),
        image_url=row.get("image_url") or None,
        upvotes=row.get("upvotes") or 0,
        estimated_cost=row.get("estimated_cost") or 0,
        user_id=row.get("user_id"),
        client_ref=row.get("client_ref"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _jsonable(fields: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in fields.items():
        if key == "coordinates":
            if value is not None:
                out["lat"] = value["lat"]
                out["lng"] = value["lng"]
            continue
        out[key] = value.value if hasattr(value, "value") else value
    return out


class SupabaseReportRepository:
    """
    Reports stored in the hosted backend, through its PostgREST interface.

    Uses the service-role key; the ``reports`` table needs a unique
    ``client_ref`` column so retried drains are ignored as duplicates.
    """

    def __init__(self, base_url: str, service_role: str, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._headers = {
            "apikey": service_role,
            "Authorization": f"Bearer {service_role}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = dict(self._headers)
        headers.update(kwargs.pop("headers", {}))
        url = f"{self.base_url}/rest/v1/{path}"
        try:
            r = self._session.request(method, url, headers=headers, timeout=TIMEOUT, **kwargs)
        except requests.RequestException as e:
            raise RemoteError(f"Report backend unreachable: {e}", e) from e
        if r.status_code >= 400:
            try:
                message = r.json().get("message") or r.text
            except ValueError:
                message = r.text
            raise RemoteError(f"Report backend error {r.status_code}: {message}")
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise RemoteError(f"Report backend returned invalid JSON: {e}", e) from e

    def create(self, draft: ReportCreate, owner_id: Optional[Any] = None,
               client_ref: Optional[str] = None) -> ReportOut:
        body = {
            "user_id": owner_id,
            "title": draft.title.strip(),
            "category": draft.category.value,
            "description": draft.description,
            "status": "Pending",
            "priority": draft.priority.value,
            "lat": draft.coordinates.lat,
            "lng": draft.coordinates.lng,
            "image_url": draft.image_url,
            "client_ref": client_ref,
        }
        prefer = "return=representation"
        if client_ref:
            prefer += ",resolution=ignore-duplicates"
        rows = self._request("POST", "reports", json=body,
                             params={"on_conflict": "client_ref"} if client_ref else None,
                             headers={"Prefer": prefer})
        if rows:
            return _row_to_out(rows[0])
        if client_ref:
            # duplicate ignored by the backend; return the row already stored
            rows = self._request("GET", "reports", params={"client_ref": f"eq.{client_ref}", "select": "*"})
            if rows:
                return _row_to_out(rows[0])
        raise RemoteError("Report backend returned no row for create")

    def list(self) -> list[ReportOut]:
        rows = self._request("GET", "reports", params={"select": "*", "order": "created_at.desc"})
        return [_row_to_out(r) for r in rows or []]

    def get(self, report_id: str) -> ReportOut:
        rows = self._request("GET", "reports", params={"id": f"eq.{report_id}", "select": "*"})
        if not rows:
            raise ReportNotFound(f"Report {report_id} not found")
        return _row_to_out(rows[0])

    def update(self, report_id: str, fields: dict[str, Any]) -> ReportOut:
        rows = self._request("PATCH", "reports", params={"id": f"eq.{report_id}"},
                             json=_jsonable(fields), headers={"Prefer": "return=representation"})
        if not rows:
            raise ReportNotFound(f"Report {report_id} not found")
        return _row_to_out(rows[0])

    def delete(self, report_id: str) -> None:
        rows = self._request("DELETE", "reports", params={"id": f"eq.{report_id}"},
                             headers={"Prefer": "return=representation"})
        if not rows:
            raise ReportNotFound(f"Report {report_id} not found")

    def upvote(self, report_id: str, user_id: Any) -> ReportOut:
        try:
            self._request("POST", "rpc/upvote_report", json={"report_id": report_id, "user_id": user_id})
        except RemoteError as e:
            if "already upvoted" in str(e).lower():
                raise AlreadyUpvoted("You have already upvoted this report", e) from e
            raise
        return self.get(report_id)

    def upvoted_by(self, user_id: Any) -> list[str]:
        rows = self._request("GET", "report_upvotes", params={"user_id": f"eq.{user_id}", "select": "report_id"})
        return [str(r["report_id"]) for r in rows or []]
