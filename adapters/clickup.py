"""
ClickUp Tracker Adapter
Task reads, comments and attachment uploads over the ClickUp v2 REST API
API docs: https://clickup.com/api
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

import httpx

from config import ClickUpSettings
from models import CustomField, FieldValue, TaskAttachment, WorkItem
from utils.exceptions import ConfigurationError, SubmissionError, TrackerError

from .base import WorkItemTracker


logger = logging.getLogger(__name__)

_TASK_URL_RE = re.compile(r"/t/(?:[^/?#]+/)?([^/?#]+)", re.IGNORECASE)


def parse_task_id(value: str) -> str:
    """Accept a bare task id or a task URL such as ``https://app.clickup.com/t/abc123``."""
    text = str(value or "").strip()
    match = _TASK_URL_RE.search(text)
    return match.group(1) if match else text


class ClickUpTracker(WorkItemTracker):
    """
    ClickUp work-item tracker

    Every call is a single blocking request; HTTP failures are raised as
    ``TrackerError`` (reads, uploads) or ``SubmissionError`` (comments).
    """

    def __init__(self, settings: ClickUpSettings, client: Optional[httpx.Client] = None) -> None:
        if not str(settings.token or "").strip():
            raise ConfigurationError("Missing CLICKUP_TOKEN", {"setting": "CLICKUP_TOKEN"})
        self.settings = settings
        self.api_base = settings.api_base.rstrip("/")
        self._client = client or httpx.Client(timeout=settings.timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ClickUpTracker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def _auth(self) -> Dict[str, str]:
        return {"Authorization": str(self.settings.token)}

    # ------------------------------------------------------------------
    # WorkItemTracker
    # ------------------------------------------------------------------

    def get_item(self, item_id: str) -> WorkItem:
        path = f"/task/{item_id}"
        try:
            response = self._client.get(f"{self.api_base}{path}", headers=self._auth)
        except httpx.RequestError as exc:
            raise TrackerError(f"ClickUp GET {path} failed: {exc}") from exc
        if response.status_code >= 400:
            raise TrackerError(f"ClickUp GET {path} failed: {response.status_code}", status_code=response.status_code)
        return self._to_work_item(item_id, response.json() or {})

    def post_comment(self, item_id: str, text: str, *, notify: bool = False) -> dict:
        path = f"/task/{item_id}/comment"
        payload = {"comment_text": text, "notify_all": bool(notify)}
        try:
            response = self._client.post(f"{self.api_base}{path}", headers=self._auth, json=payload)
        except httpx.RequestError as exc:
            raise SubmissionError(f"ClickUp POST {path} failed: {exc}") from exc
        if response.status_code >= 400:
            raise SubmissionError(
                f"ClickUp POST {path} failed: {response.status_code} {response.text[:400]}",
                status_code=response.status_code,
            )
        return dict(response.json() or {})

    def upload_attachment(self, item_id: str, filename: str, data: bytes) -> str:
        path = f"/task/{item_id}/attachment"
        try:
            response = self._client.post(
                f"{self.api_base}{path}",
                headers=self._auth,
                files={"attachment": (filename, data)},
            )
        except httpx.RequestError as exc:
            raise TrackerError(f"ClickUp attachment upload failed: {exc}") from exc
        if response.status_code >= 400:
            raise TrackerError(
                f"ClickUp attachment upload failed: {response.status_code} {response.text[:400]}",
                status_code=response.status_code,
            )
        payload = response.json() or {}
        return str((payload.get("data") or {}).get("url") or payload.get("url") or "")

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def _to_work_item(self, item_id: str, data: Dict[str, Any]) -> WorkItem:
        status = data.get("status") or {}
        if isinstance(status, dict):
            status_label = status.get("status") or status.get("name") or ""
        else:
            status_label = str(status)

        custom_fields = [
            CustomField(
                id=str(cf.get("id") or ""),
                name=str(cf.get("name") or ""),
                type=str(cf.get("type") or ""),
                value=FieldValue.from_raw(cf.get("value")),
            )
            for cf in data.get("custom_fields") or []
            if isinstance(cf, dict)
        ]

        attachments = [
            TaskAttachment(
                name=str(att.get("title") or att.get("name") or ""),
                mime_type=str(att.get("mime_type") or ""),
                url=str(att.get("url") or ""),
                path=str(att.get("path") or ""),
            )
            for att in data.get("attachments") or []
            if isinstance(att, dict)
        ]

        return WorkItem(
            id=str(data.get("id") or item_id),
            title=str(data.get("name") or ""),
            status_label=str(status_label),
            custom_fields=custom_fields,
            description=str(data.get("description") or data.get("text_content") or ""),
            attachments=attachments,
        )
