"""
SharePoint Storage Adapter
Microsoft Graph token, folder listing and download helpers
API docs: https://learn.microsoft.com/graph/api/resources/driveitem
"""
from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from config import GraphSettings
from models import FolderEntry
from utils.exceptions import StorageError

from .base import FolderStorage, TokenProvider


logger = logging.getLogger(__name__)


def share_id_from_url(url: str) -> str:
    """Graph share id: ``u!`` + URL-safe base64 of the URL without padding."""
    encoded = base64.urlsafe_b64encode(str(url).encode("utf-8")).decode("ascii")
    return "u!" + encoded.rstrip("=")


def _raise_for_status(response: httpx.Response, what: str) -> None:
    if response.status_code >= 400:
        raise StorageError(
            f"{what} failed: {response.status_code} {response.text[:400]}",
            status_code=response.status_code,
        )


class GraphTokenProvider(TokenProvider):
    """Client-credentials token for Microsoft Graph."""

    def __init__(self, settings: GraphSettings, client: Optional[httpx.Client] = None) -> None:
        self.settings = settings
        self._client = client or httpx.Client(timeout=settings.timeout)

    def close(self) -> None:
        self._client.close()

    def acquire_token(self) -> Optional[str]:
        if not self.settings.has_credentials():
            logger.info("MS_TENANT_ID/MS_CLIENT_ID/MS_CLIENT_SECRET not set; storage disabled")
            return None

        url = f"{self.settings.authority_base.rstrip('/')}/{self.settings.tenant_id}/oauth2/v2.0/token"
        form = {
            "client_id": self.settings.client_id,
            "client_secret": self.settings.client_secret,
            "scope": self.settings.scope,
            "grant_type": "client_credentials",
        }
        try:
            response = self._client.post(url, data=form)
        except httpx.RequestError as exc:
            raise StorageError(f"Graph token request failed: {exc}") from exc
        _raise_for_status(response, "Graph token")
        token = (response.json() or {}).get("access_token")
        return str(token) if token else None


class SharePointStorage(FolderStorage):
    """Folder listing and download through Graph ``driveItem`` endpoints."""

    def __init__(self, settings: GraphSettings, client: Optional[httpx.Client] = None) -> None:
        self.settings = settings
        self.graph_base = settings.graph_base.rstrip("/")
        self._client = client or httpx.Client(timeout=settings.timeout, follow_redirects=True)

    def close(self) -> None:
        self._client.close()

    def _get(self, url: str, token: str, what: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.get(url, headers={"Authorization": f"Bearer {token}"}, **kwargs)
        except httpx.RequestError as exc:
            raise StorageError(f"{what} failed: {exc}") from exc
        _raise_for_status(response, what)
        return response

    def resolve_shared_folder(self, folder_url: str, token: str) -> Dict[str, str]:
        """Drive id and item id of the folder behind a sharing URL."""
        url = f"{self.graph_base}/shares/{share_id_from_url(folder_url)}/driveItem"
        item = self._get(url, token, "shares/driveItem").json() or {}
        parent = item.get("parentReference") or {}
        drive_id = parent.get("driveId") or parent.get("id")
        item_id = item.get("id")
        if not drive_id or not item_id:
            raise StorageError("Could not resolve driveId/itemId from folder URL", folder_url=folder_url)
        return {"drive_id": str(drive_id), "item_id": str(item_id)}

    def list_shared_folder(self, folder_url: str, token: str) -> List[FolderEntry]:
        ref = self.resolve_shared_folder(folder_url, token)
        return self.list_children(ref["drive_id"], ref["item_id"], token)

    def list_children(self, container_id: str, item_id: str, token: str) -> List[FolderEntry]:
        url = f"{self.graph_base}/drives/{container_id}/items/{item_id}/children"
        payload = self._get(url, token, "children list", params={"$top": self.settings.page_size}).json() or {}
        entries = [self._to_entry(container_id, raw) for raw in payload.get("value") or []]
        logger.debug("Listed %d entr(ies) under %s/%s", len(entries), container_id, item_id)
        return entries

    def download(self, container_id: str, item_id: str, token: str) -> bytes:
        url = f"{self.graph_base}/drives/{container_id}/items/{item_id}/content"
        return self._get(url, token, "download").content

    @staticmethod
    def _to_entry(drive_id: str, raw: Dict[str, Any]) -> FolderEntry:
        file_info = raw.get("file") or {}
        parent = raw.get("parentReference") or {}
        return FolderEntry(
            id=str(raw.get("id") or ""),
            container_id=str(parent.get("driveId") or drive_id),
            name=str(raw.get("name") or ""),
            is_folder="folder" in raw and raw.get("folder") is not None,
            mime_type=str(file_info.get("mimeType") or ""),
            size=int(raw.get("size") or 0),
        )
