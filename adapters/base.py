"""Adapter boundaries for the tracker, storage and spreadsheet collaborators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from models import FolderEntry, WorkItem


Sheet = List[List[Any]]


class TokenProvider(ABC):
    """Identity provider for the storage backend."""

    @abstractmethod
    def acquire_token(self) -> Optional[str]:
        """Bearer token, or ``None`` when storage credentials are not configured."""


class FolderStorage(ABC):
    """Listing and download primitives of the cloud storage backend."""

    @abstractmethod
    def list_shared_folder(self, folder_url: str, token: str) -> List[FolderEntry]:
        """Children of the folder behind a sharing URL."""

    @abstractmethod
    def list_children(self, container_id: str, item_id: str, token: str) -> List[FolderEntry]:
        """Children of a folder entry returned by a previous listing."""

    @abstractmethod
    def download(self, container_id: str, item_id: str, token: str) -> bytes:
        """Raw bytes of a file entry."""


class SpreadsheetReader(ABC):
    """Cell-grid reader for spreadsheet bytes."""

    @abstractmethod
    def parse(self, data: bytes) -> Sequence[Sheet]:
        """Every sheet as rows of raw cell values."""


class WorkItemTracker(ABC):
    """Work-item tracker operations used by the pipeline."""

    @abstractmethod
    def get_item(self, item_id: str) -> WorkItem:
        """Read a work item; failures raise ``TrackerError``."""

    @abstractmethod
    def post_comment(self, item_id: str, text: str, *, notify: bool = False) -> dict:
        """Post a comment; failures raise ``SubmissionError``."""

    @abstractmethod
    def upload_attachment(self, item_id: str, filename: str, data: bytes) -> str:
        """Attach a file and return its remote URL."""
