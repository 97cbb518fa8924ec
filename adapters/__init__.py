"""Collaborator adapters: tracker, storage, spreadsheet reader and job trigger."""

from .base import FolderStorage, SpreadsheetReader, TokenProvider, WorkItemTracker
from .clickup import ClickUpTracker, parse_task_id
from .github_dispatch import DispatchResult, GitHubWorkflowDispatcher
from .sharepoint import GraphTokenProvider, SharePointStorage, share_id_from_url
from .spreadsheet import OpenpyxlSpreadsheetReader

__all__ = [
    "ClickUpTracker",
    "DispatchResult",
    "FolderStorage",
    "GitHubWorkflowDispatcher",
    "GraphTokenProvider",
    "OpenpyxlSpreadsheetReader",
    "SharePointStorage",
    "SpreadsheetReader",
    "TokenProvider",
    "WorkItemTracker",
    "parse_task_id",
    "share_id_from_url",
]
