"""GitHub ``workflow_dispatch`` trigger used by the inbound dispatch endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from config import DispatchSettings
from utils.exceptions import ConfigurationError, DispatchError


logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Upstream answer to a dispatch request."""

    status_code: int
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code == 204


class GitHubWorkflowDispatcher:
    """Starts the hand-off workflow with the task id as its ``task`` input."""

    def __init__(self, settings: DispatchSettings, client: Optional[httpx.Client] = None) -> None:
        self.settings = settings
        self._client = client

    def dispatch(self, task_id: str) -> DispatchResult:
        missing = self.settings.missing()
        if missing:
            raise ConfigurationError("Server misconfigured (missing GH envs)", {"missing": missing})

        url = (
            f"{self.settings.gh_api_base.rstrip('/')}/repos/{self.settings.gh_repo.strip()}"
            f"/actions/workflows/{self.settings.gh_workflow.strip()}/dispatches"
        )
        headers = {
            "Authorization": f"Bearer {self.settings.gh_token.strip()}",
            "Accept": "application/vnd.github+json",
        }
        payload = {"ref": self.settings.gh_ref, "inputs": {"task": task_id}}

        client = self._client or httpx.Client(timeout=self.settings.timeout)
        try:
            response = client.post(url, headers=headers, json=payload)
        except httpx.RequestError as exc:
            raise DispatchError(f"GitHub dispatch request failed: {exc}") from exc
        finally:
            if self._client is None:
                client.close()

        text = response.text or ""
        logger.info("GitHub dispatch response: status=%s body=%s", response.status_code, text[:400])
        return DispatchResult(status_code=response.status_code, detail=text)
