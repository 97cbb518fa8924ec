"""Dispatch endpoint: the tracker calls this URL to start the hand-off workflow."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import hmac
import json
import logging
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from adapters.github_dispatch import GitHubWorkflowDispatcher
from config import DispatchSettings, get_settings
from utils.exceptions import DispatchError


logger = logging.getLogger(__name__)

app = FastAPI(title="AirDrop Dispatch API")


def get_dispatch_settings() -> DispatchSettings:
    return get_settings().dispatch


def get_dispatcher(settings: DispatchSettings = Depends(get_dispatch_settings)) -> GitHubWorkflowDispatcher:
    return GitHubWorkflowDispatcher(settings)


def _text(value: Any) -> str:
    return str(value or "").strip()


async def _json_body(request: Request) -> Dict[str, Any]:
    if request.method != "POST":
        return {}
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _bearer(header: str) -> str:
    return header[7:].strip() if header.lower().startswith("bearer ") else ""


def _token_matches(expected: str, *candidates: str) -> bool:
    if not expected:
        return False
    wanted = expected.encode("utf-8")
    return any(hmac.compare_digest(wanted, candidate.encode("utf-8")) for candidate in candidates if candidate)


@app.get("/api/health")
def health() -> Dict[str, Any]:
    return {"ok": True, "ts": datetime.now(timezone.utc).isoformat(timespec="seconds")}


@app.api_route("/api/dispatch", methods=["GET", "POST"])
async def dispatch(
    request: Request,
    settings: DispatchSettings = Depends(get_dispatch_settings),
    dispatcher: GitHubWorkflowDispatcher = Depends(get_dispatcher),
) -> JSONResponse:
    query = request.query_params
    body = await _json_body(request)

    task_id = _text(query.get("task_id") or body.get("task_id") or query.get("task") or body.get("task"))

    token_qp = _text(query.get("token"))
    token_hdr = _text(request.headers.get("x-auth"))
    bearer = _bearer(_text(request.headers.get("authorization")))

    expected = _text(settings.shared_dispatch_token)
    auth_ok = _token_matches(expected, token_qp, token_hdr, bearer)

    logger.info(
        "Dispatch incoming: method=%s has_task_id=%s query_token=%s header_token=%s bearer=%s expected_set=%s auth_ok=%s",
        request.method,
        bool(task_id),
        bool(token_qp),
        bool(token_hdr),
        bool(bearer),
        bool(expected),
        auth_ok,
    )

    if not auth_ok:
        return JSONResponse(status_code=401, content={"error": "Unauthorized (bad or missing token)"})
    if not task_id:
        return JSONResponse(status_code=400, content={"error": "Missing task_id"})

    missing = settings.missing()
    if missing:
        logger.error("Dispatch misconfigured, missing: %s", ", ".join(missing))
        return JSONResponse(status_code=500, content={"error": "Server misconfigured (missing GH envs)"})

    try:
        result = await asyncio.to_thread(dispatcher.dispatch, task_id)
    except DispatchError as exc:
        logger.error("Dispatch error: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Internal error"})
    except Exception:
        logger.exception("Unexpected dispatch failure")
        return JSONResponse(status_code=500, content={"error": "Internal error"})

    if result.ok:
        return JSONResponse(status_code=200, content={"ok": True, "task_id": task_id})
    return JSONResponse(
        status_code=502,
        content={"error": "GitHub dispatch failed", "status": result.status_code, "detail": result.detail},
    )

