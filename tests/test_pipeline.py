"""End-to-end pipeline runs against in-memory collaborators."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from adapters.base import FolderStorage, SpreadsheetReader, TokenProvider, WorkItemTracker
from config import ClickUpSettings, CommentSettings, FieldSettings, GateSettings, Settings
from models import CustomField, FieldValue, FolderEntry, PipelineStage, TaskAttachment, WorkItem
from pipeline import NO_IMAGES_LINE, NO_LINKS_LINE, QAHandoffPipeline
from utils.exceptions import StorageError, SubmissionError, TrackerError


FOLDER_URL = "https://contoso.sharepoint.com/sites/qa/Shared%20Documents/CF"
LINK = "https://files.example.com/x?convert_e=123456"


def _settings(**comment) -> Settings:
    return Settings(
        clickup=ClickUpSettings(token="pk_test"),
        gate=GateSettings(required_status="needs approval (dev)"),
        task_fields=FieldSettings(mention_map={"Acme PM": "901"}),
        comment=CommentSettings(**comment),
    )


def _item(
    *,
    status: str = "Needs Approval (Dev)",
    checked: object = True,
    folder_url: Optional[str] = FOLDER_URL,
    title: str = "CF-123",
    description: str = "",
    attachments: Sequence[TaskAttachment] = (),
    mentions: str = "",
) -> WorkItem:
    fields = [CustomField(id="cf_1", name="Passed QA", type="checkbox", value=FieldValue.from_raw(checked))]
    if folder_url is not None:
        fields.append(CustomField(id="cf_2", name="QA Doc", type="url", value=FieldValue.from_raw(folder_url)))
    if mentions:
        fields.append(CustomField(id="cf_3", name="Client Mentions", type="text", value=FieldValue.from_raw(mentions)))
    return WorkItem(
        id="task_1",
        title=title,
        status_label=status,
        custom_fields=fields,
        description=description,
        attachments=list(attachments),
    )


def _file(name: str, item_id: str, mime_type: str = "") -> FolderEntry:
    return FolderEntry(id=item_id, container_id="drive_1", name=name, mime_type=mime_type)


class _Tracker(WorkItemTracker):
    def __init__(self, *items: WorkItem, fail_comments: bool = False, fail_uploads: Sequence[str] = ()) -> None:
        self._items = list(items)
        self.get_calls = 0
        self.comments: List[Tuple[str, bool]] = []
        self.uploads: List[str] = []
        self._fail_comments = fail_comments
        self._fail_uploads = set(fail_uploads)

    def get_item(self, item_id: str) -> WorkItem:
        item = self._items[min(self.get_calls, len(self._items) - 1)]
        self.get_calls += 1
        return item

    def post_comment(self, item_id: str, text: str, *, notify: bool = False) -> dict:
        if self._fail_comments:
            raise SubmissionError("ClickUp POST failed: 500", status_code=500)
        self.comments.append((text, notify))
        return {"id": f"c{len(self.comments)}"}

    def upload_attachment(self, item_id: str, filename: str, data: bytes) -> str:
        if filename in self._fail_uploads:
            raise TrackerError("upload failed", status_code=413)
        self.uploads.append(filename)
        return f"https://cdn.example.com/{filename}"


class _Storage(FolderStorage):
    def __init__(
        self,
        root: Sequence[FolderEntry],
        children: Optional[Dict[str, Sequence[FolderEntry]]] = None,
        *,
        fail_listing: bool = False,
        fail_downloads: Sequence[str] = (),
    ) -> None:
        self._root = list(root)
        self._children = dict(children or {})
        self._fail_listing = fail_listing
        self._fail_downloads = set(fail_downloads)
        self.calls: List[Tuple[str, str]] = []

    def list_shared_folder(self, folder_url: str, token: str) -> List[FolderEntry]:
        self.calls.append(("list_shared", folder_url))
        if self._fail_listing:
            raise StorageError("shares/driveItem failed: 403", status_code=403)
        return list(self._root)

    def list_children(self, container_id: str, item_id: str, token: str) -> List[FolderEntry]:
        self.calls.append(("list_children", item_id))
        return list(self._children.get(item_id, []))

    def download(self, container_id: str, item_id: str, token: str) -> bytes:
        self.calls.append(("download", item_id))
        if item_id in self._fail_downloads:
            raise StorageError("download failed: 404", status_code=404)
        return item_id.encode("utf-8")


class _Tokens(TokenProvider):
    def __init__(self, token: Optional[str] = "graph_token") -> None:
        self.token = token
        self.calls = 0

    def acquire_token(self) -> Optional[str]:
        self.calls += 1
        return self.token


class _Reader(SpreadsheetReader):
    def __init__(self, by_payload: Dict[bytes, list]) -> None:
        self._by_payload = by_payload

    def parse(self, data: bytes) -> list:
        return self._by_payload.get(data, [])


def _pipeline(settings: Settings, tracker: _Tracker, storage: _Storage, tokens: Optional[_Tokens] = None, reader=None):
    return QAHandoffPipeline(
        settings,
        tracker=tracker,
        storage=storage,
        token_provider=tokens or _Tokens(),
        spreadsheet_reader=reader or _Reader({}),
        sleep=lambda _: None,
    )


def test_exact_spreadsheet_match_posts_one_link_and_no_images_placeholder() -> None:
    tracker = _Tracker(_item())
    storage = _Storage([_file("CF-123.xlsx", "xls_1")])
    reader = _Reader({b"xls_1": [[[f"see {LINK}"]]]})

    result = _pipeline(_settings(), tracker, storage, reader=reader).run("task_1")

    assert result.stage == PipelineStage.SUBMITTED
    assert len(tracker.comments) == 1
    text, notify = tracker.comments[0]
    assert text.count(LINK) == 1
    assert NO_IMAGES_LINE in text
    assert notify is False
    assert result.artifacts.preview_links == [LINK]
    assert result.artifacts.spreadsheet.name == "CF-123.xlsx"


def test_unchecked_box_posts_failure_comment_and_never_touches_storage() -> None:
    tracker = _Tracker(_item(checked=False))
    storage = _Storage([_file("CF-123.xlsx", "xls_1")])
    tokens = _Tokens()

    result = _pipeline(_settings(), tracker, storage, tokens).run("task_1")

    assert result.stage == PipelineStage.GATE_FAILED
    assert result.notified is True
    assert tracker.comments == [
        (
            "\U0001FA82 AirDrop Status: Fail. Status must be [needs approval (dev)] and Passed QA must be checked. "
            "Current Status: [Needs Approval (Dev)].",
            False,
        )
    ]
    assert storage.calls == []
    assert tokens.calls == 0


def test_gate_failure_comment_error_is_swallowed() -> None:
    tracker = _Tracker(_item(status="In Progress"), fail_comments=True)

    result = _pipeline(_settings(), tracker, _Storage([])).run("task_1")

    assert result.stage == PipelineStage.GATE_FAILED
    assert result.notified is False
    assert result.ok is True


def test_gate_failure_comment_can_be_disabled() -> None:
    settings = _settings()
    settings.gate = GateSettings(required_status="needs approval (dev)", post_failure_comment=False)
    tracker = _Tracker(_item(checked=False))

    result = _pipeline(settings, tracker, _Storage([])).run("task_1")

    assert result.stage == PipelineStage.GATE_FAILED
    assert tracker.comments == []


def test_lagging_status_is_rechecked_once_then_proceeds() -> None:
    tracker = _Tracker(_item(status="QA"), _item(status="Needs Approval (Dev)"))

    result = _pipeline(_settings(), tracker, _Storage([])).run("task_1")

    assert result.stage == PipelineStage.SUBMITTED
    assert result.gate.rechecked is True
    assert tracker.get_calls == 2


def test_subfolder_drill_down_replaces_root_listing() -> None:
    root = [
        FolderEntry(id="dir_1", container_id="drive_1", name="CF-123 - v2", is_folder=True),
        _file("root-preview.xlsx", "xls_root"),
        _file("root.png", "img_root"),
    ]
    inner = [_file("CF-123 - v2.xlsx", "xls_inner"), _file("b.png", "img_b"), _file("a.jpg", "img_a")]
    storage = _Storage(root, {"dir_1": inner})
    tracker = _Tracker(_item())
    reader = _Reader({b"xls_inner": [[[LINK]]], b"xls_root": [[["https://files.example.com/root?convert_e=999999"]]]})

    result = _pipeline(_settings(), tracker, storage, reader=reader).run("task_1")

    assert ("list_children", "dir_1") in storage.calls
    assert result.artifacts.spreadsheet.id == "xls_inner"
    assert result.artifacts.preview_links == [LINK]
    assert tracker.uploads == ["b.png", "a.jpg"]
    assert [img.name for img in result.artifacts.images] == ["b.png", "a.jpg"]
    text, _ = tracker.comments[-1]
    assert "- b.png → https://cdn.example.com/b.png" in text
    assert text.index("b.png") < text.index("a.jpg")


def test_single_image_failure_is_skipped() -> None:
    root = [_file("one.png", "img_1"), _file("two.png", "img_2"), _file("three.png", "img_3")]
    storage = _Storage(root, fail_downloads=["img_1"])
    tracker = _Tracker(_item(), fail_uploads=["three.png"])

    result = _pipeline(_settings(), tracker, storage).run("task_1")

    assert result.stage == PipelineStage.SUBMITTED
    assert [img.name for img in result.artifacts.images] == ["two.png"]


def test_storage_failure_falls_back_to_description_and_attachments() -> None:
    item = _item(
        description=f"Previews: {LINK} and again {LINK}",
        attachments=[
            TaskAttachment(name="qa-shot.png", mime_type="image/png", url="https://t.example.com/qa-shot.png"),
            TaskAttachment(name="brief.pdf", mime_type="application/pdf", url="https://t.example.com/brief.pdf"),
        ],
    )
    tracker = _Tracker(item)
    storage = _Storage([], fail_listing=True)

    result = _pipeline(_settings(), tracker, storage).run("task_1")

    assert result.stage == PipelineStage.SUBMITTED
    assert result.artifacts.storage_reachable is False
    assert result.artifacts.preview_links == [LINK]
    assert [img.remote_url for img in result.artifacts.images] == ["https://t.example.com/qa-shot.png"]
    assert tracker.uploads == []


def test_missing_token_uses_fallback_sources() -> None:
    tracker = _Tracker(_item())
    storage = _Storage([_file("CF-123.xlsx", "xls_1")])

    result = _pipeline(_settings(), tracker, storage, _Tokens(token=None)).run("task_1")

    assert storage.calls == []
    text, _ = tracker.comments[0]
    assert NO_LINKS_LINE in text
    assert NO_IMAGES_LINE in text


def test_missing_folder_url_still_posts_comment() -> None:
    tracker = _Tracker(_item(folder_url=None, description=LINK))
    tokens = _Tokens()

    result = _pipeline(_settings(), tracker, _Storage([]), tokens).run("task_1")

    assert tokens.calls == 0
    assert result.stage == PipelineStage.SUBMITTED
    assert result.artifacts.preview_links == [LINK]


def test_empty_spreadsheet_falls_back_to_description() -> None:
    tracker = _Tracker(_item(description=f"see {LINK}"))
    storage = _Storage([_file("CF-123.xlsx", "xls_1")])

    result = _pipeline(_settings(), tracker, storage, reader=_Reader({b"xls_1": [[["no links"]]]})).run("task_1")

    assert result.artifacts.preview_links == [LINK]


def test_restrict_attachments_to_qa_names() -> None:
    settings = _settings()
    settings.matching = settings.matching.model_copy(update={"restrict_attachments_to_qa_names": True})
    item = _item(
        folder_url=None,
        attachments=[
            TaskAttachment(name="hero.png", mime_type="image/png", url="https://t.example.com/hero.png"),
            TaskAttachment(name="home_qa.png", mime_type="image/png", url="https://t.example.com/home_qa.png"),
        ],
    )
    tracker = _Tracker(item)

    result = _pipeline(settings, tracker, _Storage([])).run("task_1")

    assert [img.name for img in result.artifacts.images] == ["home_qa.png"]


def test_draft_mode_banner_and_no_mentions() -> None:
    tracker = _Tracker(_item(mentions="Acme PM"))

    result = _pipeline(_settings(mode="draft"), tracker, _Storage([])).run("task_1")

    text, notify = tracker.comments[0]
    assert text.startswith("\U0001F4DD DRAFT - Review before sending\n\n")
    assert "<@901>" not in text
    assert notify is False
    assert result.notified is False


def test_final_mode_mentions_and_notifies() -> None:
    tracker = _Tracker(_item(mentions="Acme PM, Nobody"))

    _pipeline(_settings(mode="final"), tracker, _Storage([])).run("task_1")

    text, notify = tracker.comments[0]
    assert text.startswith("<@901>\n")
    assert "DRAFT" not in text
    assert notify is True


def test_submission_failure_is_fatal() -> None:
    tracker = _Tracker(_item(), fail_comments=True)

    with pytest.raises(SubmissionError):
        _pipeline(_settings(), tracker, _Storage([])).run("task_1")


def test_work_item_read_failure_is_fatal() -> None:
    class _BrokenTracker(_Tracker):
        def get_item(self, item_id: str) -> WorkItem:
            raise TrackerError("ClickUp GET /task/task_1 failed: 404", status_code=404)

    with pytest.raises(TrackerError):
        _pipeline(_settings(), _BrokenTracker(_item()), _Storage([])).run("task_1")
