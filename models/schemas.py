"""
Data Models / Schemas
Work items, folder listings and the values derived from them during one run
"""
from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


CHECKED_STRINGS = {"true", "1", "yes", "checked", "on"}


class FieldValueKind(str, Enum):
    """Shape of a raw custom-field value"""
    BOOL = "bool"
    NUMBER = "number"
    TEXT = "text"
    ABSENT = "absent"


class FieldValue(BaseModel):
    """
    Tagged wrapper around a tracker custom-field value.

    Raw values arrive as booleans, numbers, strings or nothing at all; the
    tracker adapter wraps them here so downstream code only asks typed
    questions (``is_checked``, ``as_text``).
    """
    model_config = ConfigDict(frozen=True)

    kind: FieldValueKind = FieldValueKind.ABSENT
    raw: Any = None

    @classmethod
    def from_raw(cls, value: Any) -> "FieldValue":
        if value is None:
            return cls(kind=FieldValueKind.ABSENT)
        if isinstance(value, bool):
            return cls(kind=FieldValueKind.BOOL, raw=value)
        if isinstance(value, (int, float)):
            return cls(kind=FieldValueKind.NUMBER, raw=value)
        if isinstance(value, str):
            return cls(kind=FieldValueKind.TEXT, raw=value)
        # Dropdowns, user lists and other structured values have no checkbox/text reading
        return cls(kind=FieldValueKind.ABSENT, raw=value)

    def is_checked(self) -> bool:
        """True, 1, or one of the accepted strings; anything else is unchecked."""
        if self.kind == FieldValueKind.BOOL:
            return self.raw is True
        if self.kind == FieldValueKind.NUMBER:
            return self.raw == 1
        if self.kind == FieldValueKind.TEXT:
            return self.raw.strip().lower() in CHECKED_STRINGS
        return False

    def as_text(self) -> str:
        return self.raw if self.kind == FieldValueKind.TEXT else ""


class CustomField(BaseModel):
    """Custom field attached to a work item"""
    id: str = ""
    name: str = ""
    type: str = ""
    value: FieldValue = Field(default_factory=FieldValue)


class TaskAttachment(BaseModel):
    """Attachment already present on a work item"""
    name: str = ""
    mime_type: str = ""
    url: str = ""
    path: str = ""


class WorkItem(BaseModel):
    """Snapshot of a tracker task, read once per run"""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    status_label: str = ""
    custom_fields: List[CustomField] = Field(default_factory=list)
    description: str = ""
    attachments: List[TaskAttachment] = Field(default_factory=list)

    def find_field(self, name_or_id: Optional[str]) -> Optional[CustomField]:
        """Find a custom field by id or trimmed name, case-insensitively."""
        needle = str(name_or_id or "").strip().lower()
        if not needle:
            return None
        for cf in self.custom_fields:
            if cf.id and cf.id.lower() == needle:
                return cf
            if cf.name and cf.name.strip().lower() == needle:
                return cf
        return None

    def field_value(self, name_or_id: Optional[str]) -> FieldValue:
        cf = self.find_field(name_or_id)
        return cf.value if cf else FieldValue()


class FolderEntry(BaseModel):
    """One item of a storage folder listing"""
    model_config = ConfigDict(frozen=True)

    id: str
    container_id: str = ""
    name: str = ""
    is_folder: bool = False
    mime_type: str = ""
    size: int = 0


class GateDecision(BaseModel):
    """Outcome of the release gate"""
    passed: bool
    status_observed: str = ""
    required_status: str = ""
    checkbox_observed: bool = False
    rechecked: bool = False


class ImageRef(BaseModel):
    """Image published on the work item"""
    name: str = "image"
    remote_url: str = ""


class ResolvedArtifacts(BaseModel):
    """Everything resolved for the comment, built up stage by stage"""
    spreadsheet: Optional[FolderEntry] = None
    preview_links: List[str] = Field(default_factory=list)
    images: List[ImageRef] = Field(default_factory=list)
    storage_reachable: bool = False

    def add_links(self, links: List[str]) -> None:
        """Append links not seen before, keeping first-seen order."""
        seen = set(self.preview_links)
        for link in links:
            if link not in seen:
                seen.add(link)
                self.preview_links.append(link)


class Comment(BaseModel):
    """Composed comment, handed to the tracker as-is"""
    model_config = ConfigDict(frozen=True)

    banner_text: Optional[str] = None
    mention_tokens: List[str] = Field(default_factory=list)
    body_lines: List[str] = Field(default_factory=list)

    def render(self) -> str:
        return "\n".join(self.body_lines)


class PipelineStage(str, Enum):
    """Hand-off pipeline states"""
    START = "start"
    GATE_CHECK = "gate_check"
    GATE_FAILED = "gate_failed"
    RESOLVE_FOLDER = "resolve_folder"
    MATCH_ARTIFACTS = "match_artifacts"
    EXTRACT_LINKS = "extract_links"
    COLLECT_IMAGES = "collect_images"
    COMPOSE = "compose"
    SUBMITTED = "submitted"


class PipelineResult(BaseModel):
    """What a single run did"""
    task_id: str
    stage: PipelineStage
    gate: Optional[GateDecision] = None
    artifacts: Optional[ResolvedArtifacts] = None
    comment: Optional[Comment] = None
    notified: bool = False

    @property
    def ok(self) -> bool:
        return self.stage in {PipelineStage.SUBMITTED, PipelineStage.GATE_FAILED}
