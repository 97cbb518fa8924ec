"""
Data Models
"""
from .schemas import (
    FieldValueKind,
    FieldValue,
    CustomField,
    TaskAttachment,
    WorkItem,
    FolderEntry,
    GateDecision,
    ImageRef,
    ResolvedArtifacts,
    Comment,
    PipelineStage,
    PipelineResult,
)

__all__ = [
    "FieldValueKind",
    "FieldValue",
    "CustomField",
    "TaskAttachment",
    "WorkItem",
    "FolderEntry",
    "GateDecision",
    "ImageRef",
    "ResolvedArtifacts",
    "Comment",
    "PipelineStage",
    "PipelineResult",
]
