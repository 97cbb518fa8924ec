"""QA hand-off pipeline: gate -> storage artifacts -> fallbacks -> comment."""

from __future__ import annotations

import logging
import re
import time
from typing import Callable, List, Optional

from adapters.base import FolderStorage, SpreadsheetReader, TokenProvider, WorkItemTracker
from config import Settings
from models import (
    FolderEntry,
    GateDecision,
    ImageRef,
    PipelineResult,
    PipelineStage,
    ResolvedArtifacts,
    WorkItem,
)

from .comment import compose_comment, resolve_mentions
from .gate import GateEvaluator
from .links import UrlPatternMatcher, extract_links_from_text, extract_preview_links
from .matcher import ArtifactMatcher


logger = logging.getLogger(__name__)


class QAHandoffPipeline:
    """One instance per process; every ``run`` works on freshly fetched data.

    Storage problems never abort a run: the pipeline falls back to links in the
    task description and images already attached to the task. Reading the task
    and posting the final comment are the only fatal steps.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        tracker: WorkItemTracker,
        storage: Optional[FolderStorage] = None,
        token_provider: Optional[TokenProvider] = None,
        spreadsheet_reader: Optional[SpreadsheetReader] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.tracker = tracker
        self.storage = storage
        self.token_provider = token_provider
        self.spreadsheet_reader = spreadsheet_reader
        self.gate = GateEvaluator(settings.gate, sleep=sleep, verbose=settings.logging.verbose)
        self.matcher = ArtifactMatcher(settings.matching)
        self.url_matcher = UrlPatternMatcher(settings.matching.preview_url_pattern)
        self._stage = PipelineStage.START

    # ------------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------------

    def run(self, task_id: str) -> PipelineResult:
        self._enter(PipelineStage.START, task_id)
        item = self.tracker.get_item(task_id)
        title = item.title or task_id

        self._enter(PipelineStage.GATE_CHECK, task_id)
        decision = self.gate.check(item, refetch=lambda: self.tracker.get_item(task_id))
        if not decision.passed:
            self._enter(PipelineStage.GATE_FAILED, task_id)
            notified = self._notify_gate_failure(task_id, decision)
            return PipelineResult(task_id=task_id, stage=PipelineStage.GATE_FAILED, gate=decision, notified=notified)

        artifacts = ResolvedArtifacts()
        self._resolve_from_storage(task_id, item, title, artifacts)
        self._apply_fallbacks(item, artifacts)

        self._enter(PipelineStage.COMPOSE, task_id)
        comment_settings = self.settings.comment
        mention_ids = self._mention_ids(item)
        comment = compose_comment(
            task_title=title,
            preview_links=artifacts.preview_links,
            images=artifacts.images,
            mention_ids=mention_ids,
            include_mentions=comment_settings.include_mentions,
            is_draft=comment_settings.is_draft,
            banner_text=comment_settings.banner,
        )

        self.tracker.post_comment(task_id, comment.render(), notify=comment_settings.notify)
        self._enter(PipelineStage.SUBMITTED, task_id)
        logger.info(
            "Posted %s QA preview comment (%d link(s), %d image(s))",
            "DRAFT" if comment_settings.is_draft else "FINAL",
            len(artifacts.preview_links),
            len(artifacts.images),
        )
        return PipelineResult(
            task_id=task_id,
            stage=PipelineStage.SUBMITTED,
            gate=decision,
            artifacts=artifacts,
            comment=comment,
            notified=comment_settings.notify,
        )

    # ------------------------------------------------------------------
    # Gate failure
    # ------------------------------------------------------------------

    def _notify_gate_failure(self, task_id: str, decision: GateDecision) -> bool:
        logger.warning(
            "Gate failed: status=%r (required %r), passed_qa=%s",
            decision.status_observed,
            decision.required_status,
            decision.checkbox_observed,
        )
        if not self.settings.gate.post_failure_comment:
            return False
        try:
            self.tracker.post_comment(task_id, self.gate.failure_message(decision), notify=False)
        except Exception as exc:
            logger.warning("Could not post gate-failure comment: %s", exc)
            return False
        logger.info("Posted gate-failure comment")
        return True

    # ------------------------------------------------------------------
    # Storage resolution
    # ------------------------------------------------------------------

    def _resolve_from_storage(self, task_id: str, item: WorkItem, title: str, artifacts: ResolvedArtifacts) -> None:
        self._enter(PipelineStage.RESOLVE_FOLDER, task_id)
        field_name = self.settings.task_fields.qa_doc_field
        folder_url = item.field_value(field_name).as_text().strip()
        if not folder_url:
            logger.warning('No "%s" URL present on task; using fallback sources', field_name)
            return
        if self.storage is None or self.token_provider is None:
            logger.warning("Storage adapter not configured; using fallback sources")
            return

        try:
            token = self.token_provider.acquire_token()
            if not token:
                logger.warning(
                    "No storage token available. Skipping folder read (private folders need MS_* secrets)"
                )
                return
            entries = self.storage.list_shared_folder(folder_url, token)
            artifacts.storage_reachable = True

            self._enter(PipelineStage.MATCH_ARTIFACTS, task_id)
            subfolder = self.matcher.find_subfolder(entries, title)
            if subfolder is not None:
                entries = self.storage.list_children(subfolder.container_id, subfolder.id, token)
            artifacts.spreadsheet = self.matcher.find_spreadsheet(entries, title)
        except Exception as exc:
            logger.warning("Storage read failed at %s: %s", self._stage.value, exc)
            return

        self._enter(PipelineStage.EXTRACT_LINKS, task_id)
        if artifacts.spreadsheet is not None:
            try:
                artifacts.add_links(self._links_from_spreadsheet(artifacts.spreadsheet, token))
            except Exception as exc:
                logger.warning("Spreadsheet parse warning (%s): %s", artifacts.spreadsheet.name, exc)
        else:
            logger.info("No spreadsheet found in folder")

        self._enter(PipelineStage.COLLECT_IMAGES, task_id)
        artifacts.images.extend(self._republish_images(task_id, self.matcher.select_images(entries), token))

    def _links_from_spreadsheet(self, entry: FolderEntry, token: str) -> List[str]:
        if self.spreadsheet_reader is None:
            logger.warning("No spreadsheet reader configured; skipping %s", entry.name)
            return []
        data = self.storage.download(entry.container_id, entry.id, token)
        sheets = self.spreadsheet_reader.parse(data)
        return extract_preview_links(sheets, self.url_matcher)

    def _republish_images(self, task_id: str, entries: List[FolderEntry], token: str) -> List[ImageRef]:
        """Download each image and attach it to the task, in listing order.

        A failing image is logged and left out; the rest still go through.
        """
        published: List[ImageRef] = []
        for entry in entries:
            try:
                data = self.storage.download(entry.container_id, entry.id, token)
                url = self.tracker.upload_attachment(task_id, entry.name, data)
            except Exception as exc:
                logger.warning("Image %s skipped: %s", entry.name, exc)
                continue
            published.append(ImageRef(name=entry.name, remote_url=url))
        return published

    # ------------------------------------------------------------------
    # Fallbacks
    # ------------------------------------------------------------------

    def _apply_fallbacks(self, item: WorkItem, artifacts: ResolvedArtifacts) -> None:
        if not artifacts.preview_links:
            links = extract_links_from_text(item.description, self.url_matcher)
            if links:
                logger.info("Using %d preview link(s) from task description", len(links))
            artifacts.add_links(links)

        if not artifacts.images:
            attachments = self._task_image_attachments(item)
            if attachments:
                logger.info("Using %d image attachment(s) already on the task", len(attachments))
            artifacts.images.extend(attachments)

    def _task_image_attachments(self, item: WorkItem) -> List[ImageRef]:
        matching = self.settings.matching
        image_re = re.compile(matching.image_pattern, re.IGNORECASE)
        qa_re = re.compile(matching.qa_name_pattern, re.IGNORECASE)

        selected: List[ImageRef] = []
        for att in item.attachments:
            name = (att.name or "").lower()
            is_image = (att.mime_type or "").lower().startswith("image/") or bool(image_re.search(name))
            if not is_image:
                continue
            if matching.restrict_attachments_to_qa_names and not (qa_re.search(name) or qa_re.search(att.path or "")):
                continue
            selected.append(ImageRef(name=att.name or "image", remote_url=att.url))
        return selected

    def _mention_ids(self, item: WorkItem) -> List[str]:
        fields = self.settings.task_fields
        if not fields.mentions_field:
            return []
        raw = item.field_value(fields.mentions_field).as_text()
        return resolve_mentions(raw, fields.mention_map)

    def _enter(self, stage: PipelineStage, task_id: str) -> None:
        self._stage = stage
        logger.debug("[%s] stage=%s", task_id, stage.value)
