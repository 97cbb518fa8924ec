"""Artifact matching: find the task's subfolder, spreadsheet and images in a listing."""

from __future__ import annotations

import logging
import re
from typing import Callable, List, Optional, Sequence

from config import MatchingSettings
from models import FolderEntry

from .normalize import normalize_name, strip_extension


logger = logging.getLogger(__name__)

Tier = Callable[[FolderEntry], bool]


def _first(candidates: Sequence[FolderEntry], tiers: Sequence[Tier]) -> Optional[FolderEntry]:
    """Walk tiers in priority order; inside a tier, listing order decides."""
    for tier in tiers:
        for entry in candidates:
            if tier(entry):
                return entry
    return None


class ArtifactMatcher:
    """Tiered name matching of folder entries against a task title.

    Tiers, first hit wins:

    1. exact normalized name (spreadsheets compare without their extension)
    2. prefix ``"<title> "`` (e.g. ``"<title> - v2"``)
    3. subfolders: substring containment; spreadsheets: name contains the
       preview keyword
    4. spreadsheets only: first spreadsheet in the listing
    """

    def __init__(self, settings: Optional[MatchingSettings] = None) -> None:
        self.settings = settings or MatchingSettings()
        self._extensions = [ext.lower() for ext in self.settings.spreadsheet_extensions]
        self._image_re = re.compile(self.settings.image_pattern, re.IGNORECASE)

    def is_spreadsheet(self, entry: FolderEntry) -> bool:
        if entry.is_folder:
            return False
        name = entry.name.lower()
        return any(name.endswith(ext) for ext in self._extensions)

    def is_image(self, entry: FolderEntry) -> bool:
        if entry.is_folder:
            return False
        if self._image_re.search(entry.name or ""):
            return True
        return (entry.mime_type or "").lower().startswith("image/")

    def find_subfolder(self, entries: Sequence[FolderEntry], title: str) -> Optional[FolderEntry]:
        want = normalize_name(title)
        if not want:
            return None
        folders = [entry for entry in entries if entry.is_folder]
        hit = _first(
            folders,
            [
                lambda f: normalize_name(f.name) == want,
                lambda f: normalize_name(f.name).startswith(f"{want} "),
                lambda f: want in normalize_name(f.name),
            ],
        )
        if hit:
            logger.info("Subfolder matched: %s", hit.name)
        return hit

    def find_spreadsheet(self, entries: Sequence[FolderEntry], title: str) -> Optional[FolderEntry]:
        sheets = [entry for entry in entries if self.is_spreadsheet(entry)]
        if not sheets:
            return None

        want = normalize_name(title)
        keyword = self.settings.preview_keyword.lower()

        def base(entry: FolderEntry) -> str:
            return normalize_name(strip_extension(entry.name, self._extensions))

        tiers: List[Tier] = []
        if want:
            tiers.append(lambda f: base(f) == want)
            tiers.append(lambda f: base(f).startswith(f"{want} "))
        if keyword:
            tiers.append(lambda f: keyword in f.name.lower())
        tiers.append(lambda f: True)

        hit = _first(sheets, tiers)
        logger.info("Spreadsheet selected: %s", hit.name if hit else None)
        return hit

    def select_images(self, entries: Sequence[FolderEntry]) -> List[FolderEntry]:
        """Image entries in listing order."""
        return [entry for entry in entries if self.is_image(entry)]
