"""Preview-link extraction over spreadsheet grids and free text."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, List, Sequence

from config.settings import DEFAULT_PREVIEW_URL_PATTERN


logger = logging.getLogger(__name__)

SheetGrid = Sequence[Sequence[Any]]


class UrlPatternMatcher:
    """Finds preview-rendering URLs in text.

    The pattern is data: it comes from ``MatchingSettings.preview_url_pattern``
    and is compiled case-insensitively.
    """

    def __init__(self, pattern: str = DEFAULT_PREVIEW_URL_PATTERN) -> None:
        self.pattern = re.compile(pattern, re.IGNORECASE)

    def find_all(self, text: str) -> List[str]:
        """Trimmed matches in discovery order, duplicates included."""
        return [match.group(0).strip() for match in self.pattern.finditer(str(text or ""))]


def _dedup(links: Iterable[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for link in links:
        if link and link not in seen:
            seen.add(link)
            ordered.append(link)
    return ordered


def _cell_text(cell: Any) -> str:
    return "" if cell is None else str(cell)


def extract_preview_links(sheets: Sequence[SheetGrid], matcher: UrlPatternMatcher) -> List[str]:
    """Scan every cell of every row of every sheet.

    Returns the unique matches in first-seen order, or ``[]``.
    """
    found: List[str] = []
    for sheet in sheets or []:
        for row in sheet or []:
            for cell in row or []:
                found.extend(matcher.find_all(_cell_text(cell)))
    links = _dedup(found)
    logger.debug("Extracted %d preview link(s) from %d sheet(s)", len(links), len(sheets or []))
    return links


def extract_links_from_text(text: str, matcher: UrlPatternMatcher) -> List[str]:
    """Same rule as the spreadsheet scan, applied to a block of free text."""
    return _dedup(matcher.find_all(text))
