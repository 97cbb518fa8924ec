"""Text normalization for names, titles and status labels."""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional


_WS_RE = re.compile(r"\s+")
# Hyphen-like code points: hyphen, non-breaking hyphen, figure dash, en/em dash, minus
_DASH_RE = re.compile("[\u2010\u2011\u2012\u2013\u2014\u2015\u2212]")
_NAME_STRIP_RE = re.compile(r"[^\w\s.\-]")
_STATUS_STRIP_RE = re.compile(r"[^\w\s]")


def normalize_name(value: Any) -> str:
    """Canonical form of a file/folder name or task title for matching."""
    text = str(value or "").casefold()
    text = _DASH_RE.sub("-", text)
    text = _NAME_STRIP_RE.sub("", text)
    return _WS_RE.sub(" ", text).strip()


def strip_extension(name: str, extensions: Iterable[str]) -> str:
    """Drop the first matching extension (case-insensitive) from ``name``."""
    lowered = name.lower()
    for ext in extensions:
        if ext and lowered.endswith(ext.lower()):
            return name[: -len(ext)]
    return name


class StatusNormalizer:
    """Folds status labels so that "Needs Approval (Dev)" == "needs approval dev"."""

    def normalize(self, value: Optional[str]) -> str:
        text = str(value or "").casefold()
        text = _STATUS_STRIP_RE.sub("", text)
        return _WS_RE.sub(" ", text).strip()

    def matches(self, observed: Optional[str], required: Optional[str]) -> bool:
        return self.normalize(observed) == self.normalize(required)
