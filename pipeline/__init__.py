"""QA hand-off pipeline: normalization, matching, gate, links and comment."""

from .comment import NO_IMAGES_LINE, NO_LINKS_LINE, compose_comment, mention_tokens, resolve_mentions
from .gate import GateEvaluator
from .links import UrlPatternMatcher, extract_links_from_text, extract_preview_links
from .matcher import ArtifactMatcher
from .normalize import StatusNormalizer, normalize_name, strip_extension
from .runtime import QAHandoffPipeline

__all__ = [
    "ArtifactMatcher",
    "GateEvaluator",
    "NO_IMAGES_LINE",
    "NO_LINKS_LINE",
    "QAHandoffPipeline",
    "StatusNormalizer",
    "UrlPatternMatcher",
    "compose_comment",
    "extract_links_from_text",
    "extract_preview_links",
    "mention_tokens",
    "normalize_name",
    "resolve_mentions",
    "strip_extension",
]
