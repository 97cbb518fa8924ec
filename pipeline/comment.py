"""Comment assembly for the QA hand-off."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from models import Comment, ImageRef


NO_LINKS_LINE = "_No preview links found._"
NO_IMAGES_LINE = "_No QA images found._"


def mention_tokens(user_ids: Sequence[str]) -> List[str]:
    return [f"<@{user_id}>" for user_id in user_ids if user_id]


def resolve_mentions(raw_labels: str, mention_map: Dict[str, str]) -> List[str]:
    """Map a comma-separated label list to tracker user ids, dropping unknown labels."""
    ids: List[str] = []
    for label in str(raw_labels or "").split(","):
        label = label.strip()
        if not label:
            continue
        user_id = mention_map.get(label)
        if user_id:
            ids.append(str(user_id))
    return ids


def compose_comment(
    *,
    task_title: str,
    preview_links: Sequence[str],
    images: Sequence[ImageRef],
    mention_ids: Sequence[str] = (),
    include_mentions: bool = False,
    is_draft: bool = True,
    banner_text: Optional[str] = None,
) -> Comment:
    """Build the hand-off comment.

    Draft comments never carry mentions, whatever ``include_mentions`` says.
    Output depends on the arguments only.
    """
    lines: List[str] = []

    banner = banner_text if is_draft and banner_text else None
    if banner:
        lines.append(banner)
        lines.append("")

    tokens: List[str] = []
    if include_mentions and not is_draft and mention_ids:
        tokens = mention_tokens(mention_ids)
        if tokens:
            lines.append(" ".join(tokens))
            lines.append("")

    lines.append(f"**QA Passed → Preview Links for _{task_title}_**")
    lines.append("")

    if preview_links:
        lines.append("**Preview Links**")
        for idx, url in enumerate(preview_links, start=1):
            lines.append(f"- [Link {idx}]({url})")
        lines.append("")
    else:
        lines.append(NO_LINKS_LINE)
        lines.append("")

    if images:
        lines.append("**QA Images**")
        for img in images:
            lines.append(f"- {img.name or 'image'} → {img.remote_url}")
    else:
        lines.append(NO_IMAGES_LINE)

    return Comment(banner_text=banner, mention_tokens=tokens, body_lines=lines)
