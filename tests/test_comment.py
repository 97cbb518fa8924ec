from __future__ import annotations

from models import ImageRef
from pipeline.comment import NO_IMAGES_LINE, NO_LINKS_LINE, compose_comment, resolve_mentions


def test_draft_comment_golden_output() -> None:
    comment = compose_comment(
        task_title="CF-123",
        preview_links=["https://files.example.com/a?convert_e=111111", "https://files.example.com/b?convert_e=222222"],
        images=[ImageRef(name="hero.png", remote_url="https://cdn.example.com/hero.png")],
        mention_ids=["42"],
        include_mentions=False,
        is_draft=True,
        banner_text="DRAFT",
    )

    assert comment.render() == "\n".join(
        [
            "DRAFT",
            "",
            "**QA Passed → Preview Links for _CF-123_**",
            "",
            "**Preview Links**",
            "- [Link 1](https://files.example.com/a?convert_e=111111)",
            "- [Link 2](https://files.example.com/b?convert_e=222222)",
            "",
            "**QA Images**",
            "- hero.png → https://cdn.example.com/hero.png",
        ]
    )
    assert comment.banner_text == "DRAFT"


def test_placeholders_when_nothing_resolved() -> None:
    comment = compose_comment(task_title="CF-9", preview_links=[], images=[], is_draft=False)
    assert NO_LINKS_LINE in comment.body_lines
    assert NO_IMAGES_LINE in comment.body_lines
    assert comment.body_lines[0].startswith("**QA Passed")


def test_draft_never_emits_mentions() -> None:
    comment = compose_comment(
        task_title="CF-1",
        preview_links=[],
        images=[],
        mention_ids=["42", "77"],
        include_mentions=True,
        is_draft=True,
    )
    assert comment.mention_tokens == []
    assert "<@" not in comment.render()


def test_final_comment_leads_with_mentions() -> None:
    comment = compose_comment(
        task_title="CF-1",
        preview_links=[],
        images=[],
        mention_ids=["42", "77"],
        include_mentions=True,
        is_draft=False,
        banner_text="DRAFT",
    )
    assert comment.body_lines[0] == "<@42> <@77>"
    assert comment.mention_tokens == ["<@42>", "<@77>"]
    assert comment.banner_text is None
    assert "DRAFT" not in comment.render()


def test_output_is_deterministic() -> None:
    kwargs = dict(
        task_title="CF-1",
        preview_links=["https://files.example.com/a?convert_e=111111"],
        images=[ImageRef(name="", remote_url="https://cdn.example.com/x")],
        is_draft=True,
        banner_text="B",
    )
    first = compose_comment(**kwargs)
    assert first == compose_comment(**kwargs)
    assert "- image → https://cdn.example.com/x" in first.body_lines


def test_resolve_mentions_maps_known_labels_only() -> None:
    mapping = {"Acme PM": "123", "Acme QA": "456"}
    assert resolve_mentions(" Acme PM, Unknown ,Acme QA,, ", mapping) == ["123", "456"]
    assert resolve_mentions("", mapping) == []
