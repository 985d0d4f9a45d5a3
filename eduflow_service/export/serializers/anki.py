"""Anki plain-text import files.

Both variants are tab separated with ``#html:true``, so field text is
HTML-escaped, tabs become spaces and line breaks become ``<br>``.
"""

from __future__ import annotations

import html
from collections.abc import Sequence

from eduflow_service.export.content import Flashcard


def anki_field(value: str | None) -> str:
    text = html.escape(value or "", quote=False)
    text = text.replace("\t", " ")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text.replace("\n", "<br>")


def _anki_tag(tag: str) -> str:
    # Anki separates tags with spaces
    return "_".join(tag.split())


def _header_value(value: str) -> str:
    return " ".join(value.split())


def flashcards_to_anki(cards: Sequence[Flashcard]) -> bytes:
    lines = ["#separator:tab", "#html:true"]
    lines.extend(f"{anki_field(c.question)}\t{anki_field(c.answer)}" for c in cards)
    return ("\n".join(lines) + "\n").encode("utf-8")


def flashcards_to_anki_enhanced(cards: Sequence[Flashcard], *, deck: str) -> bytes:
    """Anki import with deck header and hint/tags columns."""
    lines = [
        "#separator:tab",
        "#html:true",
        f"#deck:{_header_value(deck)}",
        "#columns:Front\tBack\tHint\tTags",
        "#tags column:4",
    ]
    for c in cards:
        labels = [*c.tags, f"difficulty::{c.difficulty}"] if c.difficulty else c.tags
        tags = " ".join(t for t in (_anki_tag(t) for t in labels) if t)
        lines.append(
            "\t".join([anki_field(c.question), anki_field(c.answer), anki_field(c.hint), tags])
        )
    return ("\n".join(lines) + "\n").encode("utf-8")
