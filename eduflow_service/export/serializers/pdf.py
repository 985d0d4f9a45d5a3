"""PDF renderings built with reportlab platypus.

Flowables are laid out by ``SimpleDocTemplate`` so long content flows onto
new pages instead of being cut. Documents are built in invariant mode, so
identical content gives identical bytes.
"""

from __future__ import annotations

import html
import io
from collections.abc import Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    Flowable,
    KeepTogether,
    ListFlowable,
    ListItem,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
)

from eduflow_service.export.content import Flashcard, QuizQuestion, SlideEntry
from eduflow_service.export.markup import inline_to_pdf_markup, parse_blocks
from eduflow_service.export.serializers.tabular import option_label


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    ink = colors.HexColor("#111827")
    return {
        "title": ParagraphStyle(
            "PdfTitle", parent=base["Heading1"], fontName="Helvetica-Bold",
            fontSize=17, leading=21, spaceAfter=6, textColor=ink,
        ),
        "h1": ParagraphStyle(
            "PdfH1", parent=base["Heading2"], fontName="Helvetica-Bold",
            fontSize=13, leading=16, textColor=ink,
        ),
        "h2": ParagraphStyle(
            "PdfH2", parent=base["Heading3"], fontName="Helvetica-Bold",
            fontSize=11.5, leading=14, textColor=ink,
        ),
        "h3": ParagraphStyle(
            "PdfH3", parent=base["Heading4"], fontName="Helvetica-Bold",
            fontSize=10.5, leading=13, textColor=colors.HexColor("#374151"),
        ),
        "body": ParagraphStyle(
            "PdfBody", parent=base["BodyText"], fontName="Helvetica",
            fontSize=10, leading=13.5, textColor=ink,
        ),
        "question": ParagraphStyle(
            "PdfQuestion", parent=base["BodyText"], fontName="Helvetica-Bold",
            fontSize=10.5, leading=14, textColor=ink,
        ),
        "option": ParagraphStyle(
            "PdfOption", parent=base["BodyText"], fontName="Helvetica",
            fontSize=10, leading=13, leftIndent=10, textColor=colors.HexColor("#1F2937"),
        ),
        "option_correct": ParagraphStyle(
            "PdfOptionCorrect", parent=base["BodyText"], fontName="Helvetica-Bold",
            fontSize=10, leading=13, leftIndent=10, textColor=colors.HexColor("#065F46"),
        ),
        "slide_title": ParagraphStyle(
            "PdfSlideTitle", parent=base["Heading1"], fontName="Helvetica-Bold",
            fontSize=22, leading=27, spaceAfter=12, textColor=ink,
        ),
        "slide_bullet": ParagraphStyle(
            "PdfSlideBullet", parent=base["BodyText"], fontName="Helvetica",
            fontSize=14, leading=19, textColor=ink,
        ),
    }


def _text(value: str | None) -> str:
    return html.escape(value or "", quote=False).replace("\n", "<br/>")


def _bullets(items: Sequence[str], style: ParagraphStyle) -> ListFlowable:
    return ListFlowable(
        [ListItem(Paragraph(item, style), leftIndent=6) for item in items],
        bulletType="bullet",
        leftIndent=14,
        bulletFontSize=8,
        bulletOffsetY=1,
    )


def _build(story: list[Flowable], *, title: str) -> bytes:
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=16 * mm,
        rightMargin=16 * mm,
        topMargin=14 * mm,
        bottomMargin=14 * mm,
        title=title,
        invariant=1,
    )
    doc.build(story)
    return buf.getvalue()


def notes_to_pdf(text: str, *, title: str) -> bytes:
    styles = _styles()
    story: list[Flowable] = [Paragraph(_text(title), styles["title"])]
    pending: list[str] = []

    def flush_bullets() -> None:
        if pending:
            story.append(_bullets(pending, styles["body"]))
            story.append(Spacer(1, 4))
            pending.clear()

    for block in parse_blocks(text):
        markup = inline_to_pdf_markup(block.text)
        if block.kind == "bullet":
            pending.append(markup)
            continue
        flush_bullets()
        if block.kind == "heading":
            story.append(Paragraph(markup, styles[f"h{block.level}"]))
            story.append(Spacer(1, 3))
        elif block.kind == "number":
            story.append(Paragraph(f"{block.level}. {markup}", styles["body"]))
            story.append(Spacer(1, 2))
        else:
            story.append(Paragraph(markup, styles["body"]))
            story.append(Spacer(1, 4))
    flush_bullets()
    return _build(story, title=title)


def flashcards_to_pdf(cards: Sequence[Flashcard], *, title: str) -> bytes:
    styles = _styles()
    story: list[Flowable] = [Paragraph(_text(title), styles["title"])]
    for n, card in enumerate(cards, start=1):
        parts: list[Flowable] = [
            Paragraph(f"{n}. {_text(card.question)}", styles["question"]),
            Paragraph(f"<b>Answer:</b> {_text(card.answer)}", styles["option"]),
        ]
        if card.hint:
            parts.append(Paragraph(f"<i>Hint: {_text(card.hint)}</i>", styles["option"]))
        parts.append(Spacer(1, 8))
        story.append(KeepTogether(parts))
    return _build(story, title=title)


def quiz_to_pdf(questions: Sequence[QuizQuestion], *, title: str) -> bytes:
    styles = _styles()
    story: list[Flowable] = [Paragraph(_text(title), styles["title"])]
    for n, q in enumerate(questions, start=1):
        parts: list[Flowable] = [Paragraph(f"{n}. {_text(q.question)}", styles["question"])]
        for i, option in enumerate(q.options):
            line = f"{option_label(i)}. {_text(option)}"
            if i == q.correct_index:
                parts.append(Paragraph(f"{line} (correct)", styles["option_correct"]))
            else:
                parts.append(Paragraph(line, styles["option"]))
        if q.explanation:
            parts.append(Paragraph(f"<i>{_text(q.explanation)}</i>", styles["option"]))
        parts.append(Spacer(1, 8))
        story.append(KeepTogether(parts))
    return _build(story, title=title)


def slides_to_pdf(slides: Sequence[SlideEntry], *, title: str) -> bytes:
    """One page per slide entry, bullets in the given order."""
    styles = _styles()
    story: list[Flowable] = []
    for i, entry in enumerate(slides):
        if i:
            story.append(PageBreak())
        story.append(Paragraph(_text(entry.title), styles["slide_title"]))
        if entry.bullets:
            story.append(_bullets([_text(b) for b in entry.bullets], styles["slide_bullet"]))
    if not story:
        story.append(Paragraph(_text(title), styles["slide_title"]))
    return _build(story, title=title)
