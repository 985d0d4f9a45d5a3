from __future__ import annotations

import io

import docx  # python-docx
from docx.shared import Pt
from docx.text.paragraph import Paragraph

from eduflow_service.export.markup import parse_blocks, parse_inline, xml_safe

_LIST_STYLES = {"bullet": "List Bullet", "number": "List Number"}


def _add_runs(paragraph: Paragraph, text: str) -> None:
    for span in parse_inline(text):
        run = paragraph.add_run(span.text)
        if span.bold:
            run.bold = True
        if span.italic:
            run.italic = True
        if span.code:
            run.font.name = "Courier New"


def notes_to_docx(text: str, *, title: str) -> bytes:
    """Render notes as a Word document; headings use the built-in Heading 1-3 styles."""
    d = docx.Document()
    style = d.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)
    title = xml_safe(title)
    d.core_properties.title = title
    d.add_heading(title, level=0)

    for block in parse_blocks(xml_safe(text)):
        if block.kind == "heading":
            p = d.add_heading("", level=block.level)
        elif block.kind in _LIST_STYLES:
            p = d.add_paragraph(style=_LIST_STYLES[block.kind])
        else:
            p = d.add_paragraph()
        _add_runs(p, block.text)

    buf = io.BytesIO()
    d.save(buf)
    return buf.getvalue()


def notes_to_markdown(text: str) -> bytes:
    body = text if text.endswith("\n") or not text else text + "\n"
    return body.encode("utf-8")
