"""Line-level reading of the light Markdown used in generated notes.

Recognises ``#``/``##``/``###`` headings, ``-``/``*`` bullets, ``1.`` numbered
items and plain paragraphs, plus ``**bold**``, ``*italic*`` and ```code```
inline spans. Shared by the DOCX and PDF notes renderers.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass

_HEADING = re.compile(r"^(#{1,6})\s+(.*)$")
_BULLET = re.compile(r"^[-*+]\s+(.*)$")
_NUMBERED = re.compile(r"^(\d+)[.)]\s+(.*)$")
_INLINE = re.compile(r"(\*\*.+?\*\*|__.+?__|`[^`]+`|\*[^*\s][^*]*\*|_[^_\s][^_]*_)")
# Characters XML 1.0 cannot carry (C0 controls other than tab, LF, CR; surrogates; U+FFFE/U+FFFF)
_XML_INVALID = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


@dataclass(frozen=True)
class Block:
    kind: str  # heading|bullet|number|paragraph
    text: str
    level: int = 0  # heading level 1-3, or the item number for "number"


@dataclass(frozen=True)
class Span:
    text: str
    bold: bool = False
    italic: bool = False
    code: bool = False


def parse_blocks(markdown_text: str) -> list[Block]:
    """Split notes into blocks, joining wrapped paragraph lines."""
    blocks: list[Block] = []
    paragraph: list[str] = []

    def flush() -> None:
        if paragraph:
            blocks.append(Block("paragraph", " ".join(paragraph)))
            paragraph.clear()

    for raw_line in (markdown_text or "").splitlines():
        line = raw_line.strip()
        if not line:
            flush()
            continue
        if m := _HEADING.match(line):
            flush()
            blocks.append(Block("heading", m.group(2).strip(), min(len(m.group(1)), 3)))
        elif m := _BULLET.match(line):
            flush()
            blocks.append(Block("bullet", m.group(1).strip()))
        elif m := _NUMBERED.match(line):
            flush()
            blocks.append(Block("number", m.group(2).strip(), int(m.group(1))))
        else:
            paragraph.append(line)
    flush()
    return blocks


def parse_inline(text: str) -> list[Span]:
    spans: list[Span] = []
    for part in _INLINE.split(text or ""):
        if not part:
            continue
        if len(part) >= 4 and part[:2] in ("**", "__") and part[-2:] == part[:2]:
            spans.append(Span(part[2:-2], bold=True))
        elif len(part) >= 2 and part[0] == "`" and part[-1] == "`":
            spans.append(Span(part[1:-1], code=True))
        elif len(part) >= 3 and part[0] in "*_" and part[-1] == part[0]:
            spans.append(Span(part[1:-1], italic=True))
        else:
            spans.append(Span(part))
    return spans


def inline_to_pdf_markup(text: str) -> str:
    """Render inline spans as reportlab paragraph markup, escaping everything else."""
    out: list[str] = []
    for span in parse_inline(text):
        s = html.escape(span.text, quote=False)
        if span.code:
            s = f'<font face="Courier">{s}</font>'
        if span.italic:
            s = f"<i>{s}</i>"
        if span.bold:
            s = f"<b>{s}</b>"
        out.append(s)
    return "".join(out)


def xml_safe(text: str) -> str:
    """Drop characters that cannot appear in an XML document."""
    return _XML_INVALID.sub("", text)
