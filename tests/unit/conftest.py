"""Unit test conftest - no database or network required."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Callable, Sequence

import pytest

_CONTENT_TYPES = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="xml" ContentType="application/xml"/>'
    "</Types>"
)

_SLIDE_TEMPLATE = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<p:sld xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" '
    'xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main">'
    "<p:cSld><p:spTree>{shapes}</p:spTree></p:cSld></p:sld>"
)


def _slide_xml(paragraphs: Sequence[str]) -> str:
    body = "".join(f"<a:p><a:r><a:t>{p}</a:t></a:r></a:p>" for p in paragraphs)
    shapes = f"<p:sp><p:txBody>{body}</p:txBody></p:sp>" if body else ""
    return _SLIDE_TEMPLATE.format(shapes=shapes)


def build_pptx(
    slides: Sequence[Sequence[str]],
    *,
    order: Sequence[int] | None = None,
) -> bytes:
    """Zip a minimal slide deck; ``slides[i]`` becomes ppt/slides/slide{i+1}.xml.

    Paragraph strings are inserted as-is, so callers escape XML themselves.
    ``order`` controls the order parts are written to the archive.
    """
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", _CONTENT_TYPES)
        zf.writestr("ppt/presentation.xml", "<p:presentation/>")
        for i in order if order is not None else range(len(slides)):
            zf.writestr(f"ppt/slides/slide{i + 1}.xml", _slide_xml(slides[i]))
            zf.writestr(f"ppt/slides/_rels/slide{i + 1}.xml.rels", "<Relationships/>")
    return buf.getvalue()


@pytest.fixture
def make_pptx() -> Callable[..., bytes]:
    return build_pptx


@pytest.fixture
def sample_pptx_bytes() -> bytes:
    """Three slides: two with bullets, the middle one empty."""
    return build_pptx(
        [
            ["Photosynthesis", "Light reactions", "Calvin cycle"],
            [],
            ["Summary", "Plants make glucose &amp; oxygen"],
        ]
    )


@pytest.fixture
def sample_docx_bytes() -> bytes:
    """Paragraphs with a table between them, in that body order."""
    docx = pytest.importorskip("docx")
    doc = docx.Document()
    doc.add_heading("Cell Biology", level=1)
    doc.add_paragraph("First paragraph of the document.")
    table = doc.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Organelle"
    table.cell(0, 1).text = "Function"
    table.cell(1, 0).text = "Mitochondria"
    table.cell(1, 1).text = "Energy"
    doc.add_paragraph("Closing    paragraph\twith  odd spacing.")
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def empty_docx_bytes() -> bytes:
    """Generate a valid DOCX with no paragraphs containing text."""
    docx = pytest.importorskip("docx")
    doc = docx.Document()
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """Generate a 1-page PDF with 3 lines via fpdf2."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", size=12)
    pdf.cell(text="Line one of the PDF document.")
    pdf.ln()
    pdf.cell(text="Line two with additional content.")
    pdf.ln()
    pdf.cell(text="Line three concludes the page.")
    return bytes(pdf.output())


@pytest.fixture
def multi_page_pdf_bytes() -> bytes:
    """Generate a 3-page PDF for page order verification."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.set_font("Helvetica", size=12)
    for i in range(1, 4):
        pdf.add_page()
        pdf.cell(text=f"Content on page {i}.")
    return bytes(pdf.output())


@pytest.fixture
def empty_pdf_bytes() -> bytes:
    """Generate a 1-page PDF with no text content."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.add_page()
    return bytes(pdf.output())


@pytest.fixture
def encrypted_pdf_bytes() -> bytes:
    """One-page PDF protected by a non-empty user password."""
    pypdf = pytest.importorskip("pypdf")
    writer = pypdf.PdfWriter()
    writer.add_blank_page(width=200, height=200)
    writer.encrypt(user_password="s3cret", owner_password="owner", algorithm="RC4-128")
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


@pytest.fixture
def corrupt_zip_bytes() -> bytes:
    return b"PK\x03\x04 definitely not a complete archive"
