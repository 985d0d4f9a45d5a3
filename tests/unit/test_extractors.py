"""Unit tests for the format extractors with real file bytes.

No mocks on the parsing libraries. Fixtures are built in memory.
"""

from __future__ import annotations

import io
import zipfile

import pytest

from eduflow_service.errors import CorruptArchiveError, ExtractionFailedError
from eduflow_service.ingestion.extractors.pptx import PptxExtractor, slide_parts, slide_xml_to_text

# ===========================================================================
# Slide decks
# ===========================================================================


class TestSlideParts:
    def test_numeric_not_lexical_order(self):
        names = [f"ppt/slides/slide{i}.xml" for i in (10, 2, 1, 11, 3)]
        assert [n for n, _ in slide_parts(names)] == [1, 2, 3, 10, 11]

    def test_ignores_non_slide_parts(self):
        names = [
            "ppt/slides/slide1.xml",
            "ppt/slides/_rels/slide1.xml.rels",
            "ppt/slideLayouts/slideLayout1.xml",
            "ppt/notesSlides/notesSlide1.xml",
            "ppt/slides/slide1.xml.bak",
        ]
        assert slide_parts(names) == [(1, "ppt/slides/slide1.xml")]

    def test_strips_tags_and_decodes_entities(self):
        xml = "<a:p><a:t>Q&amp;A</a:t></a:p><a:p><a:t>x &lt; y</a:t></a:p>"
        assert slide_xml_to_text(xml) == "Q&A x < y"


class TestPptxExtractor:
    def test_orders_twelve_slides_numerically(self, make_pptx):
        slides = [[f"Topic {i}"] for i in range(1, 13)]
        # Archive order deliberately scrambled
        data = make_pptx(slides, order=[9, 0, 11, 1, 10, 2, 3, 4, 5, 6, 7, 8])

        result = PptxExtractor().extract(data=data)

        headers = [line for line in result.text.splitlines() if line.startswith("--- Slide")]
        assert headers == [f"--- Slide {i} ---" for i in range(1, 13)]
        assert result.text.index("Topic 2") < result.text.index("Topic 10")
        assert result.warnings == ()
        assert result.extraction_meta["slides"] == 12

    def test_empty_slide_produces_warning_not_section(self, sample_pptx_bytes):
        result = PptxExtractor().extract(data=sample_pptx_bytes)

        assert result.text.count("--- Slide") == 2
        assert "--- Slide 1 ---\nPhotosynthesis Light reactions Calvin cycle" in result.text
        assert "--- Slide 3 ---\nSummary Plants make glucose & oxygen" in result.text
        assert "--- Slide 2 ---" not in result.text
        assert len(result.warnings) == 1
        assert "Slide 2" in result.warnings[0]
        assert result.extraction_meta["empty_slides"] == 1

    def test_sections_separated_by_blank_line(self, make_pptx):
        result = PptxExtractor().extract(data=make_pptx([["one"], ["two"]]))
        assert result.text == "--- Slide 1 ---\none\n\n--- Slide 2 ---\ntwo"

    def test_no_slides_is_soft_empty(self, make_pptx):
        result = PptxExtractor().extract(data=make_pptx([]))
        assert result.text == ""
        assert len(result.warnings) == 1
        assert result.extraction_meta["slides"] == 0

    def test_corrupt_archive_raises(self, corrupt_zip_bytes):
        with pytest.raises(CorruptArchiveError):
            PptxExtractor().extract(data=corrupt_zip_bytes)

    def test_unreadable_slide_is_skipped_with_warning(self, make_pptx):
        buf = io.BytesIO(make_pptx([["good slide"]]))
        with zipfile.ZipFile(buf, "a") as zf:
            zf.writestr("ppt/slides/slide2.xml", b"\xff\xfe\xfa not utf-8")
        result = PptxExtractor().extract(data=buf.getvalue())

        assert result.text == "--- Slide 1 ---\ngood slide"
        assert len(result.warnings) == 1
        assert "Slide 2" in result.warnings[0]

    def test_real_presentation(self):
        pptx = pytest.importorskip("pptx")
        prs = pptx.Presentation()
        for title, bullet in (("Intro", "Why cells divide"), ("Mitosis", "Four phases")):
            slide = prs.slides.add_slide(prs.slide_layouts[1])
            slide.shapes.title.text = title
            slide.placeholders[1].text_frame.text = bullet
        buf = io.BytesIO()
        prs.save(buf)

        result = PptxExtractor().extract(data=buf.getvalue())

        assert "--- Slide 1 ---\nIntro Why cells divide" in result.text
        assert "--- Slide 2 ---\nMitosis Four phases" in result.text


# ===========================================================================
# Word documents
# ===========================================================================


class TestDocxExtractor:
    def test_body_order_with_table(self, sample_docx_bytes):
        from eduflow_service.ingestion.extractors.docx import DocxExtractor

        result = DocxExtractor().extract(data=sample_docx_bytes)

        text = result.text
        assert text.index("Cell Biology") < text.index("First paragraph")
        assert text.index("First paragraph") < text.index("Organelle | Function")
        assert text.index("Mitochondria | Energy") < text.index("Closing")
        assert result.extraction_meta["tables"] == 1
        assert result.warnings == ()

    def test_empty_document_warns(self, empty_docx_bytes):
        from eduflow_service.ingestion.extractors.docx import DocxExtractor

        result = DocxExtractor().extract(data=empty_docx_bytes)
        assert result.text == ""
        assert len(result.warnings) == 1

    def test_not_a_package_raises(self):
        pytest.importorskip("docx")
        from eduflow_service.ingestion.extractors.docx import DocxExtractor

        with pytest.raises(CorruptArchiveError):
            DocxExtractor().extract(data=b"plain bytes, not a zip package")


# ===========================================================================
# PDF
# ===========================================================================


class TestPdfExtractor:
    def test_single_page(self, sample_pdf_bytes):
        from eduflow_service.ingestion.extractors.pdf import PdfExtractor

        result = PdfExtractor().extract(data=sample_pdf_bytes)
        assert "Line one" in result.text
        assert "Line three" in result.text
        assert result.extraction_meta["pages"] == 1
        assert result.warnings == ()

    def test_pages_in_order(self, multi_page_pdf_bytes):
        from eduflow_service.ingestion.extractors.pdf import PdfExtractor

        result = PdfExtractor().extract(data=multi_page_pdf_bytes)
        positions = [result.text.index(f"Content on page {i}.") for i in (1, 2, 3)]
        assert positions == sorted(positions)
        assert result.extraction_meta["pages"] == 3

    def test_no_text_warns(self, empty_pdf_bytes):
        from eduflow_service.ingestion.extractors.pdf import PdfExtractor

        result = PdfExtractor().extract(data=empty_pdf_bytes)
        assert result.text == ""
        assert result.extraction_meta["pages_without_text"] == 1
        assert len(result.warnings) == 1

    def test_empty_input_raises_with_cause(self):
        pytest.importorskip("pypdf")
        from eduflow_service.ingestion.extractors.pdf import PdfExtractor

        with pytest.raises(ExtractionFailedError) as exc_info:
            PdfExtractor().extract(data=b"")
        assert exc_info.value.__cause__ is not None

    def test_password_protected_raises(self, encrypted_pdf_bytes):
        from eduflow_service.ingestion.extractors.pdf import PdfExtractor

        with pytest.raises(ExtractionFailedError):
            PdfExtractor().extract(data=encrypted_pdf_bytes)
