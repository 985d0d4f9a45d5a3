from __future__ import annotations

import html
import io
import logging
import re
import zipfile
import zlib

from eduflow_service.errors import CorruptArchiveError
from eduflow_service.ingestion.extractors.base import Extractor
from eduflow_service.ingestion.types import ExtractionOutcome

logger = logging.getLogger(__name__)

_SLIDE_PART = re.compile(r"^ppt/slides/slide(\d+)\.xml$")
_TAG = re.compile(r"<[^>]*>")
_WS = re.compile(r"\s+")

_UNREADABLE_PART_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    UnicodeDecodeError,
    NotImplementedError,
    RuntimeError,
    EOFError,
    OSError,
)


def slide_parts(names: list[str]) -> list[tuple[int, str]]:
    """Return ``(slide_number, part_name)`` pairs in presentation order.

    Sorted by the integer embedded in the part name so slide10 follows slide9.
    """
    parts: list[tuple[int, str]] = []
    for name in names:
        m = _SLIDE_PART.match(name)
        if m:
            parts.append((int(m.group(1)), name))
    parts.sort(key=lambda p: p[0])
    return parts


def slide_xml_to_text(xml: str) -> str:
    text = _TAG.sub(" ", xml)
    text = html.unescape(text)
    return _WS.sub(" ", text).strip()


class PptxExtractor(Extractor):
    strategy = "pptx"

    def extract(self, *, data: bytes) -> ExtractionOutcome:
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as e:
            raise CorruptArchiveError(f"Slide deck archive cannot be opened: {e}") from e

        warnings: list[str] = []
        sections: list[str] = []
        empty = 0
        with archive:
            parts = slide_parts(archive.namelist())
            if not parts:
                warnings.append("Slide deck contains no slides")
            for number, name in parts:
                try:
                    xml = archive.read(name).decode("utf-8")
                except _UNREADABLE_PART_ERRORS as e:
                    logger.warning("Skipping unreadable slide part %s: %s", name, e)
                    warnings.append(f"Slide {number}: could not be read ({type(e).__name__})")
                    continue

                text = slide_xml_to_text(xml)
                if not text:
                    empty += 1
                    warnings.append(f"Slide {number}: no visible text")
                    continue
                sections.append(f"--- Slide {number} ---\n{text}")

        return ExtractionOutcome(
            text="\n\n".join(sections),
            warnings=tuple(warnings),
            extraction_meta={
                "strategy": self.strategy,
                "slides": len(parts),
                "empty_slides": empty,
            },
        )
