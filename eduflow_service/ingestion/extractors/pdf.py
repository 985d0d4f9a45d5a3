from __future__ import annotations

import io
import logging

from pypdf import PasswordType, PdfReader

from eduflow_service.errors import ExtractionFailedError
from eduflow_service.ingestion.extractors.base import Extractor
from eduflow_service.ingestion.types import ExtractionOutcome

logger = logging.getLogger(__name__)


class PdfExtractor(Extractor):
    strategy = "pypdf"

    def _open(self, data: bytes) -> PdfReader:
        try:
            r = PdfReader(io.BytesIO(data))
        except Exception as e:
            raise ExtractionFailedError(f"PDF cannot be parsed: {e}") from e

        if r.is_encrypted:
            try:
                result = r.decrypt("")
            except Exception as e:
                raise ExtractionFailedError(f"Encrypted PDF cannot be decrypted: {e}") from e
            if result == PasswordType.NOT_DECRYPTED:
                raise ExtractionFailedError("PDF is password protected")
        return r

    def extract(self, *, data: bytes) -> ExtractionOutcome:
        r = self._open(data)
        try:
            pages = list(r.pages)
        except Exception as e:
            raise ExtractionFailedError(f"PDF page tree is unreadable: {e}") from e

        parts: list[str] = []
        warnings: list[str] = []
        without_text = 0
        for number, page in enumerate(pages, start=1):
            try:
                t = page.extract_text() or ""
            except Exception as e:
                logger.warning("PyPDF text extraction failed on page %d: %s", number, e)
                warnings.append(f"Page {number}: text extraction failed ({type(e).__name__})")
                continue
            if t.strip():
                parts.append(t)
            else:
                without_text += 1

        if not parts and not warnings:
            warnings.append("PDF contains no extractable text")

        return ExtractionOutcome(
            text="\n\n".join(parts),
            warnings=tuple(warnings),
            extraction_meta={
                "strategy": self.strategy,
                "pages": len(pages),
                "pages_without_text": without_text,
            },
        )
