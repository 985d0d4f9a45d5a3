from __future__ import annotations

import io

import docx  # python-docx
from docx.table import Table
from docx.text.paragraph import Paragraph

from eduflow_service.errors import CorruptArchiveError
from eduflow_service.ingestion.extractors.base import Extractor
from eduflow_service.ingestion.types import ExtractionOutcome


def _table_lines(table: Table) -> list[str]:
    lines: list[str] = []
    for row in table.rows:
        cells = [c.text.strip() for c in row.cells]
        if any(cells):
            lines.append(" | ".join(cells))
    return lines


class DocxExtractor(Extractor):
    strategy = "docx"

    def extract(self, *, data: bytes) -> ExtractionOutcome:
        try:
            d = docx.Document(io.BytesIO(data))
        except Exception as e:
            raise CorruptArchiveError(f"Word document cannot be opened: {e}") from e

        parts: list[str] = []
        paragraphs = 0
        tables = 0
        # Body order: paragraphs and tables interleaved as authored
        for block in d.iter_inner_content():
            if isinstance(block, Paragraph):
                if block.text and block.text.strip():
                    paragraphs += 1
                    parts.append(block.text)
            elif isinstance(block, Table):
                lines = _table_lines(block)
                if lines:
                    tables += 1
                    parts.append("\n".join(lines))

        warnings: tuple[str, ...] = ()
        if not parts:
            warnings = ("Word document contains no text",)

        return ExtractionOutcome(
            text="\n".join(parts),
            warnings=warnings,
            extraction_meta={
                "strategy": self.strategy,
                "paragraphs": paragraphs,
                "tables": tables,
            },
        )
