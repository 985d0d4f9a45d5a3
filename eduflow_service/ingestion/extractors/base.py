from __future__ import annotations

import re
import unicodedata
from abc import ABC, abstractmethod

from eduflow_service.ingestion.types import ExtractionOutcome

_INLINE_WS = re.compile(r"[^\S\n]+")
_BLANK_RUN = re.compile(r"\n{3,}")


class Extractor(ABC):
    """Turns the raw bytes of one container format into plain text.

    Per-item problems (one unreadable slide, one broken page) are reported as
    warnings on the outcome. Only a container that cannot be opened raises.
    """

    strategy: str = ""

    @abstractmethod
    def extract(self, *, data: bytes) -> ExtractionOutcome: ...


def _is_control(ch: str) -> bool:
    return unicodedata.category(ch) == "Cc" and not ch.isspace()


def normalize_text(text: str) -> str:
    """Collapse whitespace and drop control characters, keeping line order.

    Idempotent: ``normalize_text(normalize_text(x)) == normalize_text(x)``.
    """
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = "".join(ch for ch in text if not _is_control(ch))
    lines = [_INLINE_WS.sub(" ", line).strip() for line in text.split("\n")]
    text = "\n".join(lines)
    # At most one blank line between blocks
    text = _BLANK_RUN.sub("\n\n", text)
    return text.strip()
