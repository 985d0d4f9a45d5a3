"""CSV renderings of flashcards and quizzes.

Quoting is left to ``csv.writer`` (QUOTE_MINIMAL): fields holding the
delimiter, a quote or a line break are quoted and inner quotes doubled.
Rows end in CRLF.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence

from eduflow_service.export.content import Flashcard, QuizQuestion

FLASHCARD_COLUMNS = ["Question", "Answer", "Hint"]
ANSWER_KEY_COLUMNS = ["Question #", "Correct Answer", "Explanation"]
_MIN_OPTION_COLUMNS = 4


def option_label(index: int) -> str:
    return chr(ord("A") + index) if index < 26 else str(index + 1)


def _csv_bytes(rows: Iterable[Sequence[object]]) -> bytes:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerows(rows)
    return buf.getvalue().encode("utf-8")


def quiz_columns(questions: Sequence[QuizQuestion]) -> list[str]:
    width = max([_MIN_OPTION_COLUMNS, *(len(q.options) for q in questions)])
    return [
        "Question #",
        "Question",
        *(f"Option {option_label(i)}" for i in range(width)),
        "Correct Answer",
        "Explanation",
    ]


def flashcards_to_csv(cards: Sequence[Flashcard]) -> bytes:
    rows: list[list[str]] = [FLASHCARD_COLUMNS]
    rows.extend([c.question, c.answer, c.hint or ""] for c in cards)
    return _csv_bytes(rows)


def quiz_to_csv(questions: Sequence[QuizQuestion]) -> bytes:
    header = quiz_columns(questions)
    width = len(header) - 4
    rows: list[list[str]] = [header]
    for n, q in enumerate(questions, start=1):
        options = list(q.options) + [""] * (width - len(q.options))
        rows.append(
            [str(n), q.question, *options, option_label(q.correct_index), q.explanation or ""]
        )
    return _csv_bytes(rows)


def quiz_answer_key_csv(questions: Sequence[QuizQuestion]) -> bytes:
    rows: list[list[str]] = [ANSWER_KEY_COLUMNS]
    rows.extend(
        [str(n), option_label(q.correct_index), q.explanation or ""]
        for n, q in enumerate(questions, start=1)
    )
    return _csv_bytes(rows)
