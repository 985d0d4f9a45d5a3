"""Unit tests for (kind, format) dispatch in front of the serializers."""

from __future__ import annotations

import csv
import io
from unittest.mock import MagicMock, patch

import pytest

from eduflow_service.errors import InvalidArtifactContentError, UnsupportedCombinationError
from eduflow_service.export import dispatcher
from eduflow_service.export.dispatcher import (
    available_formats,
    is_supported_combination,
    sanitize_filename,
    serialize,
)

QUIZ = [
    {
        "question": "2 + 2?",
        "options": ["3", "4", "5", "22"],
        "correctIndex": 1,
        "explanation": "basic, arithmetic",
    }
]
FLASHCARDS = [{"front": "Capital of France?", "back": "Paris"}]
SLIDES = [{"title": "Intro", "bullets": ["one", "two"]}]


class TestCombinationTable:
    def test_available_formats(self):
        assert available_formats("notes") == ["docx", "pdf", "md"]
        assert available_formats("flashcards") == ["csv", "anki", "anki-enhanced", "pdf"]
        assert available_formats("quiz") == ["csv", "answer-key", "pdf"]
        assert available_formats("slides") == ["pptx", "pdf"]
        assert available_formats("mindmap") == []

    @pytest.mark.parametrize(
        ("kind", "fmt"),
        [("quiz", "pptx"), ("slides", "csv"), ("notes", "anki"), ("flashcards", "docx")],
    )
    def test_unmapped_pairs(self, kind: str, fmt: str):
        assert not is_supported_combination(kind, fmt)

    def test_quiz_as_slides_rejected_before_any_serializer(self):
        spies = {key: MagicMock(wraps=entry) for key, entry in dispatcher._SERIALIZERS.items()}
        with patch.dict(dispatcher._SERIALIZERS, spies):
            with pytest.raises(UnsupportedCombinationError) as exc_info:
                serialize("quiz", "pptx", QUIZ)
        for spy in spies.values():
            spy.render.assert_not_called()
        assert exc_info.value.status_code == 400
        assert exc_info.value.is_client_error

    def test_unknown_format_string(self):
        with pytest.raises(UnsupportedCombinationError):
            serialize("quiz", "xlsx", QUIZ)

    def test_unknown_kind_string(self):
        with pytest.raises(UnsupportedCombinationError):
            serialize("mindmap", "pdf", {})


class TestSerialize:
    def test_quiz_csv(self):
        out = serialize("quiz", "csv", QUIZ, title="Week 1: Arithmetic!")

        assert out.mime_type == "text/csv"
        assert out.file_name == "week_1_arithmetic-quiz.csv"
        rows = list(csv.reader(io.StringIO(out.buffer.decode("utf-8"), newline="")))
        assert rows[1][1] == "2 + 2?"
        assert rows[1][-2:] == ["B", "basic, arithmetic"]

    def test_flashcards_anki_accepts_front_back(self):
        out = serialize("flashcards", "anki", FLASHCARDS, title="Geo")
        assert out.file_name == "geo-anki.txt"
        assert b"Capital of France?\tParis" in out.buffer

    def test_default_title(self):
        out = serialize("notes", "md", "# Hello")
        assert out.file_name == "eduflow-notes.md"
        assert out.mime_type == "text/markdown"

    def test_slides_pptx(self):
        pytest.importorskip("pptx")
        out = serialize("slides", "pptx", SLIDES, title="Deck")
        assert out.mime_type.endswith("presentationml.presentation")
        assert out.buffer[:2] == b"PK"

    def test_notes_docx_with_control_characters(self):
        pytest.importorskip("docx")
        out = serialize("notes", "docx", "para \x01 x", title="Week\x02 1")
        assert out.buffer[:2] == b"PK"
        assert out.file_name == "week_1-notes.docx"

    def test_malformed_content_is_not_repaired(self):
        bad = [{"question": "?", "options": ["a", "b"], "correct_index": 5}]
        with pytest.raises(InvalidArtifactContentError):
            serialize("quiz", "csv", bad)

    def test_content_shape_must_match_kind(self):
        with pytest.raises(InvalidArtifactContentError):
            serialize("slides", "pdf", "just a string")


class TestSanitizeFilename:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Biology 101", "biology_101"),
            ("../../etc/passwd", "etc_passwd"),
            ("ok-name_1", "ok-name_1"),
            ("Ünïcode Tïtle", "n_code_t_tle"),
            ("", "export"),
            ("!!!", "export"),
        ],
    )
    def test_sanitize(self, raw: str, expected: str):
        assert sanitize_filename(raw) == expected
