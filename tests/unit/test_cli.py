"""Unit tests for the offline eduflow-transcode command."""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from eduflow_service.cli import build_parser
from eduflow_service.main import _guess_media_type, main


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch("eduflow_service.main.setup_logging"):
        yield


class TestParser:
    def test_export_requires_kind_and_format(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["export", "in.json"])

    def test_unknown_format_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["export", "in.json", "--kind", "quiz", "--format", "xlsx"])

    def test_export_args(self):
        args = build_parser().parse_args(
            ["export", "-", "--kind", "flashcards", "--format", "anki-enhanced", "--title", "Bio"]
        )
        assert args.command == "export"
        assert args.target_format == "anki-enhanced"
        assert args.title == "Bio"
        assert args.output is None


class TestGuessMediaType:
    def test_pptx(self):
        assert _guess_media_type(Path("deck.PPTX")).endswith("presentationml.presentation")

    def test_pdf(self):
        assert _guess_media_type(Path("paper.pdf")) == "application/pdf"

    def test_unknown(self):
        assert _guess_media_type(Path("blob")) == "application/octet-stream"


class TestExtractCommand:
    def test_prints_text_and_warnings(self, tmp_path, sample_pptx_bytes, capsys):
        src = tmp_path / "deck.pptx"
        src.write_bytes(sample_pptx_bytes)

        assert main(["extract", str(src)]) == 0

        captured = capsys.readouterr()
        assert captured.out.startswith("--- Slide 1 ---")
        assert "warning: Slide 2: no visible text" in captured.err

    def test_unsupported_type_exit_code(self, tmp_path):
        src = tmp_path / "song.mp3"
        src.write_bytes(b"ID3")
        assert main(["extract", str(src), "--media-type", "audio/mpeg"]) == 2

    def test_missing_file_exit_code(self, tmp_path):
        assert main(["extract", str(tmp_path / "nope.pdf")]) == 1


class TestExportCommand:
    def test_quiz_csv_to_output(self, tmp_path):
        src = tmp_path / "quiz.json"
        src.write_text(
            json.dumps([{"question": "2+2?", "options": ["3", "4"], "correctIndex": 1}]),
            encoding="utf-8",
        )
        dest = tmp_path / "out.csv"

        rc = main(["export", str(src), "--kind", "quiz", "--format", "csv", "-o", str(dest)])

        assert rc == 0
        rows = list(csv.reader(io.StringIO(dest.read_text(encoding="utf-8"))))
        assert rows[1][:2] == ["1", "2+2?"]
        assert "B" in rows[1]

    def test_default_file_name(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        src = tmp_path / "notes.json"
        src.write_text(json.dumps("# Cells\n\nThe unit of life."), encoding="utf-8")

        rc = main(["export", str(src), "--kind", "notes", "--format", "md", "--title", "Bio 101"])

        assert rc == 0
        assert (tmp_path / "bio_101-notes.md").read_text(encoding="utf-8").startswith("# Cells")

    def test_unsupported_combination_exit_code(self, tmp_path):
        src = tmp_path / "quiz.json"
        src.write_text("[]", encoding="utf-8")
        assert main(["export", str(src), "--kind", "quiz", "--format", "pptx"]) == 2

    def test_invalid_json_exit_code(self, tmp_path):
        src = tmp_path / "broken.json"
        src.write_text("{not json", encoding="utf-8")
        assert main(["export", str(src), "--kind", "notes", "--format", "md"]) == 1
