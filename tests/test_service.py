"""
Test Suite for the Extraction Service
=====================================
Validation, engine, text extraction, HTTP API and CLI tests.
"""

from __future__ import annotations

import io
import json
import logging
import os
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from question_extractor.cli import cli
from question_extractor.engine import ParserConfig, ParserEngine
from question_extractor.models import ParseResult, ValidationReport
from question_extractor.pipeline import QuestionPipeline
from question_extractor.server import (
    INVALID_FILE_MESSAGE,
    MAX_UPLOAD_BYTES,
    NO_QUESTIONS_MESSAGE,
    create_app,
)
from question_extractor.text_extractor import TextExtractor
from question_extractor.validator import ValidationEngine


QUESTION = "Which of these words best completes the sentence below?"
SAMPLE_TEXT = (
    "Grade 3 ! 1 ! "
    f"(1) A: {QUESTION}\n"
    f"(2) {QUESTION} (4) {QUESTION}\n"
    "(2) short\n"
    "(5) ( ) 1 2 3 4 ( ) 1 2 3 4 ( ) 1 2 3 4 ( ) 1 2 3 4"
)


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDATION TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestValidationEngine:
    """Test the post-parse report."""

    def test_empty_text(self):
        report = ValidationEngine().validate(QuestionPipeline().run_detailed(""))

        assert report.markers_found == 0
        assert report.questions_emitted == 0
        assert report.yield_rate == 0.0

    def test_report(self):
        output = QuestionPipeline().run_detailed(SAMPLE_TEXT)
        report = ValidationEngine().validate(output)

        assert report.markers_found == 5
        assert report.blocks_discarded == 2
        assert report.discard_breakdown == {
            "too_short": 1,
            "answer_bubble_legend": 1,
        }
        assert report.duplicate_question_numbers == []
        assert report.missing_question_numbers == [3]
        assert report.questions_emitted == 3
        assert report.yield_rate == 60.0

    def test_duplicates_reported(self):
        text = f"(1) {QUESTION} (1) {QUESTION} extended"
        report = ValidationEngine().validate(QuestionPipeline().run_detailed(text))

        assert report.duplicate_question_numbers == [1]
        assert report.questions_emitted == 1

    def test_yield_rate_rounding(self):
        report = ValidationReport(markers_found=3, questions_emitted=1)
        assert report.yield_rate == 33.33


# ═══════════════════════════════════════════════════════════════════════════════
# ENGINE TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestParserEngine:
    """Test orchestration, metadata and JSON output."""

    def test_parse_text_saves_json(self, tmp_path):
        config = ParserConfig(output_dir=str(tmp_path), document_name="sample")
        result = ParserEngine(config).parse_text(SAMPLE_TEXT)

        assert [q.raw_number for q in result.questions] == ["(1)", "(2)", "(4)"]
        assert result.questions[0].snippet == QUESTION
        assert result.parse_version.markers_found == 5
        assert result.parse_version.question_count == 3

        saved = json.loads((tmp_path / "sample_questions.json").read_text("utf-8"))
        assert saved["questions"][0]["rawNumber"] == "(1)"
        assert saved["questions"][0]["fullText"] == f"(1) A: {QUESTION}"
        assert saved["validation"]["questions_emitted"] == 3

    def test_no_save(self, tmp_path):
        config = ParserConfig(output_dir=str(tmp_path / "out"), save_output=False)
        ParserEngine(config).parse_text(SAMPLE_TEXT)
        assert not (tmp_path / "out").exists()

    def test_no_questions_is_not_an_error(self, tmp_path):
        config = ParserConfig(output_dir=str(tmp_path), save_output=False)
        result = ParserEngine(config).parse_text("Nothing numbered here.")

        assert result.questions == []
        assert result.validation.markers_found == 0

    def test_missing_pdf(self, tmp_path):
        engine = ParserEngine(ParserConfig(save_output=False))
        with pytest.raises(FileNotFoundError):
            engine.parse(str(tmp_path / "missing.pdf"))

    def test_log_file_handler_added_once(self, tmp_path):
        log_file = str(tmp_path / "logs" / "extract.log")
        package_logger = logging.getLogger("question_extractor")
        config = ParserConfig(save_output=False, log_file=log_file)

        try:
            ParserEngine(config)
            ParserEngine(config)

            handlers = [
                h for h in package_logger.handlers
                if isinstance(h, logging.FileHandler)
                and h.baseFilename == os.path.abspath(log_file)
            ]
            assert len(handlers) == 1
        finally:
            for h in list(package_logger.handlers):
                if isinstance(h, logging.FileHandler):
                    package_logger.removeHandler(h)
                    h.close()

    def test_parse_pdf(self, tmp_path):
        pdf_path = tmp_path / "eiken-grade3.pdf"
        pdf_path.write_bytes(b"%PDF-1.4 placeholder")

        extractor = MagicMock()
        extractor.extract.return_value = SAMPLE_TEXT
        extractor.get_page_count.return_value = 2

        config = ParserConfig(output_dir=str(tmp_path / "out"))
        with patch("question_extractor.engine.TextExtractor", return_value=extractor):
            result = ParserEngine(config).parse(str(pdf_path))

        assert isinstance(result, ParseResult)
        assert result.document.name == "eiken-grade3"
        assert result.document.source_file == "eiken-grade3.pdf"
        assert result.document.total_pages == 2
        assert result.document.file_size_bytes == len(b"%PDF-1.4 placeholder")
        assert len(result.document.file_hash) == 64
        assert len(result.questions) == 3
        assert (tmp_path / "out" / "eiken-grade3_questions.json").exists()

    def test_page_range_passed_to_extractor(self, tmp_path):
        pdf_path = tmp_path / "exam.pdf"
        pdf_path.write_bytes(b"%PDF-1.4")

        extractor = MagicMock()
        extractor.extract.return_value = ""
        extractor.get_page_count.return_value = 10

        config = ParserConfig(page_range=(2, 4), save_output=False)
        with patch("question_extractor.engine.TextExtractor", return_value=extractor):
            ParserEngine(config).parse(str(pdf_path))

        assert extractor.extract.call_args.kwargs["page_range"] == (2, 4)


# ═══════════════════════════════════════════════════════════════════════════════
# TEXT EXTRACTOR TESTS
# ═══════════════════════════════════════════════════════════════════════════════


def _make_pdf(pages: list[list[str]]) -> bytes:
    import fitz

    doc = fitz.open()
    for lines in pages:
        page = doc.new_page()
        for i, line in enumerate(lines):
            page.insert_text((72, 72 + i * 14), line, fontsize=9)
    data = doc.tobytes()
    doc.close()
    return data


class TestTextExtractor:
    """Test page concatenation with a generated PDF."""

    def test_pages_joined_in_order(self, tmp_path):
        pdf_path = tmp_path / "two_pages.pdf"
        pdf_path.write_bytes(_make_pdf([
            ["Grade 3 ! 1 !", f"(1) {QUESTION}"],
            [f"(2) {QUESTION}"],
        ]))

        extractor = TextExtractor()
        text = extractor.extract(str(pdf_path))

        assert extractor.get_page_count(str(pdf_path)) == 2
        assert text.index("(1)") < text.index("(2)")
        assert [q.raw_number for q in QuestionPipeline().run(text)] == ["(1)", "(2)"]

    def test_page_range(self, tmp_path):
        pdf_path = tmp_path / "two_pages.pdf"
        pdf_path.write_bytes(_make_pdf([["first page"], ["second page"]]))

        text = TextExtractor().extract(str(pdf_path), page_range=(2, 2))

        assert "second page" in text
        assert "first page" not in text

    def test_from_bytes(self):
        text = TextExtractor().extract_from_bytes(_make_pdf([[f"(3) {QUESTION}"]]))
        assert "(3)" in text

    def test_unreadable_bytes(self):
        with pytest.raises(RuntimeError):
            TextExtractor().extract_from_bytes(b"this is not a pdf")


# ═══════════════════════════════════════════════════════════════════════════════
# HTTP API TESTS
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def client():
    app = create_app({"TESTING": True})
    return app.test_client()


class TestServer:
    """Test the Flask endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"

    def test_info(self, client):
        data = client.get("/api/info").get_json()
        assert data["min_content_length"] == 40
        assert data["snippet_length"] == 70

    def test_extract_text(self, client):
        response = client.post("/api/extract/text", json={"text": SAMPLE_TEXT})
        assert response.status_code == 200

        data = response.get_json()
        assert [q["id"] for q in data["questions"]] == ["q-1", "q-2", "q-3"]
        assert data["questions"][1]["rawNumber"] == "(2)"
        assert data["validation"]["blocks_discarded"] == 2

    def test_extract_text_without_questions(self, client):
        response = client.post("/api/extract/text", json={"text": "no markers"})
        assert response.status_code == 422
        assert response.get_json()["error"] == NO_QUESTIONS_MESSAGE

    def test_extract_text_requires_text(self, client):
        response = client.post("/api/extract/text", json={})
        assert response.status_code == 400

    def test_upload_rejects_non_pdf(self, client):
        response = client.post(
            "/api/extract",
            data={"file": (io.BytesIO(b"hello"), "notes.txt", "text/plain")},
            content_type="multipart/form-data",
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == INVALID_FILE_MESSAGE

    def test_upload_requires_file(self, client):
        response = client.post("/api/extract", data={})
        assert response.status_code == 400

    def test_upload_pdf(self, client):
        extractor = MagicMock()
        extractor.extract_from_bytes.return_value = SAMPLE_TEXT

        with patch("question_extractor.server.TextExtractor", return_value=extractor):
            response = client.post(
                "/api/extract",
                data={"file": (io.BytesIO(b"%PDF-1.4"), "exam.pdf", "application/pdf")},
                content_type="multipart/form-data",
            )

        assert response.status_code == 200
        data = response.get_json()
        assert data["document"]["source_file"] == "exam.pdf"
        assert data["document"]["file_size_bytes"] == 8
        assert len(data["questions"]) == 3

    def test_upload_unreadable_pdf(self, client):
        extractor = MagicMock()
        extractor.extract_from_bytes.side_effect = RuntimeError("Cannot open PDF")

        with patch("question_extractor.server.TextExtractor", return_value=extractor):
            response = client.post(
                "/api/extract",
                data={"file": (io.BytesIO(b"garbage"), "exam.pdf", "application/pdf")},
                content_type="multipart/form-data",
            )

        assert response.status_code == 400
        assert response.get_json()["error"] == INVALID_FILE_MESSAGE

    def test_export(self, client):
        questions = client.post(
            "/api/extract/text", json={"text": SAMPLE_TEXT}
        ).get_json()["questions"]

        response = client.post(
            "/api/export",
            json={"questions": questions, "selected_ids": ["q-3", "q-1"]},
        )

        assert response.status_code == 200
        assert response.get_json()["text"] == (
            f"(1) A: {QUESTION}\n\n(4) {QUESTION}"
        )

    def test_export_invalid_questions(self, client):
        response = client.post("/api/export", json={"questions": [{"id": "q-1"}]})
        assert response.status_code == 400

    def test_upload_limit_configured(self):
        app = create_app({"TESTING": True})
        assert app.config["MAX_CONTENT_LENGTH"] == MAX_UPLOAD_BYTES == 52428800

    def test_upload_too_large(self):
        client = create_app({"TESTING": True, "MAX_CONTENT_LENGTH": 10}).test_client()
        response = client.post(
            "/api/extract",
            data={"file": (io.BytesIO(b"%PDF-1.4 " + b"x" * 100), "exam.pdf", "application/pdf")},
            content_type="multipart/form-data",
        )

        assert response.status_code == 413
        assert "upload limit" in response.get_json()["error"]

    def test_extract_text_rejects_non_object_body(self, client):
        response = client.post("/api/extract/text", json=["a"])
        assert response.status_code == 400
        assert "error" in response.get_json()

    def test_extract_text_rejects_non_string_name(self, client):
        response = client.post(
            "/api/extract/text", json={"text": SAMPLE_TEXT, "name": 5}
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "name must be a string"

    @pytest.mark.parametrize("body", [
        ["q-1"],
        {"questions": 5},
        {"questions": [], "selected_ids": "q-1"},
        {"questions": [], "selected_ids": [1, 2]},
    ])
    def test_export_rejects_malformed_body(self, client, body):
        response = client.post("/api/export", json=body)
        assert response.status_code == 400
        assert "error" in response.get_json()


# ═══════════════════════════════════════════════════════════════════════════════
# CLI TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestCli:
    """Test the click commands on plain text input."""

    def _write_sample(self, tmp_path, text: str = SAMPLE_TEXT):
        path = tmp_path / "exam.txt"
        path.write_text(text, encoding="utf-8")
        return str(path)

    def test_text_select(self, tmp_path):
        result = CliRunner().invoke(
            cli, ["text", self._write_sample(tmp_path), "--no-save", "--select", "q-2"]
        )

        assert result.exit_code == 0
        assert result.stdout.strip() == f"(2) {QUESTION}"

    def test_text_json_output(self, tmp_path):
        result = CliRunner().invoke(
            cli, ["text", self._write_sample(tmp_path), "--no-save", "--json-output"]
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [q["rawNumber"] for q in data["questions"]] == ["(1)", "(2)", "(4)"]

    def test_text_without_questions_exits_nonzero(self, tmp_path):
        path = self._write_sample(tmp_path, "No numbered questions in here.")
        result = CliRunner().invoke(cli, ["text", path, "--no-save"])

        assert result.exit_code == 1
        assert "No valid questions found" in result.stdout

    def test_text_from_stdin(self, tmp_path):
        result = CliRunner().invoke(
            cli, ["text", "-", "--output", str(tmp_path)], input=SAMPLE_TEXT
        )

        assert result.exit_code == 0
        assert (tmp_path / "stdin_questions.json").exists()

    def test_parse_missing_file(self, tmp_path):
        result = CliRunner().invoke(cli, ["parse", str(tmp_path / "missing.pdf")])
        assert result.exit_code != 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
