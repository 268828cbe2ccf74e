"""
HTTP Microservice
=================
Flask-based HTTP API for the question extractor.

Extraction is synchronous: the pipeline is pure and fast, only the PDF
decoding touches the upload.

Endpoints:
    POST   /api/extract       → Extract questions from an uploaded PDF
    POST   /api/extract/text  → Extract questions from raw text (JSON)
    POST   /api/export        → Join selected questions' full text
    GET    /api/health        → Health check
    GET    /api/info          → Extractor version info
"""

from __future__ import annotations

import hashlib
import logging
import os
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from . import __version__
from .models import DocumentMetadata, Question
from .pipeline import PipelineConfig, QuestionPipeline, join_full_text
from .text_extractor import TextExtractor
from .validator import ValidationEngine

logger = logging.getLogger(__name__)

INVALID_FILE_MESSAGE = "Please upload a valid PDF file."
NO_QUESTIONS_MESSAGE = "No valid questions found in this PDF."
EXTRACTION_ERROR_PREFIX = "An error occurred while extracting text from the PDF: "
MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50MB


def create_app(config: Optional[dict] = None) -> Flask:
    """Create and configure the Flask app."""
    app = Flask(__name__)
    CORS(app)

    app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES
    app.config["PIPELINE_CONFIG"] = PipelineConfig()
    if config:
        app.config.update(config)

    pipeline = QuestionPipeline(app.config["PIPELINE_CONFIG"])
    validator = ValidationEngine()

    def _extract_response(text: str, document: DocumentMetadata):
        output = pipeline.run_detailed(text)
        document.text_length = len(output.text)
        validation = validator.validate(output)

        body = {
            "document": document.model_dump(),
            "questions": [q.model_dump(by_alias=True) for q in output.questions],
            "validation": validation.model_dump(),
        }
        if not output.questions:
            body["error"] = NO_QUESTIONS_MESSAGE
            return jsonify(body), 422
        return jsonify(body)

    # ─── Health Check ─────────────────────────────────────────────────────

    @app.route("/api/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({
            "status": "healthy",
            "service": "question-extractor",
            "version": __version__,
        })

    @app.route("/api/info", methods=["GET"])
    def info():
        """Extractor version and capability info."""
        pipeline_config = app.config["PIPELINE_CONFIG"]
        return jsonify({
            "version": __version__,
            "engine": "PyMuPDF",
            "capabilities": [
                "text_extraction",
                "question_segmentation",
                "deduplication",
                "selection_export",
            ],
            "min_content_length": pipeline_config.min_content_length,
            "snippet_length": pipeline_config.snippet_length,
            "supported_formats": ["pdf", "text"],
        })

    # ─── Extraction Endpoints ─────────────────────────────────────────────

    @app.route("/api/extract", methods=["POST"])
    def extract_pdf():
        """
        Extract questions from a PDF upload (multipart/form-data, "file").

        Returns 400 for a missing or non-PDF upload and 422 when the
        document holds no recognizable questions.
        """
        if "file" not in request.files:
            return jsonify({"error": "No file uploaded"}), 400

        file = request.files["file"]
        if not file.filename:
            return jsonify({"error": "No file selected"}), 400

        if not _is_pdf(file.filename, file.mimetype):
            return jsonify({"error": INVALID_FILE_MESSAGE}), 400

        data = file.read()
        try:
            text = TextExtractor().extract_from_bytes(data)
        except RuntimeError as e:
            logger.warning(f"Unreadable upload {file.filename}: {e}")
            return jsonify({"error": INVALID_FILE_MESSAGE}), 400
        except Exception as e:
            logger.exception(f"Extraction failed for {file.filename}")
            return jsonify({"error": EXTRACTION_ERROR_PREFIX + str(e)}), 500

        document = DocumentMetadata(
            name=os.path.splitext(file.filename)[0],
            source_file=file.filename,
            file_hash=hashlib.sha256(data).hexdigest(),
            file_size_bytes=len(data),
        )
        logger.info(f"Extracting questions from upload: {file.filename}")
        return _extract_response(text, document)

    @app.route("/api/extract/text", methods=["POST"])
    def extract_text():
        """Extract questions from JSON ``{"text": "..."}``."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not isinstance(data.get("text"), str):
            return jsonify({"error": "Provide JSON with a text field"}), 400

        name = data.get("name", "text")
        if not isinstance(name, str):
            return jsonify({"error": "name must be a string"}), 400

        text = data["text"]
        document = DocumentMetadata(
            name=name,
            source_file=name,
            file_hash=hashlib.sha256(text.encode("utf-8")).hexdigest(),
        )
        return _extract_response(text, document)

    @app.route("/api/export", methods=["POST"])
    def export():
        """
        Join the full text of the selected questions with blank lines.

        Body: ``{"questions": [...], "selected_ids": ["q-1", ...]}``;
        omitting ``selected_ids`` exports every question.
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Provide a JSON object"}), 400

        raw_questions = data.get("questions", [])
        if not isinstance(raw_questions, list):
            return jsonify({"error": "questions must be a list"}), 400

        selected_ids = data.get("selected_ids")
        if selected_ids is not None and not (
            isinstance(selected_ids, list)
            and all(isinstance(i, str) for i in selected_ids)
        ):
            return jsonify({"error": "selected_ids must be a list of ids"}), 400

        try:
            questions = [Question.model_validate(q) for q in raw_questions]
        except ValueError as e:
            return jsonify({"error": f"Invalid questions: {e}"}), 400

        text = join_full_text(questions, selected_ids)
        return jsonify({"text": text})

    @app.errorhandler(413)
    def upload_too_large(e):
        limit_mb = app.config["MAX_CONTENT_LENGTH"] // (1024 * 1024)
        return jsonify({"error": f"File exceeds the {limit_mb}MB upload limit"}), 413

    return app


def _is_pdf(filename: str, mimetype: Optional[str]) -> bool:
    return mimetype == "application/pdf" or filename.lower().endswith(".pdf")


def run_server(host: str = "0.0.0.0", port: int = 5000, debug: bool = False):
    """Start the HTTP server."""
    app = create_app()
    logger.info(f"Starting question extractor API on {host}:{port}")
    app.run(host=host, port=port, debug=debug)
