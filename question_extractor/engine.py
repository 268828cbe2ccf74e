"""
Question Extractor Engine
=========================
Main orchestrator that combines PDF text extraction, the question pipeline,
validation, and output formatting.

Usage:
    engine = ParserEngine(config)
    result = engine.parse("path/to/exam.pdf")
    # result is a ParseResult with the ordered question list

Architecture:
    PDF → TextExtractor → page text → QuestionPipeline →
    Questions → ValidationEngine → ParseResult (JSON)
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from . import __version__
from .models import DocumentMetadata, ParseResult, ParseVersion
from .pipeline import PipelineConfig, QuestionPipeline
from .text_extractor import TextExtractor
from .validator import ValidationEngine

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class ParserConfig:
    """Configuration for the parser engine."""

    # Segmentation thresholds
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)

    # Output settings
    output_dir: str = "output"
    save_output: bool = True

    # Document metadata
    document_name: str = ""
    document_id: Optional[str] = None

    # Processing
    page_range: Optional[tuple[int, int]] = None

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


class ParserEngine:
    """
    Main question extraction engine.

    Orchestrates the full pipeline:
        1. Text extraction (all pages, in order)
        2. Segmentation into question records
        3. Validation
        4. Output formatting

    Thread-safe for parallel PDF processing.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self.pipeline = QuestionPipeline(self.config.pipeline)
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        package_logger = logging.getLogger("question_extractor")
        package_logger.setLevel(log_level)

        # Console handler
        if not package_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(console)

        # File handler, one per log path
        if self.config.log_file and not self._has_file_handler(
            package_logger, self.config.log_file
        ):
            log_dir = Path(self.config.log_file).parent
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(
                self.config.log_file, encoding="utf-8"
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            package_logger.addHandler(file_handler)

    def _has_file_handler(self, package_logger: logging.Logger, log_file: str) -> bool:
        target = os.path.abspath(log_file)
        return any(
            isinstance(h, logging.FileHandler) and h.baseFilename == target
            for h in package_logger.handlers
        )

    def parse(
        self,
        pdf_path: str,
        progress_callback: Optional[callable] = None,
    ) -> ParseResult:
        """
        Extract the questions of a PDF file.

        Args:
            pdf_path: Path to the PDF file to parse.
            progress_callback: Callback(page_num, total_pages) called on each page.

        Returns:
            ParseResult containing the questions, metadata, and validation.

        Raises:
            FileNotFoundError: If PDF file doesn't exist.
            RuntimeError: If PDF cannot be opened.
        """
        pdf_path = os.path.abspath(pdf_path)

        if not os.path.exists(pdf_path):
            raise FileNotFoundError(f"PDF not found: {pdf_path}")

        start_time = time.time()
        logger.info(f"Starting parse of: {pdf_path}")

        # ── Step 1: Compute file metadata ─────────────────────────────
        document = self._build_metadata(pdf_path)

        # ── Step 2: Extract text ──────────────────────────────────────
        logger.info("Phase 1: Text extraction")
        extractor = TextExtractor()
        text = extractor.extract(
            pdf_path,
            page_range=self.config.page_range,
            progress_callback=progress_callback,
        )
        document.total_pages = extractor.get_page_count(pdf_path)

        # ── Step 3: Segment, validate, save ───────────────────────────
        result = self._run(text, document)

        elapsed = time.time() - start_time
        logger.info(
            f"Parse complete in {elapsed:.2f}s, "
            f"{len(result.questions)} questions extracted"
        )
        return result

    def parse_text(self, text: str, source_name: str = "text") -> ParseResult:
        """Run the same flow on already-extracted text."""
        document = DocumentMetadata(
            name=self.config.document_name or source_name,
            source_file=source_name,
            file_hash=hashlib.sha256(text.encode("utf-8")).hexdigest(),
        )
        return self._run(text, document)

    def _run(self, text: str, document: DocumentMetadata) -> ParseResult:
        logger.info("Phase 2: Question segmentation")
        output = self.pipeline.run_detailed(text)
        document.text_length = len(output.text)

        logger.info("Phase 3: Validation")
        validation = ValidationEngine().validate(output)

        result = ParseResult(
            document=document,
            parse_version=ParseVersion(
                parser_version=__version__,
                markers_found=len(output.markers),
                question_count=len(output.questions),
            ),
            questions=output.questions,
            validation=validation,
        )

        if not result.questions:
            logger.warning(f"No valid questions found in {document.source_file}")

        if self.config.save_output:
            doc_id = self.config.document_id or self._generate_document_id(
                document.name
            )
            output_dir = Path(self.config.output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)
            self._save_json(result, output_dir / f"{doc_id}_questions.json")

        return result

    def _build_metadata(self, pdf_path: str) -> DocumentMetadata:
        """Build document metadata from file info and config."""
        return DocumentMetadata(
            name=self.config.document_name or Path(pdf_path).stem,
            source_file=os.path.basename(pdf_path),
            file_hash=self._compute_file_hash(pdf_path),
            file_size_bytes=os.path.getsize(pdf_path),
        )

    def _compute_file_hash(self, filepath: str) -> str:
        """Compute SHA-256 hash of a file."""
        sha256 = hashlib.sha256()
        with open(filepath, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                sha256.update(chunk)
        return sha256.hexdigest()

    def _generate_document_id(self, name: str) -> str:
        """Filesystem-safe id derived from the document name."""
        clean_name = "".join(
            c if c.isalnum() or c in "-_" else "_"
            for c in name
        )
        return clean_name[:50] or "document"

    def _save_json(self, result: ParseResult, filepath: Path):
        """Save ParseResult to JSON file."""
        try:
            data = result.model_dump(by_alias=True)
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
            logger.info(f"Saved JSON output: {filepath}")
        except OSError as e:
            logger.error(f"Failed to save JSON: {e}")
