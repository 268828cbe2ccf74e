"""
PDF Question Extractor
======================
Turns exam PDFs into an ordered list of numbered question records.

Architecture:
    - Text Extractor: Concatenates page text from the PDF (PyMuPDF)
    - Normalizer: Collapses whitespace and strips page headers
    - Marker Scanner: Finds parenthesized question numbers, e.g. "(12)"
    - Segmenter: Slices the text between consecutive markers
    - Artifact Filter: Drops answer-sheet rows and other short fragments
    - Snippet Builder: Short display previews
    - Deduplicator: Keeps the most complete occurrence per number
    - Validation Engine: Reports discards, duplicates and gaps

Version: 1.0.0
"""

__version__ = "1.0.0"

from .pipeline import (  # noqa: E402
    PipelineConfig,
    QuestionPipeline,
    extract_questions,
    join_full_text,
)

__all__ = [
    "PipelineConfig",
    "QuestionPipeline",
    "extract_questions",
    "join_full_text",
]
