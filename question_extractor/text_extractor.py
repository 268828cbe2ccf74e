"""
Text Extractor
==============
Pulls plain page text out of PDF files using PyMuPDF (fitz).

Pages are concatenated in order with a single space after each page, the
input shape the question pipeline expects.
"""

from __future__ import annotations

import logging
from typing import Optional

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)


class TextExtractor:
    """
    Handles PDF ingestion at the text level.

    The question pipeline only needs one string per document, so layout,
    fonts and images are ignored here.
    """

    def get_page_count(self, pdf_path: str) -> int:
        """Get total number of pages in the PDF."""
        with self._open(pdf_path) as doc:
            return doc.page_count

    def extract(
        self,
        pdf_path: str,
        page_range: Optional[tuple[int, int]] = None,
        progress_callback: Optional[callable] = None,
    ) -> str:
        """
        Extract the text of every page in the PDF.

        Args:
            pdf_path: Path to the PDF file.
            page_range: Optional (start, end) range (1-indexed, inclusive).
            progress_callback: Optional callable(current, total).

        Returns:
            All page texts joined in page order.

        Raises:
            RuntimeError: If the document cannot be opened.
        """
        with self._open(pdf_path) as doc:
            return self._extract_pages(doc, page_range, progress_callback)

    def extract_from_bytes(
        self,
        data: bytes,
        page_range: Optional[tuple[int, int]] = None,
    ) -> str:
        """Same as ``extract`` for an in-memory PDF (e.g. an upload)."""
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise RuntimeError(f"Cannot open PDF: {e}") from e

        with doc:
            return self._extract_pages(doc, page_range)

    def _open(self, pdf_path: str) -> fitz.Document:
        try:
            return fitz.open(pdf_path)
        except Exception as e:
            raise RuntimeError(f"Cannot open PDF {pdf_path}: {e}") from e

    def _extract_pages(
        self,
        doc: fitz.Document,
        page_range: Optional[tuple[int, int]] = None,
        progress_callback: Optional[callable] = None,
    ) -> str:
        total_pages = doc.page_count

        # Determine page range (1-indexed)
        start_page = 1
        end_page = total_pages
        if page_range:
            start_page = max(1, page_range[0])
            end_page = min(total_pages, page_range[1])

        logger.info(f"Extracting text (pages {start_page} to {end_page})")

        full_text = ""
        for page_idx in range(start_page - 1, end_page):
            page = doc[page_idx]
            full_text += page.get_text("text") + " "

            if progress_callback:
                progress_callback(
                    page_idx - start_page + 2, end_page - start_page + 1
                )

        return full_text
