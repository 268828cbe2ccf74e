"""
Marker Scanner
==============
Locates question-number markers such as "(12)" or "( 7 )" in normalized
text. Every occurrence is kept, in text order; duplicates are resolved
later by the deduplicator.
"""

from __future__ import annotations

import logging
import re

from .models import Marker

logger = logging.getLogger(__name__)

# ASCII digits only; full-width "(１２)" is not a marker
MARKER_PATTERN = re.compile(r"\(\s*([0-9]+)\s*\)")


class MarkerScanner:
    """Single left-to-right pass producing Marker spans."""

    def __init__(self, pattern: re.Pattern = MARKER_PATTERN):
        self.pattern = pattern

    def scan(self, text: str) -> list[Marker]:
        markers = [
            Marker(
                position=match.start(),
                end=match.end(),
                number=int(match.group(1)),
                raw=f"({match.group(1)})",
            )
            for match in self.pattern.finditer(text)
        ]
        logger.debug(f"Found {len(markers)} markers")
        return markers
