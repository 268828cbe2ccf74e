"""
Normalizer
==========
Collapses whitespace and strips recurring page header artifacts from the
concatenated page text.
"""

from __future__ import annotations

import re
from typing import Optional

WHITESPACE_PATTERN = re.compile(r"\s+")

# "Grade 3 ! 4 !", "Grade Pre-2 ! 6 !" (section header + page number)
GRADE_HEADER_PATTERN = re.compile(r"Grade\s+(?:Pre-)?[0-9]+\s*!\s*[0-9]+\s*!")


def collapse_whitespace(text: str) -> str:
    """Replace every whitespace run with one space and trim."""
    return WHITESPACE_PATTERN.sub(" ", text).strip()


class Normalizer:
    """Cleans raw page text before marker scanning."""

    def __init__(self, header_patterns: Optional[list[re.Pattern]] = None):
        if header_patterns is None:
            header_patterns = [GRADE_HEADER_PATTERN]
        self.header_patterns = header_patterns

    def normalize(self, text: str) -> str:
        text = collapse_whitespace(text)
        for pattern in self.header_patterns:
            text = pattern.sub(" ", text)
        return collapse_whitespace(text)
