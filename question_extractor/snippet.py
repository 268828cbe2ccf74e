"""
Snippet Builder
===============
Short display previews for question records. Snippets are cosmetic and
never used for filtering or deduplication.
"""

from __future__ import annotations

import re

SNIPPET_LENGTH = 70
ELLIPSIS = "..."

# Dialogue framing such as "A: ", "Boy 1 : ", "Man:"
SPEAKER_LABEL_PATTERN = re.compile(r"^[A-Za-z]+\s*[0-9]*\s*:\s*")


class SnippetBuilder:

    def __init__(self, max_length: int = SNIPPET_LENGTH, ellipsis: str = ELLIPSIS):
        self.max_length = max_length
        self.ellipsis = ellipsis

    def build(self, content: str) -> str:
        snippet = SPEAKER_LABEL_PATTERN.sub("", content, count=1).strip()
        if len(snippet) > self.max_length:
            return snippet[:self.max_length] + self.ellipsis
        return snippet
