"""
Deduplication and Ordering
==========================
A question number can appear more than once (an index page and the body,
for instance). Only the most complete occurrence survives, and the
survivors are numbered q-1, q-2, ... in ascending question order.
"""

from __future__ import annotations

import logging

from .models import Question, QuestionCandidate

logger = logging.getLogger(__name__)


class Deduplicator:
    """Keeps the longest candidate per question number, first seen on ties."""

    def deduplicate(
        self, candidates: list[QuestionCandidate]
    ) -> list[QuestionCandidate]:
        best: dict[int, QuestionCandidate] = {}

        for candidate in candidates:
            current = best.get(candidate.number)
            if current is None:
                best[candidate.number] = candidate
            elif candidate.content_length > current.content_length:
                logger.debug(
                    f"Replacing {current.raw_number} "
                    f"({current.content_length} chars) with longer "
                    f"occurrence ({candidate.content_length} chars)"
                )
                best[candidate.number] = candidate

        return list(best.values())


class IDAssigner:
    """Sorts candidates by number and assigns display ids."""

    def __init__(self, prefix: str = "q-"):
        self.prefix = prefix

    def assign(self, candidates: list[QuestionCandidate]) -> list[Question]:
        ordered = sorted(candidates, key=lambda c: c.number)
        return [
            Question(
                id=f"{self.prefix}{rank}",
                raw_number=c.raw_number,
                snippet=c.snippet,
                full_text=c.full_text,
            )
            for rank, c in enumerate(ordered, start=1)
        ]
