"""
Question Pipeline
=================
Turns concatenated page text into an ordered list of Question records.

Stages, each a pure function of the previous stage's output:
    text → Normalizer → MarkerScanner → Segmenter → ArtifactFilter →
    SnippetBuilder → Deduplicator → IDAssigner → list[Question]

The pipeline never raises on string input: text without markers, or with
only rejected blocks, yields an empty list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .dedup import Deduplicator, IDAssigner
from .filters import MIN_CONTENT_LENGTH, ArtifactFilter, ExclusionRule, default_rules
from .models import ContentBlock, Marker, Question, QuestionCandidate
from .normalizer import Normalizer
from .scanner import MarkerScanner
from .segmenter import Segmenter
from .snippet import ELLIPSIS, SNIPPET_LENGTH, SnippetBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    """Tunable thresholds for one document corpus."""

    min_content_length: int = MIN_CONTENT_LENGTH
    snippet_length: int = SNIPPET_LENGTH
    ellipsis: str = ELLIPSIS
    # None means default_rules(min_content_length)
    exclusion_rules: Optional[tuple[ExclusionRule, ...]] = None

    def rules(self) -> list[ExclusionRule]:
        if self.exclusion_rules is None:
            return default_rules(self.min_content_length)
        return list(self.exclusion_rules)


@dataclass
class PipelineOutput:
    """Final questions plus the intermediate results that produced them."""

    text: str
    markers: list[Marker] = field(default_factory=list)
    discarded: list[tuple[ContentBlock, str]] = field(default_factory=list)
    candidates: list[QuestionCandidate] = field(default_factory=list)
    questions: list[Question] = field(default_factory=list)


class QuestionPipeline:
    """
    Segmentation and cleanup of exam text into question records.

    Holds no per-document state, so one instance can serve any number of
    documents, including concurrently.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()
        self.normalizer = Normalizer()
        self.scanner = MarkerScanner()
        self.segmenter = Segmenter()
        self.artifact_filter = ArtifactFilter(self.config.rules())
        self.snippets = SnippetBuilder(
            max_length=self.config.snippet_length,
            ellipsis=self.config.ellipsis,
        )
        self.deduplicator = Deduplicator()
        self.id_assigner = IDAssigner()

    def run(self, text: str) -> list[Question]:
        """Extract the ordered, deduplicated questions from ``text``."""
        return self.run_detailed(text).questions

    def run_detailed(self, text: str) -> PipelineOutput:
        normalized = self.normalizer.normalize(text)
        output = PipelineOutput(text=normalized)

        output.markers = self.scanner.scan(normalized)
        blocks = self.segmenter.segment(normalized, output.markers)
        kept, output.discarded = self.artifact_filter.split(blocks)

        output.candidates = [
            self._build_candidate(block) for block in kept
        ]

        unique = self.deduplicator.deduplicate(output.candidates)
        output.questions = self.id_assigner.assign(unique)

        logger.debug(
            f"Pipeline: {len(output.markers)} markers, "
            f"{len(output.discarded)} discarded, "
            f"{len(output.candidates)} candidates, "
            f"{len(output.questions)} questions"
        )
        return output

    def _build_candidate(self, block: ContentBlock) -> QuestionCandidate:
        marker = block.marker
        return QuestionCandidate(
            number=marker.number,
            raw_number=marker.raw,
            content=block.content,
            content_length=len(block.content),
            snippet=self.snippets.build(block.content),
            full_text=f"{marker.raw} {block.content}".strip(),
            position=marker.position,
        )


def extract_questions(
    text: str, config: Optional[PipelineConfig] = None
) -> list[Question]:
    """Convenience wrapper: run a fresh pipeline over ``text``."""
    return QuestionPipeline(config).run(text)


def join_full_text(
    questions: list[Question], selected_ids: Optional[list[str]] = None
) -> str:
    """
    Join the full text of the selected questions with a blank line,
    in list order. All questions are included when no ids are given.
    """
    if selected_ids is None:
        chosen = questions
    else:
        wanted = set(selected_ids)
        chosen = [q for q in questions if q.id in wanted]
    return "\n\n".join(q.full_text for q in chosen)
