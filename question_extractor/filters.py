"""
Artifact Filter
===============
Drops content blocks that are not question text: running headers, stray
punctuation and answer-sheet rows.

Exclusion rules are checked in order and the first match wins, so the
length check always runs before the layout patterns. Additional document
formats can extend the rule list without touching the pipeline.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from .models import ContentBlock

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 40

# "( ) 1 2 3 4" answer-bubble legend
ANSWER_LEGEND_PATTERN = re.compile(r"^\(\s*\)\s*1\s+2\s+3\s+4")

# "1 2 3 4 5" numbered answer row
ANSWER_ROW_PATTERN = re.compile(r"^1\s+2\s+3\s+4\s+[0-9]")


@dataclass(frozen=True)
class ExclusionRule:
    """A named predicate; a block is discarded when ``matches`` is true."""

    name: str
    matches: Callable[[str], bool]

    @classmethod
    def from_pattern(cls, name: str, pattern: re.Pattern) -> ExclusionRule:
        return cls(name=name, matches=lambda content: bool(pattern.match(content)))


def min_length_rule(min_length: int = MIN_CONTENT_LENGTH) -> ExclusionRule:
    return ExclusionRule(
        name="too_short",
        matches=lambda content: len(content) < min_length,
    )


def default_rules(min_length: int = MIN_CONTENT_LENGTH) -> list[ExclusionRule]:
    """Rules for Eiken-style exam papers."""
    return [
        min_length_rule(min_length),
        ExclusionRule.from_pattern("answer_bubble_legend", ANSWER_LEGEND_PATTERN),
        ExclusionRule.from_pattern("answer_row", ANSWER_ROW_PATTERN),
    ]


class ArtifactFilter:
    """Applies an ordered list of exclusion rules to content blocks."""

    def __init__(self, rules: Optional[list[ExclusionRule]] = None):
        self.rules = list(rules) if rules is not None else default_rules()

    def rejecting_rule(self, content: str) -> Optional[str]:
        """Return the name of the first rule matching ``content``, if any."""
        for rule in self.rules:
            if rule.matches(content):
                return rule.name
        return None

    def split(
        self, blocks: list[ContentBlock]
    ) -> tuple[list[ContentBlock], list[tuple[ContentBlock, str]]]:
        """Partition blocks into (kept, [(discarded, rule_name), ...])."""
        kept: list[ContentBlock] = []
        discarded: list[tuple[ContentBlock, str]] = []

        for block in blocks:
            rule_name = self.rejecting_rule(block.content)
            if rule_name is None:
                kept.append(block)
                continue

            logger.debug(
                f"Discarded block after {block.marker.raw} "
                f"at offset {block.start} ({rule_name})"
            )
            discarded.append((block, rule_name))

        return kept, discarded
