"""
Validation Engine
=================
Post-parse reporting on how a document's markers were resolved.

After each run, summarizes:
    - Markers Found
    - Blocks Discarded (with a breakdown by exclusion rule)
    - Duplicate Question Numbers (resolved by keeping the longest)
    - Missing Question Numbers (gaps in sequence, informational only)
    - Questions Emitted

Numbering is never enforced: gaps and duplicates are reported, not fixed.
"""

from __future__ import annotations

import logging
from collections import Counter

from .models import ValidationReport
from .pipeline import PipelineOutput

logger = logging.getLogger(__name__)


class ValidationEngine:
    """
    Builds a ValidationReport from a pipeline run.
    """

    def validate(self, output: PipelineOutput) -> ValidationReport:
        """
        Summarize a pipeline run.

        Args:
            output: Detailed output of QuestionPipeline.run_detailed.

        Returns:
            ValidationReport for the run.
        """
        report = ValidationReport(
            markers_found=len(output.markers),
            blocks_discarded=len(output.discarded),
            questions_emitted=len(output.questions),
        )

        if not output.markers:
            logger.warning("No question markers found")
            return report

        report.discard_breakdown = dict(
            Counter(rule_name for _, rule_name in output.discarded)
        )

        # Duplicates among blocks that survived filtering
        number_counts = Counter(c.number for c in output.candidates)
        report.duplicate_question_numbers = sorted(
            num for num, count in number_counts.items() if count > 1
        )

        # Gaps between the lowest and highest emitted number
        emitted = set(number_counts)
        if emitted:
            expected = set(range(min(emitted), max(emitted) + 1))
            report.missing_question_numbers = sorted(expected - emitted)

        # Log summary
        logger.info("=" * 60)
        logger.info("VALIDATION REPORT")
        logger.info("=" * 60)
        logger.info(f"Markers Found: {report.markers_found}")
        logger.info(f"Blocks Discarded: {report.blocks_discarded}")
        logger.info(
            f"Duplicate Question Numbers: "
            f"{len(report.duplicate_question_numbers)}"
        )
        logger.info(
            f"Missing Question Numbers: "
            f"{len(report.missing_question_numbers)}"
        )
        logger.info(
            f"Questions Emitted: {report.questions_emitted} "
            f"({report.yield_rate}% of markers)"
        )

        if report.discard_breakdown:
            logger.info("Discard Breakdown:")
            for rule_name, count in sorted(report.discard_breakdown.items()):
                logger.info(f"  • {rule_name}: {count}")

        logger.info("=" * 60)

        return report

