"""
Data Models
===========
Pydantic models for the question extraction pipeline.
Final records serialize with the camelCase field names consumers expect
(``rawNumber``, ``fullText``).
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ─── Scan Models ──────────────────────────────────────────────────────────────


class Marker(BaseModel):
    """
    A parenthesized question number found in normalized text.
    Ordered by position, not by numeric value.
    """
    model_config = ConfigDict(frozen=True)

    position: int = Field(ge=0, description="Offset where the match starts")
    end: int = Field(ge=0, description="Offset where the match ends")
    number: int = Field(ge=0)
    raw: str = Field(description='Display label, e.g. "(12)"')


class ContentBlock(BaseModel):
    """Text between one marker and the next (or end of text)."""
    model_config = ConfigDict(frozen=True)

    marker: Marker
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    content: str = ""


# ─── Question Models ─────────────────────────────────────────────────────────


class QuestionCandidate(BaseModel):
    """
    A content block that survived artifact filtering.
    Several candidates may share a number until deduplication.
    """
    number: int
    raw_number: str
    content: str
    content_length: int
    snippet: str
    full_text: str
    position: int = Field(
        default=0,
        description="Text offset of the originating marker"
    )


class Question(BaseModel):
    """A finished question record, ready for display."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    raw_number: str = Field(alias="rawNumber")
    snippet: str
    full_text: str = Field(alias="fullText")


# ─── Document / Parse Result Models ──────────────────────────────────────────


class DocumentMetadata(BaseModel):
    """Metadata about the source document."""
    name: str = ""
    source_file: str = ""
    total_pages: int = 0
    file_hash: str = ""
    file_size_bytes: int = 0
    text_length: int = 0


class ParseVersion(BaseModel):
    """Version tracking for a parse run."""
    parser_version: str = "1.0.0"
    parse_timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    markers_found: int = 0
    question_count: int = 0


class ValidationReport(BaseModel):
    """Post-parse report on how the markers were resolved."""
    markers_found: int = 0
    blocks_discarded: int = 0
    discard_breakdown: dict[str, int] = Field(default_factory=dict)
    duplicate_question_numbers: list[int] = Field(default_factory=list)
    missing_question_numbers: list[int] = Field(default_factory=list)
    questions_emitted: int = 0

    @computed_field
    @property
    def yield_rate(self) -> float:
        if self.markers_found == 0:
            return 0.0
        return round(self.questions_emitted / self.markers_found * 100, 2)


class ParseResult(BaseModel):
    """
    Complete output of a parse run.
    This is the top-level JSON structure written by the engine.
    """
    document: DocumentMetadata
    parse_version: ParseVersion
    questions: list[Question] = Field(default_factory=list)
    validation: ValidationReport = Field(default_factory=ValidationReport)
