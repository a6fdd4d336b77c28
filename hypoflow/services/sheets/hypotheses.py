"""Hypothesis tracker conventions on top of the row store."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Sequence

from hypoflow.core.logger import get_logger

from .models import InvalidUpdateError
from .records import Record
from .store import RowStore

LOGGER = get_logger()

CONFIDENCE_FIELD = "Confidence"
CONFIDENCE_PERCENT_FIELD = "Confidence %"
QUOTE_FIELDS = ("Quote 1", "Quote 2")
STATUS_FIELD = "Status"

VALIDATED_THRESHOLD = 80
NOT_VALIDATED_THRESHOLD = 50


class HypothesisStatus(str, Enum):
    VALIDATED = "VALIDATED"
    NOT_VALIDATED = "NOT_VALIDATED"
    NEEDS_MORE_DATA = "NEEDS_MORE_DATA"


def recommend_status(confidence_score: float) -> HypothesisStatus | None:
    """Map a 0-100 confidence score to a status; mid-range scores leave it unchanged."""

    if confidence_score >= VALIDATED_THRESHOLD:
        return HypothesisStatus.VALIDATED
    if confidence_score < NOT_VALIDATED_THRESHOLD:
        return HypothesisStatus.NOT_VALIDATED
    return None


@dataclass(frozen=True, slots=True)
class HypothesisAssessment:
    """Outcome of reviewing a hypothesis against meeting evidence."""

    confidence_score: float
    reasoning: str
    quotes: Sequence[str] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        score = self.confidence_score
        if isinstance(score, bool) or not isinstance(score, Real) or not 0 <= score <= 100:
            raise InvalidUpdateError(
                f"Confidence score must be a number between 0 and 100, got {score!r}",
                payload={"confidence_score": score},
            )

    @property
    def status(self) -> HypothesisStatus | None:
        return recommend_status(self.confidence_score)

    def to_updates(self) -> dict[str, Any]:
        """Field updates keyed by sheet header names."""

        updates: dict[str, Any] = {
            CONFIDENCE_FIELD: self.reasoning,
            CONFIDENCE_PERCENT_FIELD: self.confidence_score,
        }
        for position, name in enumerate(QUOTE_FIELDS):
            updates[name] = self.quotes[position] if position < len(self.quotes) else ""
        if self.status is not None:
            updates[STATUS_FIELD] = self.status.value
        return updates


@dataclass(frozen=True, slots=True)
class AssessmentResult:
    record: Record
    status: HypothesisStatus | None


def apply_assessment(store: RowStore, hypothesis_id: str, assessment: HypothesisAssessment) -> AssessmentResult:
    """Write an assessment into the hypothesis row."""

    record = store.update_record(hypothesis_id, assessment.to_updates())
    LOGGER.info(
        "sheets.hypotheses assessed id=%s confidence=%s status=%s",
        hypothesis_id,
        assessment.confidence_score,
        assessment.status.value if assessment.status else "unchanged",
    )
    return AssessmentResult(record=record, status=assessment.status)


__all__ = [
    "HypothesisStatus",
    "HypothesisAssessment",
    "AssessmentResult",
    "recommend_status",
    "apply_assessment",
    "CONFIDENCE_FIELD",
    "CONFIDENCE_PERCENT_FIELD",
    "QUOTE_FIELDS",
    "STATUS_FIELD",
]
