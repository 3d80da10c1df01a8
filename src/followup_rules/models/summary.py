"""Summary models — the payload handed to the submission collaborator.

The reviewing clinician never sees raw answer codes.  ``FollowUpSummary``
carries humanized text for every answered question, the free-form notes,
and the urgency outcome.
"""

from typing import Literal, Optional

from pydantic import BaseModel


class SummaryItem(BaseModel):
    """One answered question, humanized."""

    qid: str
    question: str
    text: str
    raw: str | list[str] | None = None
    notes: Optional[str] = None
    # True when the question no longer applies to the path taken
    orphaned: bool = False


class UrgencyReason(BaseModel):
    """A matched urgency rule."""

    rule_id: str
    qid: Optional[str] = None
    value: Optional[str] = None
    flag: Literal["urgent", "serious"]
    reason: str


class CaseAssessment(BaseModel):
    """Seriousness grading for safety follow-ups.

    ``requires_expedited`` marks serious cases that still need action
    (e.g. the reaction has not resolved).
    """

    seriousness: Literal["serious", "non-serious"]
    requires_expedited: bool
    causality_indicators: list[str] = []


class FollowUpSummary(BaseModel):
    """Stable, ordered record of a finished interview."""

    catalog: str
    catalog_version: str
    case_id: Optional[str] = None
    primary_outcome: Optional[str] = None
    answers: list[SummaryItem]
    additional_notes: str
    is_urgent: bool
    urgent_reasons: list[UrgencyReason] = []
    assessment: Optional[CaseAssessment] = None
    consent: bool = False
