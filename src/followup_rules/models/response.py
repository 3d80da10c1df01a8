"""Interview state models — the mutable side of a follow-up interview.

  - Response: one stored answer (selected value(s) + optional notes)
  - AnswerRecord: one entry of the answer log used by undo
  - CaseContext: read-only prescription/case metadata for the resolver
  - InterviewState: everything the controller owns for one patient session

The state is never persisted by the engine.  It is created empty after the
passcode is verified and dropped once the summary has been handed off.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Response(BaseModel):
    """A stored answer.

    ``selected`` is a single option value for ``single`` questions and a
    list of unique option values for ``multi`` questions.  ``notes`` is
    free text and independent of ``selected``.
    """

    selected: str | list[str] | None = None
    notes: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        """True when no value is selected (an empty multi set counts as empty)."""
        if self.selected is None:
            return True
        return len(self.selected) == 0

    def values(self) -> list[str]:
        """Selected values as a list, regardless of question kind."""
        if self.selected is None:
            return []
        if isinstance(self.selected, list):
            return list(self.selected)
        return [self.selected]


class AnswerRecord(BaseModel):
    """One answer in input order, with the response it replaced (None if new)."""

    qid: str
    previous: Optional[Response] = None


class CaseContext(BaseModel):
    """Prescription / case metadata visible to applicability predicates.

    Treated as an already-validated value object.  Unknown keys are kept so
    that catalogs can reference deployment-specific fields.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    case_id: Optional[str] = None
    medicine_name: Optional[str] = None
    dosage: Optional[str] = None
    duration: Optional[str] = None
    condition: Optional[str] = None

    def lookup(self, key: str) -> Any:
        """Return a field or extra key, None when absent."""
        if key in type(self).model_fields:
            return getattr(self, key)
        return (self.model_extra or {}).get(key)


class InterviewState(BaseModel):
    """Response map, answer log, free-text notes, and consent for one session."""

    responses: dict[str, Response] = Field(default_factory=dict)
    history: list[AnswerRecord] = Field(default_factory=list)
    additional_notes: str = ""
    consent: bool = False

    def selected_map(self) -> dict[str, Any]:
        """Raw ``selected`` values keyed by qid, skipping empty answers."""
        return {
            qid: resp.selected
            for qid, resp in self.responses.items()
            if not resp.is_empty
        }
