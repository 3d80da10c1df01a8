"""Question catalog models for follow-up questionnaires.

A catalog is an ordered list of questions.  The order is the priority
order used by the flow resolver: it walks the list top to bottom and keeps
every question whose applicability holds for the current answers.

  Question kinds:
    - single: pick exactly one option value
    - multi:  pick a set of option values (toggled one at a time)

  Applicability:
    - ``applicability`` is a list of ``Condition`` records
    - predicates inside one condition are AND-ed
    - conditions are OR-ed
    - an empty list means the question always applies

Catalog documents come from two places: YAML files shipped with the SDK
and JSON documents fetched from a server.  Older servers deliver questions
with ``question``/``type``/``textPrompt`` keys, so the models accept those
spellings as aliases.
"""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


# --- Predicates ---

PredicateOp = Literal[
    "eq", "ne", "in", "not_in", "contains", "not_contains",
    "lt", "le", "gt", "ge",
    "answered", "not_answered", "exists", "not_exists",
]


class Predicate(BaseModel):
    """A single condition over a prior answer or the case context.

    Operators:
      - eq, ne: equality / inequality
      - in, not_in: some (no) selected value is one of ``value`` (a list)
      - contains, not_contains: ``value`` is (not) among the selected values
      - lt, le, gt, ge: numeric comparisons, for numeric context fields
      - answered, not_answered: the referenced question has a non-empty answer
      - exists, not_exists: the referenced context field is set
    """

    model_config = ConfigDict(frozen=True)

    qid: Optional[str] = None
    source: Literal["response", "context"] = "response"
    field: Optional[str] = None
    op: PredicateOp
    value: Any = None

    @model_validator(mode="after")
    def _chk(self):
        if self.source == "response" and not self.qid:
            raise ValueError("response predicates need a qid")
        if self.source == "context" and not self.field:
            raise ValueError("context predicates need a field")
        return self


class Condition(BaseModel):
    """All predicates in ``when`` must hold for the condition to hold."""

    model_config = ConfigDict(frozen=True)

    when: List[Predicate]


# --- Options & questions ---

class Option(BaseModel):
    """A selectable answer.  ``urgent``/``serious`` feed the urgency rule table."""

    model_config = ConfigDict(frozen=True)

    value: str
    label: str
    icon: Optional[str] = None
    urgent: bool = False
    serious: bool = False

    @property
    def flags(self) -> tuple[str, ...]:
        return tuple(f for f in ("urgent", "serious") if getattr(self, f))


class Question(BaseModel):
    """A catalog question.  Immutable once loaded."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "qid"))
    prompt: str = Field(validation_alias=AliasChoices("prompt", "question"))
    subtext: str = ""
    kind: Literal["single", "multi"] = Field(
        default="single", validation_alias=AliasChoices("kind", "type"),
    )
    options: List[Option]
    applicability: List[Condition] = []
    required: bool = True
    urgent_question: bool = Field(
        default=False, validation_alias=AliasChoices("urgent_question", "urgentQuestion"),
    )
    # The primary-outcome question is summarised on its own line
    primary: bool = False
    text_prompt: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("text_prompt", "textPrompt"),
    )
    data_fields: List[str] = Field(
        default=[], validation_alias=AliasChoices("data_fields", "dataFields"),
    )

    @model_validator(mode="after")
    def _unique_values(self):
        seen: set[str] = set()
        for opt in self.options:
            if opt.value in seen:
                raise ValueError(
                    f"duplicate option value '{opt.value}' in question '{self.id}'"
                )
            seen.add(opt.value)
        return self

    @property
    def is_multi(self) -> bool:
        return self.kind == "multi"

    def get_option(self, value: str) -> Option | None:
        """Return the option with ``value``, or None."""
        for opt in self.options:
            if opt.value == value:
                return opt
        return None

    def referenced_qids(self) -> set[str]:
        """Question ids this question's applicability depends on."""
        return {
            pred.qid
            for cond in self.applicability
            for pred in cond.when
            if pred.source == "response" and pred.qid
        }


# --- Rule tables declared alongside the questions ---

class UrgencyRuleSpec(BaseModel):
    """An extra urgency rule: fires when every predicate in ``when`` holds.

    Flag-derived rules (one per option marked urgent/serious) are built by
    the urgency evaluator; these cover combinations that no single option
    captures.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    when: List[Predicate]
    flag: Literal["urgent", "serious"] = "urgent"
    reason: str


class IndicatorRule(BaseModel):
    """A causality indicator reported in the case assessment."""

    model_config = ConfigDict(frozen=True)

    when: List[Predicate]
    text: str


class Catalog(BaseModel):
    """An ordered question catalog plus its parallel rule tables."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str = "1"
    title: str = ""
    questions: List[Question]
    urgency_rules: List[UrgencyRuleSpec] = []
    # Serious cases need expedited review only while these predicates hold
    expedite_when: List[Predicate] = []
    causality_indicators: List[IndicatorRule] = []

    @model_validator(mode="after")
    def _chk(self):
        ids: set[str] = set()
        for q in self.questions:
            if q.id in ids:
                raise ValueError(f"duplicate question id '{q.id}' in catalog '{self.name}'")
            ids.add(q.id)

        primaries = [q.id for q in self.questions if q.primary]
        if len(primaries) > 1:
            raise ValueError(
                f"catalog '{self.name}' declares more than one primary question: {primaries}"
            )

        # Every predicate must point at a question that exists
        preds = [p for r in self.urgency_rules for p in r.when]
        preds += [p for r in self.causality_indicators for p in r.when]
        preds += list(self.expedite_when)
        refs = {p.qid for p in preds if p.source == "response" and p.qid}
        for q in self.questions:
            refs |= q.referenced_qids()
        unknown = refs - ids
        if unknown:
            raise ValueError(
                f"catalog '{self.name}' references unknown question ids: {sorted(unknown)}"
            )
        return self

    @property
    def question_ids(self) -> list[str]:
        return [q.id for q in self.questions]

    @property
    def primary_question(self) -> Question | None:
        for q in self.questions:
            if q.primary:
                return q
        return None

    def get(self, qid: str) -> Question:
        """Look up a question by id.  Raises ``KeyError`` if absent."""
        for q in self.questions:
            if q.id == qid:
                return q
        raise KeyError(qid)

    def has(self, qid: str) -> bool:
        return any(q.id == qid for q in self.questions)
