"""Urgency & humanization — turns a finished interview into a clinician record.

Three jobs:

  - **Urgency**: a static rule table parallel to the catalog.  Every option
    flagged ``urgent``/``serious`` becomes one rule bound to its own
    question, so a value only counts where it was actually selected.
    Catalogs may add conjunctive rules under ``urgency_rules``.
  - **Humanization**: raw option values become their display labels with
    any leading decorative glyph removed.  A lookup miss echoes the raw
    value; it never raises.
  - **Summary**: a stable, ordered :class:`FollowUpSummary` — the payload
    handed to the submission collaborator instead of the raw responses.

Urgency is evaluated over every non-empty answer, including orphaned ones:
an answer the patient gave still counts even if a later undo moved the
interview onto another branch.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from followup_rules.constants import NONE_PROVIDED, URGENCY_FLAGS
from followup_rules.evaluator import PredicateEvaluator
from followup_rules.models.question import Catalog, Predicate
from followup_rules.models.response import CaseContext, InterviewState, Response
from followup_rules.models.summary import (
    CaseAssessment,
    FollowUpSummary,
    SummaryItem,
    UrgencyReason,
)
from followup_rules.resolver import FlowResolver, answer_snapshot

logger = logging.getLogger(__name__)

# Emoji, arrows, check marks and similar symbols in front of a label.
_GLYPH_PREFIX = re.compile(r"^[^\w]+")


def strip_glyph(label: str) -> str:
    """Remove a leading decorative glyph (and the space after it) from a label."""
    stripped = _GLYPH_PREFIX.sub("", label).strip()
    return stripped or label.strip()


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UrgencyRule:
    """One urgency trigger.

    Option rules match ``value`` on ``qid`` (equality for single answers,
    membership for multi answers).  Declared rules match when every
    predicate in ``when`` holds.
    """

    rule_id: str
    flag: str
    reason: str
    qid: str | None = None
    value: str | None = None
    when: tuple[Predicate, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class UrgencyRuleTable:
    """Versioned set of urgency rules for one catalog."""

    catalog: str
    version: str
    rules: tuple[UrgencyRule, ...]

    @classmethod
    def from_catalog(
        cls, catalog: Catalog, flags: Iterable[str] = URGENCY_FLAGS,
    ) -> "UrgencyRuleTable":
        """Build the table from option flags plus declared ``urgency_rules``.

        Args:
            flags: which option flags produce rules (default from
                ``FOLLOWUP_URGENCY_FLAGS``)
        """
        active = set(flags)
        rules: list[UrgencyRule] = []
        for q in catalog.questions:
            for opt in q.options:
                for flag in opt.flags:
                    if flag not in active:
                        continue
                    rules.append(UrgencyRule(
                        rule_id=f"{q.id}.{opt.value}",
                        flag=flag,
                        reason=f"{q.prompt} {strip_glyph(opt.label)}",
                        qid=q.id,
                        value=opt.value,
                    ))
                    # One rule per option even when both flags are set
                    break

        for declared in catalog.urgency_rules:
            if declared.flag not in active:
                continue
            rules.append(UrgencyRule(
                rule_id=declared.id,
                flag=declared.flag,
                reason=declared.reason,
                when=tuple(declared.when),
            ))

        return cls(catalog=catalog.name, version=catalog.version, rules=tuple(rules))


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------

class UrgencyEvaluator:
    """Urgency checks, humanization and summary building for one catalog.

    Args:
        catalog: the catalog the answers were collected against
        flags: option flags that count as urgent (default from env)
    """

    def __init__(
        self, catalog: Catalog, *, flags: Iterable[str] = URGENCY_FLAGS,
    ) -> None:
        self._catalog = catalog
        self._table = UrgencyRuleTable.from_catalog(catalog, flags)
        self._predicates = PredicateEvaluator()
        self._resolver = FlowResolver(catalog)

    @property
    def table(self) -> UrgencyRuleTable:
        return self._table

    # ------------------------------------------------------------------
    # Urgency
    # ------------------------------------------------------------------

    def urgent_reasons(
        self,
        responses: Mapping[str, Response | Any],
        context: CaseContext | None = None,
    ) -> list[UrgencyReason]:
        """Every rule that holds for ``responses``, in table order."""
        answers = answer_snapshot(responses)
        matched: list[UrgencyReason] = []
        for rule in self._table.rules:
            if rule.qid is not None:
                answer = answers.get(rule.qid)
                if answer is None:
                    continue
                hit = rule.value in answer if isinstance(answer, list) else answer == rule.value
            else:
                hit = self._predicates.all_hold(rule.when, answers, context)
            if hit:
                matched.append(UrgencyReason(
                    rule_id=rule.rule_id,
                    qid=rule.qid,
                    value=rule.value,
                    flag=rule.flag,
                    reason=rule.reason,
                ))
        return matched

    def is_urgent(
        self,
        responses: Mapping[str, Response | Any],
        context: CaseContext | None = None,
    ) -> bool:
        """True if any urgency rule holds."""
        return bool(self.urgent_reasons(responses, context))

    def assess(
        self,
        responses: Mapping[str, Response | Any],
        context: CaseContext | None = None,
    ) -> CaseAssessment:
        """Grade seriousness, expedited review, and causality indicators."""
        answers = answer_snapshot(responses)
        serious = self.is_urgent(responses, context)
        expedite = serious and self._predicates.all_hold(
            self._catalog.expedite_when, answers, context,
        )
        indicators = [
            rule.text
            for rule in self._catalog.causality_indicators
            if self._predicates.all_hold(rule.when, answers, context)
        ]
        return CaseAssessment(
            seriousness="serious" if serious else "non-serious",
            requires_expedited=expedite,
            causality_indicators=indicators,
        )

    # ------------------------------------------------------------------
    # Humanization
    # ------------------------------------------------------------------

    def humanize(self, question_id: str, raw_value: Any) -> Any:
        """Return the display label for ``raw_value`` under ``question_id``.

        The question is looked up in the catalog on every call so that a
        stale question object held by a caller cannot skew the result.
        Lists are humanized element-wise and joined in catalog option
        order.  Falls back to ``raw_value`` when no option matches.
        """
        if isinstance(raw_value, list):
            return self._humanize_many(question_id, raw_value)

        try:
            question = self._catalog.get(question_id)
        except KeyError:
            logger.debug("humanize: unknown question %r", question_id)
            return raw_value

        option = question.get_option(raw_value) if isinstance(raw_value, str) else None
        if option is None:
            logger.debug("humanize: %s has no option %r", question_id, raw_value)
            return raw_value
        return strip_glyph(option.label)

    def _humanize_many(self, question_id: str, values: list[Any]) -> str:
        order: dict[str, int] = {}
        if self._catalog.has(question_id):
            order = {
                opt.value: i
                for i, opt in enumerate(self._catalog.get(question_id).options)
            }
        # Known values in option order, unknown ones after them as given
        ranked = sorted(
            enumerate(values),
            key=lambda iv: (order.get(iv[1], len(order)), iv[0]),
        )
        return ", ".join(str(self.humanize(question_id, v)) for _, v in ranked)

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def build_summary(
        self,
        state: InterviewState,
        context: CaseContext | None = None,
    ) -> FollowUpSummary:
        """Build the ordered record handed to the submission collaborator.

        Answers appear in catalog order; orphaned answers stay in the
        summary (flagged) and answers to ids the catalog does not know
        follow in the order they were given.
        """
        orphans = set(self._resolver.orphaned(state.responses, context))
        items: list[SummaryItem] = []

        for qid in self._summary_order(state):
            resp = state.responses[qid]
            if resp.is_empty and not resp.notes:
                continue
            prompt = self._catalog.get(qid).prompt if self._catalog.has(qid) else qid
            text = "" if resp.is_empty else str(self.humanize(qid, resp.selected))
            items.append(SummaryItem(
                qid=qid,
                question=prompt,
                text=text,
                raw=resp.selected,
                notes=resp.notes or None,
                orphaned=qid in orphans,
            ))

        primary_text = None
        primary = self._catalog.primary_question
        if primary is not None:
            resp = state.responses.get(primary.id)
            if resp is not None and not resp.is_empty:
                primary_text = str(self.humanize(primary.id, resp.selected))

        reasons = self.urgent_reasons(state.responses, context)
        assessment = None
        if self._catalog.expedite_when or self._catalog.causality_indicators:
            assessment = self.assess(state.responses, context)

        summary = FollowUpSummary(
            catalog=self._catalog.name,
            catalog_version=self._catalog.version,
            case_id=context.case_id if context is not None else None,
            primary_outcome=primary_text,
            answers=items,
            additional_notes=state.additional_notes.strip() or NONE_PROVIDED,
            is_urgent=bool(reasons),
            urgent_reasons=reasons,
            assessment=assessment,
            consent=state.consent,
        )
        logger.info(
            "Built summary for catalog %s: %d answers, urgent=%s",
            self._catalog.name, len(items), summary.is_urgent,
        )
        return summary

    def _summary_order(self, state: InterviewState) -> list[str]:
        """Catalog order first, then unknown ids by first answer, then the rest."""
        known = [qid for qid in self._catalog.question_ids if qid in state.responses]
        extra: list[str] = []
        for record in state.history:
            if record.qid in state.responses and record.qid not in known and record.qid not in extra:
                extra.append(record.qid)
        for qid in state.responses:
            if qid not in known and qid not in extra:
                extra.append(qid)
        return known + extra
