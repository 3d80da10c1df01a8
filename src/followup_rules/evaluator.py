"""PredicateEvaluator — decides whether applicability predicates hold.

Predicates read either a prior answer (``source: response``) or a field of
the case context (``source: context``).  The resolver calls
:meth:`applies` for every catalog question; the urgency evaluator reuses
:meth:`all_hold` for its conjunctive rules.

Answers are passed as a plain dict of raw ``selected`` values keyed by qid
(empty answers already removed), so evaluation is a pure function of the
snapshot it is given.
"""

from __future__ import annotations

import logging
import operator
from typing import Any, Iterable

from followup_rules.models.question import Condition, Predicate, Question
from followup_rules.models.response import CaseContext

logger = logging.getLogger(__name__)

_ORDERING = {
    "lt": operator.lt,
    "le": operator.le,
    "gt": operator.gt,
    "ge": operator.ge,
}


class PredicateEvaluator:
    """Evaluates predicates against an answer snapshot and case context."""

    def applies(
        self,
        question: Question,
        answers: dict[str, Any],
        context: CaseContext | None = None,
    ) -> bool:
        """True if any of the question's conditions holds.

        A question without conditions always applies.
        """
        if not question.applicability:
            return True
        return any(
            self.condition_holds(cond, answers, context)
            for cond in question.applicability
        )

    def condition_holds(
        self,
        condition: Condition,
        answers: dict[str, Any],
        context: CaseContext | None = None,
    ) -> bool:
        """Each condition's ``when`` predicates are AND-ed together."""
        return self.all_hold(condition.when, answers, context)

    def all_hold(
        self,
        predicates: Iterable[Predicate],
        answers: dict[str, Any],
        context: CaseContext | None = None,
    ) -> bool:
        return all(self.eval_predicate(p, answers, context) for p in predicates)

    # ------------------------------------------------------------------
    # Predicate evaluation
    # ------------------------------------------------------------------

    def eval_predicate(
        self,
        pred: Predicate,
        answers: dict[str, Any],
        context: CaseContext | None = None,
    ) -> bool:
        """Evaluate a single predicate.

        If the referenced answer is missing, only ``not_answered`` (and
        ``not_exists`` for context fields) evaluates to True.
        """
        if pred.source == "context":
            value = context.lookup(pred.field) if context is not None else None
            present = value not in (None, "", [])
            if pred.op == "exists":
                return present
            if pred.op == "not_exists":
                return not present
            if not present:
                return False
            return self._compare(pred.op, value, pred.value)

        answer = answers.get(pred.qid)
        present = answer not in (None, "", [])
        if pred.op == "answered":
            return present
        if pred.op == "not_answered":
            return not present
        if not present:
            return False
        return self._compare(pred.op, answer, pred.value)

    @staticmethod
    def _compare(op: str, answer: Any, value: Any) -> bool:
        """Apply an operator to a present answer (or context value).

        ``in`` / ``not_in`` / ``contains`` treat a multi answer as the set of
        its selected values.  Ordering operators are meant for numeric
        context fields and coerce both sides to float.
        """
        if op == "eq":
            return answer == value
        if op == "ne":
            return answer != value

        selected = answer if isinstance(answer, list) else [answer]
        if op == "in":
            return any(s in value for s in selected)
        if op == "not_in":
            return not any(s in value for s in selected)
        if op == "contains":
            return value in selected
        if op == "not_contains":
            return value not in selected

        if op in _ORDERING:
            try:
                return _ORDERING[op](float(answer), float(value))
            except (TypeError, ValueError):
                return False

        logger.warning("Unknown predicate operator: %s", op)
        return False
