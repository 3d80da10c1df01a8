"""FlowResolver — computes the applicable questions for an answer snapshot.

The resolver is a pure function of ``(responses, context)``: it walks the
catalog in its declared order and keeps every question whose
applicability holds.  Nothing is cached between calls, so the controller
can re-resolve after every answer or undo without a separate "next
question" pointer.

Answers that belong to questions which no longer apply (for example after
an earlier answer was undone and changed) are *orphaned*.  The resolver
ignores them when computing pending questions; it never deletes them.

Questions marked ``required: false`` are resolved and offered like any
other, but an unanswered optional question never becomes the current
question and never holds back completion.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from followup_rules.evaluator import PredicateEvaluator
from followup_rules.models.question import Catalog, Question
from followup_rules.models.response import CaseContext, Response

logger = logging.getLogger(__name__)


def answer_snapshot(responses: Mapping[str, Response | Any]) -> dict[str, Any]:
    """Reduce a response map to raw ``selected`` values, dropping empty answers.

    Accepts either :class:`Response` objects or raw values so that callers
    (and tests) can pass ``{"treatmentOutcome": "worse"}`` directly.
    """
    snapshot: dict[str, Any] = {}
    for qid, resp in responses.items():
        if isinstance(resp, Response):
            if resp.is_empty:
                continue
            snapshot[qid] = resp.selected
        elif resp not in (None, "", []):
            snapshot[qid] = resp
    return snapshot


class FlowResolver:
    """Resolves a catalog's branching tree.

    Every query first reduces the stored answers to the *effective*
    snapshot: answers whose question no longer applies are dropped,
    repeatedly, until the snapshot is stable.  Orphans therefore never
    make another question applicable, however the chain runs through the
    catalog.

    Args:
        catalog: the question catalog (static or fetched)
    """

    def __init__(self, catalog: Catalog) -> None:
        self._catalog = catalog
        self._evaluator = PredicateEvaluator()

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    def effective_answers(
        self,
        responses: Mapping[str, Response | Any],
        context: CaseContext | None = None,
    ) -> dict[str, Any]:
        """Non-empty answers whose question applies under the other effective answers."""
        answers = {
            qid: value for qid, value in answer_snapshot(responses).items()
            if self._catalog.has(qid)
        }
        changed = True
        while changed:
            changed = False
            for q in self._catalog.questions:
                if q.id in answers and not self._evaluator.applies(q, answers, context):
                    del answers[q.id]
                    changed = True
        return answers

    def resolve(
        self,
        responses: Mapping[str, Response | Any],
        context: CaseContext | None = None,
    ) -> list[Question]:
        """Return the applicable questions in catalog order, optional ones included."""
        answers = self.effective_answers(responses, context)
        return [
            q for q in self._catalog.questions
            if self._evaluator.applies(q, answers, context)
        ]

    def pending(
        self,
        responses: Mapping[str, Response | Any],
        context: CaseContext | None = None,
    ) -> list[Question]:
        """Applicable required questions that have no non-empty answer yet."""
        answers = self.effective_answers(responses, context)
        return [
            q for q in self._catalog.questions
            if q.required and q.id not in answers
            and self._evaluator.applies(q, answers, context)
        ]

    def optional(
        self,
        responses: Mapping[str, Response | Any],
        context: CaseContext | None = None,
    ) -> list[Question]:
        """Applicable non-required questions still unanswered.

        These are offered but never block the interview.
        """
        answers = self.effective_answers(responses, context)
        return [
            q for q in self._catalog.questions
            if not q.required and q.id not in answers
            and self._evaluator.applies(q, answers, context)
        ]

    def next_question(
        self,
        responses: Mapping[str, Response | Any],
        context: CaseContext | None = None,
    ) -> Question | None:
        """First pending question, or None when the required path is exhausted."""
        answers = self.effective_answers(responses, context)
        for q in self._catalog.questions:
            if not q.required or q.id in answers:
                continue
            if self._evaluator.applies(q, answers, context):
                return q
        return None

    def orphaned(
        self,
        responses: Mapping[str, Response | Any],
        context: CaseContext | None = None,
    ) -> list[str]:
        """Answered ids that are not applicable any more, or unknown to the catalog.

        Returned in the order they appear in ``responses``.
        """
        effective = self.effective_answers(responses, context)
        orphans = [
            qid for qid in answer_snapshot(responses)
            if qid not in effective
        ]
        if orphans:
            logger.debug("catalog %s: orphaned answers %s", self._catalog.name, orphans)
        return orphans
