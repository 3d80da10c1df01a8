"""InterviewController — owns one patient's answers for one catalog.

The controller is the only writer of :class:`InterviewState`.  It never
stores a "current question" pointer: after every mutation the current
question is recomputed by the flow resolver from the response map, so
undo and re-answering can never leave the two out of step.

Answer log semantics:
    - every ``answer()`` call appends an :class:`AnswerRecord` holding the
      response the question had *before* the call
    - consecutive records for the same question (multi toggles, a changed
      mind) form one run; ``undo_last()`` removes the whole run and puts
      back the value from before it
    - a run starts where the question had no selection, so answering a
      question that was pending again (an emptied multi set) and undoing
      restores that empty selection exactly
    - notes are not part of the log; ``set_notes()`` never creates a step

Usage::

    ctl = InterviewController(catalog, context=CaseContext(case_id="C-1"))
    while (q := ctl.current_question()) is not None:
        ctl.answer(q.id, pick(q))
    ctl.set_consent(True)
    ack = await ctl.submit(submission_service)
"""

from __future__ import annotations

import logging
from typing import Any

from followup_rules.constants import MIN_ANSWERED_QUESTIONS
from followup_rules.errors import InterviewNotReady, OutOfSequenceAnswer, UnknownQuestion
from followup_rules.interfaces import SubmissionService
from followup_rules.models.question import Catalog, Question
from followup_rules.models.response import (
    AnswerRecord,
    CaseContext,
    InterviewState,
    Response,
)
from followup_rules.models.session import SubmissionAck
from followup_rules.models.summary import FollowUpSummary, UrgencyReason
from followup_rules.resolver import FlowResolver
from followup_rules.urgency import UrgencyEvaluator

logger = logging.getLogger(__name__)


class InterviewController:
    """Drives a single follow-up interview.

    Args:
        catalog: the question catalog to walk
        context: read-only case metadata for context predicates
        min_answered: answers needed before the interview can complete
        strict: raise :class:`OutOfSequenceAnswer` for answers to questions
            that are neither current nor the one being edited
        urgency: evaluator to use for urgency and summaries (one is built
            from ``catalog`` when omitted)
    """

    def __init__(
        self,
        catalog: Catalog,
        *,
        context: CaseContext | None = None,
        min_answered: int = MIN_ANSWERED_QUESTIONS,
        strict: bool = True,
        urgency: UrgencyEvaluator | None = None,
    ) -> None:
        self._catalog = catalog
        self._context = context
        self._min_answered = min_answered
        self._strict = strict
        self._resolver = FlowResolver(catalog)
        self._urgency = urgency or UrgencyEvaluator(catalog)
        self._state = InterviewState()

    # ==================================================================
    # Read-only views
    # ==================================================================

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def context(self) -> CaseContext | None:
        return self._context

    @property
    def state(self) -> InterviewState:
        return self._state

    @property
    def responses(self) -> dict[str, Response]:
        """A copy of the response map."""
        return {qid: resp.model_copy() for qid, resp in self._state.responses.items()}

    def current_question(self) -> Question | None:
        """First applicable required question without a non-empty answer, or None."""
        return self._resolver.next_question(self._state.responses, self._context)

    def optional_questions(self) -> list[Question]:
        """Applicable optional questions the patient may still answer."""
        return self._resolver.optional(self._state.responses, self._context)

    def answered_count(self) -> int:
        """Number of non-empty answers, orphaned ones included."""
        return sum(1 for resp in self._state.responses.values() if not resp.is_empty)

    def orphaned(self) -> list[str]:
        return self._resolver.orphaned(self._state.responses, self._context)

    def is_complete(self) -> bool:
        """True when no required question is pending and enough were answered."""
        return (
            self.current_question() is None
            and self.answered_count() >= self._min_answered
        )

    def can_submit(self) -> bool:
        return self.is_complete() and self._state.consent

    def is_urgent(self) -> bool:
        return self._urgency.is_urgent(self._state.responses, self._context)

    def urgent_reasons(self) -> list[UrgencyReason]:
        return self._urgency.urgent_reasons(self._state.responses, self._context)

    # ==================================================================
    # Mutations
    # ==================================================================

    def answer(self, question_id: str, value: Any, multi: bool | None = None) -> None:
        """Record an answer.

        Single-select answers overwrite ``selected``.  Multi-select
        answers toggle ``value`` in the selected set; emptying the set is
        allowed and leaves the question unanswered.  Existing notes are
        kept either way.

        Args:
            multi: override the catalog's question kind

        Raises:
            UnknownQuestion: ``question_id`` is not in the catalog.
            OutOfSequenceAnswer: strict mode and the question is neither
                current, the most recently answered one, nor an applicable
                optional question.
        """
        if not self._catalog.has(question_id):
            raise UnknownQuestion(question_id)
        question = self._catalog.get(question_id)

        self._check_sequence(question_id)

        if question.get_option(value) is None:
            logger.debug("answer: %r is not an option of %s", value, question_id)

        previous = self._state.responses.get(question_id)
        is_multi = question.is_multi if multi is None else multi

        if is_multi:
            selected = previous.values() if previous is not None else []
            if value in selected:
                selected.remove(value)
            else:
                selected.append(value)
        else:
            selected = value

        notes = previous.notes if previous is not None else None
        self._state.history.append(AnswerRecord(
            qid=question_id,
            previous=previous.model_copy(deep=True) if previous is not None else None,
        ))
        self._state.responses[question_id] = Response(selected=selected, notes=notes)

    def set_notes(self, question_id: str, text: str) -> None:
        """Attach free-text notes to a question without touching ``selected``."""
        if not self._catalog.has(question_id):
            raise UnknownQuestion(question_id)
        resp = self._state.responses.get(question_id)
        if resp is None:
            self._state.responses[question_id] = Response(notes=text)
        else:
            self._state.responses[question_id] = resp.model_copy(update={"notes": text})

    def set_additional_notes(self, text: str) -> None:
        self._state.additional_notes = text

    def set_consent(self, consent: bool) -> None:
        self._state.consent = consent

    def undo_last(self) -> str | None:
        """Undo the most recent answer run.

        Returns:
            The question id that was restored, or None when the log is empty.
        """
        history = self._state.history
        if not history:
            return None

        qid = history[-1].qid
        record = history.pop()
        while (
            record.previous is not None and not record.previous.is_empty
            and history and history[-1].qid == qid
        ):
            record = history.pop()

        current = self._state.responses.get(qid)
        notes = current.notes if current is not None else None
        prior = record.previous

        if prior is not None:
            self._state.responses[qid] = Response(selected=prior.selected, notes=notes)
        elif notes:
            self._state.responses[qid] = Response(notes=notes)
        else:
            self._state.responses.pop(qid, None)

        logger.debug("undo: restored %s to %r", qid, prior.selected if prior else None)
        return qid

    # ==================================================================
    # Summary & submission
    # ==================================================================

    def build_summary(self) -> FollowUpSummary:
        return self._urgency.build_summary(self._state, self._context)

    async def submit(self, service: SubmissionService) -> SubmissionAck:
        """Hand the humanized summary to ``service`` and discard the state.

        Raises:
            InterviewNotReady: the interview is incomplete or consent is
                missing.  Nothing is sent in that case.
        """
        if not self.is_complete():
            raise InterviewNotReady(
                f"interview is not complete ({self.answered_count()} answered, "
                f"{self._min_answered} required)"
            )
        if not self._state.consent:
            raise InterviewNotReady("consent is required before submission")

        summary = self.build_summary()
        ack = await service.submit(summary, consent=True)
        logger.info(
            "Submitted follow-up for case %s (urgent=%s, escalated=%s)",
            ack.case_id, summary.is_urgent, ack.escalated,
        )
        self._state = InterviewState()
        return ack

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_sequence(self, question_id: str) -> None:
        current = self.current_question()
        if current is not None and current.id == question_id:
            return
        history = self._state.history
        if history and history[-1].qid == question_id:
            return
        if any(q.id == question_id for q in self.optional_questions()):
            return

        current_id = current.id if current is not None else None
        if self._strict:
            raise OutOfSequenceAnswer(question_id, current_id)
        logger.warning(
            "Accepting out-of-sequence answer for %s (current: %s)",
            question_id, current_id,
        )
