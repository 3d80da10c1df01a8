"""InterviewController tests — answering, multi toggles, sequencing, completion."""

import pytest

from followup_rules.errors import InterviewNotReady, OutOfSequenceAnswer, UnknownQuestion
from followup_rules.interview import InterviewController
from followup_rules.models.question import Catalog
from followup_rules.models.response import CaseContext, Response

COMPLETE_PATH = [
    ("treatmentOutcome", "fully_recovered"),
    ("recoveryTime", "within_days"),
    ("medicationTaken", "completed"),
    ("anySideEffects", "none"),
]


@pytest.fixture
def ctl(treatment):
    return InterviewController(treatment)


def _walk(ctl, path):
    for qid, value in path:
        assert ctl.current_question().id == qid
        ctl.answer(qid, value)


class TestCurrentQuestion:

    def test_starts_at_primary(self, ctl):
        assert ctl.current_question().id == "treatmentOutcome"

    def test_advances_after_answer(self, ctl):
        ctl.answer("treatmentOutcome", "improving")
        assert ctl.current_question().id == "improvementLevel"

    def test_current_question_is_never_answered(self, ctl):
        _walk(ctl, COMPLETE_PATH[:2])
        current = ctl.current_question()
        assert current.id not in ctl.state.selected_map()


class TestAnswer:

    def test_single_answer_overwrites(self, ctl):
        ctl.answer("treatmentOutcome", "improving")
        ctl.answer("treatmentOutcome", "worse")
        assert ctl.responses["treatmentOutcome"].selected == "worse"
        assert ctl.current_question().id == "worseningDetails"

    def test_multi_toggle_twice_restores_set(self, ctl):
        _walk(ctl, [("treatmentOutcome", "worse"), ("worseningDetails", "new_symptoms")])
        ctl.answer("newSymptoms", "fever")
        before = ctl.responses["newSymptoms"].selected
        ctl.answer("newSymptoms", "rash")
        ctl.answer("newSymptoms", "rash")
        assert ctl.responses["newSymptoms"].selected == before == ["fever"]

    def test_multi_toggle_to_empty_leaves_question_pending(self, ctl):
        _walk(ctl, [("treatmentOutcome", "worse"), ("worseningDetails", "new_symptoms")])
        ctl.answer("newSymptoms", "fever")
        assert ctl.current_question().id == "medicationTaken"
        ctl.answer("newSymptoms", "fever")
        assert ctl.responses["newSymptoms"].selected == []
        assert ctl.current_question().id == "newSymptoms"

    def test_multi_override(self, ctl):
        """``multi=True`` toggles even on a single-select question."""
        ctl.answer("treatmentOutcome", "worse", multi=True)
        assert ctl.responses["treatmentOutcome"].selected == ["worse"]

    def test_answer_preserves_notes(self, ctl):
        ctl.set_notes("treatmentOutcome", "slept badly")
        ctl.answer("treatmentOutcome", "improving")
        assert ctl.responses["treatmentOutcome"].notes == "slept badly"

    def test_notes_alone_do_not_answer(self, ctl):
        ctl.set_notes("treatmentOutcome", "just a note")
        assert ctl.current_question().id == "treatmentOutcome"
        assert ctl.answered_count() == 0
        assert ctl.state.history == []

    def test_unknown_question(self, ctl):
        with pytest.raises(UnknownQuestion):
            ctl.answer("nope", "x")
        with pytest.raises(KeyError):
            ctl.set_notes("nope", "x")


class TestSequencing:

    def test_out_of_sequence_raises(self, ctl):
        with pytest.raises(OutOfSequenceAnswer) as exc_info:
            ctl.answer("anySideEffects", "none")
        assert exc_info.value.qid == "anySideEffects"
        assert exc_info.value.current == "treatmentOutcome"

    def test_out_of_sequence_is_value_error(self, ctl):
        with pytest.raises(ValueError):
            ctl.answer("recoveryTime", "within_days")

    def test_editing_last_answered_is_allowed(self, ctl):
        ctl.answer("treatmentOutcome", "improving")
        ctl.answer("treatmentOutcome", "no_change")
        assert ctl.current_question().id == "symptomStatus"

    def test_non_strict_accepts(self, treatment):
        ctl = InterviewController(treatment, strict=False)
        ctl.answer("anySideEffects", "none")
        assert ctl.responses["anySideEffects"].selected == "none"


class TestCompletion:

    def test_complete_scenario_not_urgent(self, ctl):
        _walk(ctl, COMPLETE_PATH)
        assert ctl.current_question() is None
        assert ctl.answered_count() == 4
        assert ctl.is_complete() is True
        assert ctl.is_urgent() is False

    def test_needs_minimum_answers(self, treatment):
        ctl = InterviewController(treatment, min_answered=5)
        _walk(ctl, COMPLETE_PATH)
        assert ctl.current_question() is None
        assert ctl.is_complete() is False

    def test_fewer_than_three_answers_never_complete(self, adverse):
        """Even a catalog that runs out of questions needs three answers."""
        tiny = Catalog(name="tiny", questions=adverse.questions[:2])
        ctl = InterviewController(tiny, min_answered=3)
        ctl.answer("timeToOnset", "hours")
        ctl.answer("symptoms", "rash")
        assert ctl.current_question() is None
        assert ctl.is_complete() is False

    def test_orphans_count_towards_answers(self, treatment):
        ctl = InterviewController(treatment, strict=False)
        _walk(ctl, [("treatmentOutcome", "improving"), ("improvementLevel", "slight")])
        ctl.answer("treatmentOutcome", "fully_recovered")
        assert ctl.orphaned() == ["improvementLevel"]
        assert ctl.answered_count() == 2

    def test_can_submit_requires_consent(self, ctl):
        _walk(ctl, COMPLETE_PATH)
        assert ctl.can_submit() is False
        ctl.set_consent(True)
        assert ctl.can_submit() is True

    def test_complete_scenario_with_prescription_context(self, treatment):
        ctx = CaseContext(case_id="C-9", medicine_name="Amoxicillin", condition="sinusitis")
        ctl = InterviewController(treatment, context=ctx)
        _walk(ctl, COMPLETE_PATH)
        assert ctl.current_question() is None
        assert ctl.is_complete() is True
        assert [q.id for q in ctl.optional_questions()] == ["conditionStatus"]

    def test_optional_question_can_be_answered_in_strict_mode(self, treatment):
        ctx = CaseContext(condition="sinusitis")
        ctl = InterviewController(treatment, context=ctx)
        _walk(ctl, COMPLETE_PATH)
        ctl.answer("conditionStatus", "controlled")
        assert ctl.optional_questions() == []
        assert ctl.is_complete() is True
        assert ctl.answered_count() == 5

    def test_optional_question_never_blocks_completion(self):
        catalog = Catalog.model_validate({
            "name": "optional",
            "questions": [
                {"id": "a", "prompt": "A?", "options": [{"value": "y", "label": "Y"}]},
                {
                    "id": "d",
                    "prompt": "D?",
                    "required": False,
                    "options": [{"value": "ok", "label": "OK"}],
                },
            ],
        })
        ctl = InterviewController(catalog, min_answered=1)
        ctl.answer("a", "y")
        assert ctl.current_question() is None
        assert ctl.is_complete() is True


class _RecordingSubmission:
    """Minimal SubmissionService stand-in that records what it received."""

    def __init__(self):
        self.calls = []

    async def submit(self, summary, consent):
        from followup_rules.models.session import SubmissionAck

        self.calls.append((summary, consent))
        return SubmissionAck(case_id="CASE-1", escalated=summary.is_urgent)


class TestSubmit:

    @pytest.mark.asyncio
    async def test_submit_hands_off_summary_and_discards_state(self, ctl):
        _walk(ctl, COMPLETE_PATH)
        ctl.set_additional_notes("All good")
        ctl.set_consent(True)
        service = _RecordingSubmission()

        ack = await ctl.submit(service)

        assert ack.case_id == "CASE-1"
        (summary, consent), = service.calls
        assert consent is True
        assert summary.primary_outcome == "Fully recovered"
        assert summary.additional_notes == "All good"
        assert ctl.state.responses == {}
        assert ctl.current_question().id == "treatmentOutcome"

    @pytest.mark.asyncio
    async def test_submit_incomplete(self, ctl):
        ctl.answer("treatmentOutcome", "improving")
        ctl.set_consent(True)
        service = _RecordingSubmission()
        with pytest.raises(InterviewNotReady):
            await ctl.submit(service)
        assert service.calls == []

    @pytest.mark.asyncio
    async def test_submit_without_consent(self, ctl):
        _walk(ctl, COMPLETE_PATH)
        service = _RecordingSubmission()
        with pytest.raises(InterviewNotReady, match="consent"):
            await ctl.submit(service)
        assert ctl.responses["treatmentOutcome"] == Response(selected="fully_recovered")
