"""undo_last tests — walking back along the path actually taken.

Contract:
  - undoing the answer to the current question restores the exact prior
    response map and the exact prior current question
  - consecutive answers to the same question collapse into one step,
    but a run restarts where the question had become unanswered again
  - repeated undo walks backward; an empty log returns None
  - notes survive undo
"""

import pytest

from followup_rules.interview import InterviewController


@pytest.fixture
def ctl(treatment):
    return InterviewController(treatment)


class TestUndo:

    def test_nothing_to_undo(self, ctl):
        assert ctl.undo_last() is None
        assert ctl.current_question().id == "treatmentOutcome"

    def test_answer_then_undo_restores_map_and_current(self, ctl):
        ctl.answer("treatmentOutcome", "no_change")
        before_map = ctl.responses
        before_current = ctl.current_question().id

        ctl.answer(before_current, "same")
        assert ctl.undo_last() == "symptomStatus"

        assert ctl.responses == before_map
        assert ctl.current_question().id == before_current

    def test_overwrite_then_undo_restores_previous_value(self, ctl):
        ctl.answer("treatmentOutcome", "improving")
        ctl.answer("improvementLevel", "slight")
        ctl.answer("improvementLevel", "significant")
        assert ctl.undo_last() == "improvementLevel"
        assert "improvementLevel" not in ctl.responses
        assert ctl.current_question().id == "improvementLevel"

    def test_multi_toggle_run_is_one_step(self, ctl):
        ctl.answer("treatmentOutcome", "worse")
        ctl.answer("worseningDetails", "new_symptoms")
        for value in ("fever", "rash", "breathing"):
            ctl.answer("newSymptoms", value)

        assert ctl.undo_last() == "newSymptoms"
        assert "newSymptoms" not in ctl.responses
        assert ctl.current_question().id == "newSymptoms"

    def test_repeated_undo_walks_back(self, ctl):
        path = [
            ("treatmentOutcome", "fully_recovered"),
            ("recoveryTime", "within_week"),
            ("medicationTaken", "stopped_early"),
            ("stoppedReason", "felt_better"),
        ]
        for qid, value in path:
            ctl.answer(qid, value)

        undone = [ctl.undo_last() for _ in path]
        assert undone == [qid for qid, _ in reversed(path)]
        assert ctl.responses == {}
        assert ctl.undo_last() is None

    def test_undo_then_change_branch(self, ctl):
        ctl.answer("treatmentOutcome", "worse")
        ctl.answer("worseningDetails", "side_effects")
        ctl.undo_last()
        ctl.answer("worseningDetails", "symptoms_worse")
        assert ctl.current_question().id == "medicationTaken"

    def test_undo_keeps_notes(self, ctl):
        ctl.answer("treatmentOutcome", "improving")
        ctl.set_notes("treatmentOutcome", "feeling tired")
        ctl.undo_last()
        resp = ctl.responses["treatmentOutcome"]
        assert resp.selected is None
        assert resp.notes == "feeling tired"
        assert ctl.current_question().id == "treatmentOutcome"

    def test_undo_after_emptied_multi_restores_empty_set(self, ctl):
        ctl.answer("treatmentOutcome", "worse")
        ctl.answer("worseningDetails", "new_symptoms")
        ctl.answer("newSymptoms", "fever")
        ctl.answer("newSymptoms", "fever")
        assert ctl.current_question().id == "newSymptoms"
        before_map = ctl.responses

        ctl.answer("newSymptoms", "rash")
        assert ctl.undo_last() == "newSymptoms"
        assert ctl.responses == before_map
        assert ctl.responses["newSymptoms"].selected == []
        assert ctl.current_question().id == "newSymptoms"

        # the earlier toggles are one run of their own
        assert ctl.undo_last() == "newSymptoms"
        assert "newSymptoms" not in ctl.responses
