"""FlowResolver tests — branching paths through the treatment follow-up tree."""

import pytest

from followup_rules.models.question import Catalog
from followup_rules.models.response import CaseContext, Response
from followup_rules.resolver import FlowResolver, answer_snapshot


@pytest.fixture
def resolver(treatment):
    return FlowResolver(treatment)


def _ids(questions):
    return [q.id for q in questions]


class TestAnswerSnapshot:

    def test_drops_empty_answers(self):
        snap = answer_snapshot({
            "a": Response(selected="x"),
            "b": Response(selected=[]),
            "c": Response(notes="only notes"),
            "d": "raw",
            "e": None,
        })
        assert snap == {"a": "x", "d": "raw"}


class TestResolve:

    def test_empty_responses_only_primary(self, resolver):
        assert _ids(resolver.resolve({})) == ["treatmentOutcome"]

    def test_deterministic_and_idempotent(self, resolver):
        responses = {"treatmentOutcome": "worse", "worseningDetails": "new_symptoms"}
        first = _ids(resolver.resolve(responses))
        assert first == _ids(resolver.resolve(responses))
        assert first == ["treatmentOutcome", "worseningDetails", "newSymptoms"]

    def test_resolve_does_not_mutate_input(self, resolver):
        responses = {"treatmentOutcome": Response(selected="improving")}
        resolver.resolve(responses)
        assert responses == {"treatmentOutcome": Response(selected="improving")}

    def test_fully_recovered_branch(self, resolver):
        responses = {"treatmentOutcome": "fully_recovered", "recoveryTime": "within_days"}
        assert _ids(resolver.pending(responses)) == ["medicationTaken"]

    def test_conjunctive_predicate(self, resolver):
        """newSymptoms needs both worse and new_symptoms."""
        assert "newSymptoms" not in _ids(resolver.resolve({
            "treatmentOutcome": "improving",
            "worseningDetails": "new_symptoms",
        }))

    def test_side_effect_details_via_any_side_effects(self, resolver):
        responses = {
            "treatmentOutcome": "improving",
            "improvementLevel": "slight",
            "medicationTaken": "completed",
            "anySideEffects": "moderate",
        }
        assert resolver.next_question(responses).id == "sideEffectDetails"

    def test_not_started_skips_side_effects(self, resolver):
        responses = {
            "treatmentOutcome": "no_change",
            "symptomStatus": "same",
            "medicationTaken": "not_started",
        }
        assert _ids(resolver.pending(responses)) == ["contactPreference"]

    def test_worse_side_effects_skips_any_side_effects(self, resolver):
        responses = {
            "treatmentOutcome": "worse",
            "worseningDetails": "side_effects",
            "sideEffectDetails": "nausea",
            "medicationTaken": "completed",
        }
        assert "anySideEffects" not in _ids(resolver.resolve(responses))
        assert resolver.next_question(responses).id == "contactPreference"

    def test_context_predicate(self, resolver):
        responses = {
            "treatmentOutcome": "fully_recovered",
            "recoveryTime": "within_days",
            "medicationTaken": "completed",
            "anySideEffects": "none",
        }
        assert "conditionStatus" not in _ids(resolver.resolve(responses))
        ctx = CaseContext(condition="hypertension")
        assert "conditionStatus" in _ids(resolver.resolve(responses, ctx))
        assert _ids(resolver.optional(responses, ctx)) == ["conditionStatus"]

    def test_optional_question_does_not_block(self, resolver):
        responses = {
            "treatmentOutcome": "fully_recovered",
            "recoveryTime": "within_days",
            "medicationTaken": "completed",
            "anySideEffects": "none",
        }
        ctx = CaseContext(medicine_name="Amoxicillin", condition="sinusitis")
        assert resolver.pending(responses, ctx) == []
        assert resolver.next_question(responses, ctx) is None

    def test_exhausted_path(self, resolver):
        responses = {
            "treatmentOutcome": "fully_recovered",
            "recoveryTime": "within_days",
            "medicationTaken": "completed",
            "anySideEffects": "none",
        }
        assert resolver.pending(responses) == []
        assert resolver.next_question(responses) is None


class TestOrphaned:

    def test_answer_off_path_is_orphaned(self, resolver):
        responses = {"treatmentOutcome": "improving", "recoveryTime": "within_days"}
        assert resolver.orphaned(responses) == ["recoveryTime"]

    def test_unknown_id_is_orphaned(self, resolver):
        responses = {"treatmentOutcome": "improving", "mystery": "x"}
        assert resolver.orphaned(responses) == ["mystery"]

    def test_orphans_do_not_drive_pending(self, resolver):
        """An orphaned answer does not satisfy a predicate that was on its branch."""
        responses = {
            "treatmentOutcome": "improving",
            "recoveryTime": "within_days",
        }
        assert _ids(resolver.pending(responses)) == ["improvementLevel"]

    def test_empty_multi_is_not_answered(self, resolver):
        responses = {
            "treatmentOutcome": "worse",
            "worseningDetails": "new_symptoms",
            "newSymptoms": Response(selected=[]),
        }
        assert resolver.next_question(responses).id == "newSymptoms"


def _chained_catalog():
    """a -> b (only when a == x) -> c (once b is answered); d always applies.

    ``c`` is declared before ``b`` so that dropping one orphan can only be
    seen to orphan the next on a later pass over the catalog.
    """
    return Catalog.model_validate({
        "name": "chained",
        "questions": [
            {
                "id": "a",
                "prompt": "A?",
                "options": [{"value": "x", "label": "X"}, {"value": "y", "label": "Y"}],
            },
            {
                "id": "c",
                "prompt": "C?",
                "options": [{"value": "z", "label": "Z"}],
                "applicability": [{"when": [{"qid": "b", "op": "answered"}]}],
            },
            {
                "id": "b",
                "prompt": "B?",
                "options": [{"value": "1", "label": "One"}],
                "applicability": [{"when": [{"qid": "a", "op": "eq", "value": "x"}]}],
            },
            {"id": "d", "prompt": "D?", "options": [{"value": "ok", "label": "OK"}]},
        ],
    })


class TestOrphanChains:

    @pytest.fixture
    def chained(self):
        return FlowResolver(_chained_catalog())

    def test_orphan_does_not_enable_dependent(self, chained):
        responses = {"a": "y", "b": "1"}
        assert _ids(chained.resolve(responses)) == ["a", "d"]
        assert chained.orphaned(responses) == ["b"]
        assert chained.next_question(responses).id == "d"

    def test_orphans_cascade_across_catalog_order(self, chained):
        responses = {"a": "y", "b": "1", "c": "z"}
        assert chained.effective_answers(responses) == {"a": "y"}
        assert chained.orphaned(responses) == ["b", "c"]
        assert _ids(chained.pending(responses)) == ["d"]

    def test_chain_on_path_is_kept(self, chained):
        responses = {"a": "x", "b": "1", "c": "z"}
        assert chained.orphaned(responses) == []
        assert _ids(chained.pending(responses)) == ["d"]


class TestRequired:

    @pytest.fixture
    def optional_catalog(self):
        return Catalog.model_validate({
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

    def test_optional_is_resolved_but_not_pending(self, optional_catalog):
        resolver = FlowResolver(optional_catalog)
        responses = {"a": "y"}
        assert _ids(resolver.resolve(responses)) == ["a", "d"]
        assert resolver.pending(responses) == []
        assert resolver.next_question(responses) is None
        assert _ids(resolver.optional(responses)) == ["d"]

    def test_answered_optional_leaves_optional_list(self, optional_catalog):
        resolver = FlowResolver(optional_catalog)
        assert resolver.optional({"a": "y", "d": "ok"}) == []
