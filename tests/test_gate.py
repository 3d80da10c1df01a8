"""FollowUpGate tests — capture → verify → interview."""

import pytest

from followup_rules.gate import FollowUpGate
from followup_rules.interfaces import VerificationService
from followup_rules.models.response import CaseContext
from followup_rules.models.session import VerificationFailure, VerificationResult


class FakeVerifier(VerificationService):
    """Accepts one code; refuses everything else with a fixed failure."""

    def __init__(self, good="4821", failure=VerificationFailure.INVALID_CODE):
        self.good = good
        self.failure = failure
        self.codes = []

    async def verify(self, code):
        self.codes.append(code)
        if code == self.good:
            return VerificationResult.success()
        return VerificationResult.failed(self.failure, "refused")


class TestGate:

    @pytest.mark.asyncio
    async def test_nothing_pending(self, treatment):
        verifier = FakeVerifier()
        gate = FollowUpGate(treatment, verifier)
        assert await gate.verify_pending() is None
        assert verifier.codes == []

    @pytest.mark.asyncio
    async def test_success_unlocks_interview(self, treatment):
        gate = FollowUpGate(treatment, FakeVerifier(), context=CaseContext(case_id="C-1"))
        gate.capture.paste_at(0, "4821")
        assert gate.pending_code == "4821"

        interview = await gate.verify_pending()

        assert interview is not None
        assert gate.unlocked
        assert gate.last_result.ok
        assert interview.context.case_id == "C-1"
        assert interview.current_question().id == "treatmentOutcome"
        assert gate.pending_code is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failure", list(VerificationFailure))
    async def test_failure_resets_capture(self, treatment, failure):
        gate = FollowUpGate(treatment, FakeVerifier(failure=failure))
        for i, d in enumerate("1111"):
            gate.capture.set_digit(i, d)

        assert await gate.verify_pending() is None
        assert gate.last_result.failure == failure
        assert gate.capture.code == ""
        assert not gate.unlocked

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, treatment):
        verifier = FakeVerifier()
        gate = FollowUpGate(treatment, verifier)
        gate.capture.paste_at(0, "0000")
        await gate.verify_pending()
        gate.capture.paste_at(0, "4821")
        assert await gate.verify_pending() is not None
        assert verifier.codes == ["0000", "4821"]

    def test_custom_code_length(self, treatment):
        gate = FollowUpGate(treatment, FakeVerifier(), code_length=6)
        assert gate.capture.length == 6
