"""FollowUpGate — passcode capture in front of a follow-up interview.

Mirrors the patient-facing page: the patient fills the segmented code
input, the completed code goes to the verification collaborator, and only
a successful verification creates the :class:`InterviewController`.  A
typed failure clears the input so the patient can try again; attempt
limits and expiry are the verifier's business.
"""

from __future__ import annotations

import logging

from followup_rules.capture import SegmentedCodeCapture
from followup_rules.constants import DEFAULT_CODE_LENGTH, MIN_ANSWERED_QUESTIONS
from followup_rules.interfaces import VerificationService
from followup_rules.interview import InterviewController
from followup_rules.models.question import Catalog
from followup_rules.models.response import CaseContext
from followup_rules.models.session import VerificationResult

logger = logging.getLogger(__name__)


class FollowUpGate:
    """Unlocks an interview once a captured passcode verifies.

    Args:
        catalog: catalog for the interview created on success
        verifier: the verification collaborator
        context: case metadata passed on to the interview
        code_length: number of passcode cells
        min_answered: forwarded to the interview controller
    """

    def __init__(
        self,
        catalog: Catalog,
        verifier: VerificationService,
        *,
        context: CaseContext | None = None,
        code_length: int = DEFAULT_CODE_LENGTH,
        min_answered: int = MIN_ANSWERED_QUESTIONS,
    ) -> None:
        self._catalog = catalog
        self._verifier = verifier
        self._context = context
        self._min_answered = min_answered
        self._pending: str | None = None
        self._interview: InterviewController | None = None
        self._last_result: VerificationResult | None = None
        self.capture = SegmentedCodeCapture(code_length, on_complete=self._on_complete)

    @property
    def pending_code(self) -> str | None:
        """Completed code waiting for :meth:`verify_pending`, if any."""
        return self._pending

    @property
    def interview(self) -> InterviewController | None:
        return self._interview

    @property
    def last_result(self) -> VerificationResult | None:
        return self._last_result

    @property
    def unlocked(self) -> bool:
        return self._interview is not None

    def _on_complete(self, code: str) -> None:
        self._pending = code

    async def verify_pending(self) -> InterviewController | None:
        """Send the pending code to the verifier.

        Returns:
            A fresh interview on success; None on failure or when no code
            is pending.
        """
        code = self._pending
        if code is None:
            logger.debug("verify_pending called without a completed code")
            return None
        self._pending = None

        result = await self._verifier.verify(code)
        self._last_result = result
        if not result.ok:
            logger.info(
                "Passcode rejected: %s",
                result.failure.value if result.failure else "unknown",
            )
            self.capture.reset()
            return None

        self._interview = InterviewController(
            self._catalog,
            context=self._context,
            min_answered=self._min_answered,
        )
        logger.info("Passcode verified, interview unlocked for catalog %s", self._catalog.name)
        return self._interview
