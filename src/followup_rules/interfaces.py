"""Abstract interfaces for the collaborators around the engine.

These ABCs define the contract that external implementations must fulfil.
The SDK ships a static YAML catalog source and thin HTTP adapters
(:mod:`followup_rules.remote`); anything else — passcode issuance,
storage, notification — lives in the surrounding system.

Typical integration flow::

    catalog = StaticCatalogSource("treatment_followup").load()
    gate = FollowUpGate(catalog, verifier=MyVerifier(), context=ctx)

    # Patient types the passcode into the segmented input
    gate.capture.paste_at(0, "4821")
    interview = await gate.verify_pending()

    # ... answer questions until interview.is_complete() ...
    interview.set_consent(True)
    ack = await interview.submit(MySubmissionService())
"""

from abc import ABC, abstractmethod

from followup_rules.models.question import Catalog
from followup_rules.models.session import SubmissionAck, VerificationResult
from followup_rules.models.summary import FollowUpSummary


class CatalogSource(ABC):
    """Where a question catalog comes from.

    Every implementation returns the same immutable :class:`Catalog`
    type, so the flow resolver behaves identically for a catalog shipped
    with the SDK and one fetched from a server.
    """

    @abstractmethod
    def load(self) -> Catalog:
        """Return the parsed catalog.

        Raises
        ------
        CatalogError
            If the document is missing or malformed.
        """
        ...


class VerificationService(ABC):
    """Checks a captured one-time passcode.

    The engine only hands over the raw digit string; validity, expiry and
    attempt limits are owned by the implementation.
    """

    @abstractmethod
    async def verify(self, code: str) -> VerificationResult:
        """Verify ``code``.

        Returns
        -------
        VerificationResult
            ``ok=True`` unlocks the interview; otherwise ``failure`` is one
            of ``invalid_code``, ``expired`` or ``rate_limited``.
        """
        ...


class SubmissionService(ABC):
    """Receives the finished follow-up."""

    @abstractmethod
    async def submit(self, summary: FollowUpSummary, consent: bool) -> SubmissionAck:
        """Store or forward the humanized summary.

        Parameters
        ----------
        summary:
            The record built by the urgency evaluator — never the raw
            response map.
        consent:
            The patient's consent flag.  Always True when called by the
            interview controller.

        Returns
        -------
        SubmissionAck
            Case acknowledgment, with ``escalated`` set when the case was
            forwarded for expedited review.
        """
        ...
