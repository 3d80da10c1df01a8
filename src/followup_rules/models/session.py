"""Collaborator contract models — what verification and submission return.

These models are the boundary with the surrounding system.  Passcode
issuance, storage, and delivery all live outside the engine; it only sees
the typed outcome.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class VerificationFailure(str, Enum):
    """Why a passcode was refused.  The taxonomy is owned by the verifier."""

    INVALID_CODE = "invalid_code"
    EXPIRED = "expired"
    RATE_LIMITED = "rate_limited"


class VerificationResult(BaseModel):
    """Outcome of a passcode check."""

    ok: bool
    failure: Optional[VerificationFailure] = None
    message: Optional[str] = None

    @classmethod
    def success(cls) -> "VerificationResult":
        return cls(ok=True)

    @classmethod
    def failed(cls, failure: VerificationFailure, message: str | None = None) -> "VerificationResult":
        return cls(ok=False, failure=failure, message=message)


class SubmissionAck(BaseModel):
    """Opaque acknowledgment returned by the submission collaborator.

    ``escalated`` is set by the adverse-event variant when the case was
    additionally forwarded for expedited review.
    """

    case_id: str
    escalated: bool = False
    message: Optional[str] = None
