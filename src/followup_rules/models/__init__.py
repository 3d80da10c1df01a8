"""Public model re-exports for followup_rules.

Consumers should import from ``followup_rules.models`` rather than
reaching into sub-modules directly.
"""

# --- Catalog ---
from followup_rules.models.question import (
    Catalog,
    Condition,
    IndicatorRule,
    Option,
    Predicate,
    Question,
    UrgencyRuleSpec,
)

# --- Interview state ---
from followup_rules.models.response import (
    AnswerRecord,
    CaseContext,
    InterviewState,
    Response,
)

# --- Collaborator contracts ---
from followup_rules.models.session import (
    SubmissionAck,
    VerificationFailure,
    VerificationResult,
)

# --- Summary ---
from followup_rules.models.summary import (
    CaseAssessment,
    FollowUpSummary,
    SummaryItem,
    UrgencyReason,
)

__all__ = [
    # Catalog
    "Catalog",
    "Condition",
    "IndicatorRule",
    "Option",
    "Predicate",
    "Question",
    "UrgencyRuleSpec",
    # Interview state
    "AnswerRecord",
    "CaseContext",
    "InterviewState",
    "Response",
    # Collaborators
    "SubmissionAck",
    "VerificationFailure",
    "VerificationResult",
    # Summary
    "CaseAssessment",
    "FollowUpSummary",
    "SummaryItem",
    "UrgencyReason",
]
