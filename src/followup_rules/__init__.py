"""followup_rules — adaptive follow-up questionnaire SDK.

Public API:
    CatalogStore          — loads YAML catalogs into typed models with lookup helpers
    FlowResolver          — pure ``responses x context -> applicable questions``
    InterviewController   — answers, undo, completion, submission for one session
    UrgencyEvaluator      — urgency rules, label humanization, summary building
    SummaryRenderer       — Jinja2 text rendering of a summary
    SegmentedCodeCapture  — state of the one-time-passcode input
    FollowUpGate          — passcode capture + verification in front of an interview

Catalog sources:
    StaticCatalogSource   — YAML shipped with the SDK
    RemoteCatalogSource   — catalog document fetched over HTTP

Collaborator interfaces:
    VerificationService   — ABC for passcode verification
    SubmissionService     — ABC for receiving the finished summary
    HttpVerificationService / HttpSubmissionService — httpx adapters
"""

from followup_rules.capture import CaptureSignal, SegmentedCodeCapture
from followup_rules.catalog import CatalogStore, StaticCatalogSource
from followup_rules.errors import (
    CatalogError,
    InterviewNotReady,
    OutOfSequenceAnswer,
    UnknownQuestion,
)
from followup_rules.gate import FollowUpGate
from followup_rules.interfaces import CatalogSource, SubmissionService, VerificationService
from followup_rules.interview import InterviewController
from followup_rules.models import (
    CaseAssessment,
    CaseContext,
    Catalog,
    FollowUpSummary,
    InterviewState,
    Question,
    Response,
    SubmissionAck,
    SummaryItem,
    UrgencyReason,
    VerificationFailure,
    VerificationResult,
)
from followup_rules.remote import (
    HttpSubmissionService,
    HttpVerificationService,
    RemoteCatalogSource,
)
from followup_rules.render import SummaryRenderer
from followup_rules.resolver import FlowResolver
from followup_rules.urgency import UrgencyEvaluator, UrgencyRuleTable

__all__ = [
    # Engine & store
    "CatalogStore",
    "FlowResolver",
    "InterviewController",
    "UrgencyEvaluator",
    "UrgencyRuleTable",
    "SummaryRenderer",
    "SegmentedCodeCapture",
    "CaptureSignal",
    "FollowUpGate",
    # Sources & collaborators
    "CatalogSource",
    "StaticCatalogSource",
    "RemoteCatalogSource",
    "VerificationService",
    "SubmissionService",
    "HttpVerificationService",
    "HttpSubmissionService",
    # Models
    "Catalog",
    "Question",
    "Response",
    "CaseContext",
    "InterviewState",
    "FollowUpSummary",
    "SummaryItem",
    "UrgencyReason",
    "CaseAssessment",
    "VerificationResult",
    "VerificationFailure",
    "SubmissionAck",
    # Errors
    "CatalogError",
    "OutOfSequenceAnswer",
    "UnknownQuestion",
    "InterviewNotReady",
]
