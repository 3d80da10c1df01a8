"""Catalog endpoints — publish catalogs and evaluate answer snapshots.

Every endpoint is stateless: the caller sends the full response map and
gets back what the SDK derives from it.  ``GET /catalogs/{name}`` returns
the exact document ``RemoteCatalogSource`` expects, so a client can run the
interview locally against a catalog served from here.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from followup_rules.catalog import CatalogStore
from followup_rules.constants import MIN_ANSWERED_QUESTIONS
from followup_rules.models.response import AnswerRecord, CaseContext, InterviewState, Response
from followup_rules.models.summary import FollowUpSummary
from followup_rules.render import SummaryRenderer
from followup_rules.resolver import FlowResolver, answer_snapshot
from followup_rules.urgency import UrgencyEvaluator

from followup_server.dependencies import get_renderer, get_store

router = APIRouter(prefix="/catalogs", tags=["catalogs"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class EvaluateRequest(BaseModel):
    """Body for POST /catalogs/{name}/evaluate.

    ``responses`` values are either a raw selection (``"worse"``,
    ``["fever", "rash"]``) or a ``{"selected": ..., "notes": ...}`` object.
    """
    responses: dict[str, Any] = Field(default_factory=dict)
    context: Optional[CaseContext] = None
    min_answered: Optional[int] = None


class EvaluateResponse(BaseModel):
    current_question: Optional[dict[str, Any]] = None
    pending: list[str]
    optional: list[str]
    orphaned: list[str]
    answered_count: int
    is_complete: bool
    is_urgent: bool


class SummaryRequest(BaseModel):
    """Body for POST /catalogs/{name}/summary.

    ``answer_order`` lists question ids in the order they were answered;
    it only affects where answers to unknown ids appear.
    """
    responses: dict[str, Any] = Field(default_factory=dict)
    context: Optional[CaseContext] = None
    additional_notes: str = ""
    consent: bool = False
    answer_order: list[str] = Field(default_factory=list)


class SummaryResponse(BaseModel):
    summary: FollowUpSummary
    text: str


def _to_responses(raw: dict[str, Any]) -> dict[str, Response]:
    """Accept raw selections or full response objects."""
    parsed: dict[str, Response] = {}
    for qid, value in raw.items():
        if isinstance(value, dict):
            parsed[qid] = Response.model_validate(value)
        else:
            parsed[qid] = Response(selected=value)
    return parsed


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("")
def list_catalogs(
    store: CatalogStore = Depends(get_store),
) -> list[dict]:
    """Return the name, version and size of every loaded catalog."""
    return [
        {
            "name": catalog.name,
            "version": catalog.version,
            "title": catalog.title,
            "questions": len(catalog.questions),
        }
        for catalog in store.catalogs.values()
    ]


@router.get("/{name}")
def get_catalog(
    name: str,
    store: CatalogStore = Depends(get_store),
) -> dict:
    """Return the full catalog document."""
    return store.get(name).model_dump(mode="json")


@router.post("/{name}/evaluate")
def evaluate(
    name: str,
    body: EvaluateRequest,
    store: CatalogStore = Depends(get_store),
) -> EvaluateResponse:
    """Resolve the branching tree for an answer snapshot."""
    catalog = store.get(name)
    resolver = FlowResolver(catalog)
    responses = _to_responses(body.responses)

    pending = resolver.pending(responses, body.context)
    answered = len(answer_snapshot(responses))
    min_answered = body.min_answered if body.min_answered is not None else MIN_ANSWERED_QUESTIONS

    return EvaluateResponse(
        current_question=pending[0].model_dump(mode="json") if pending else None,
        pending=[q.id for q in pending],
        optional=[q.id for q in resolver.optional(responses, body.context)],
        orphaned=resolver.orphaned(responses, body.context),
        answered_count=answered,
        is_complete=not pending and answered >= min_answered,
        is_urgent=UrgencyEvaluator(catalog).is_urgent(responses, body.context),
    )


@router.post("/{name}/summary")
def summarize(
    name: str,
    body: SummaryRequest,
    store: CatalogStore = Depends(get_store),
    renderer: SummaryRenderer = Depends(get_renderer),
) -> SummaryResponse:
    """Build the humanized summary and its rendered text."""
    catalog = store.get(name)
    state = InterviewState(
        responses=_to_responses(body.responses),
        history=[AnswerRecord(qid=qid) for qid in body.answer_order],
        additional_notes=body.additional_notes,
        consent=body.consent,
    )
    summary = UrgencyEvaluator(catalog).build_summary(state, body.context)
    return SummaryResponse(summary=summary, text=renderer.render_summary(summary))
