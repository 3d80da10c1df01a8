"""HTTP adapters — fetched catalogs and the verification/submission collaborators.

All three are thin httpx wrappers.  They translate between the wire and
the SDK's typed models and nothing else:

    RemoteCatalogSource     GET  <catalog url>
    HttpVerificationService POST /follow-ups/{id}/verify-otp   {"otp": code}
    HttpSubmissionService   POST /follow-ups/{id}/submit       {"summary", "consent"}

A catalog URL may serve either this project's catalog document (as
returned by ``GET /api/v1/catalogs/{name}``) or the older envelope
``{"success": true, "data": {"questions": [...]}}``.  Both parse into the
same :class:`Catalog`, so the flow resolver cannot tell them apart.

Each adapter accepts an injected client (tests pass one built on
``httpx.MockTransport``); otherwise a client is opened per call.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from followup_rules.catalog import parse_catalog
from followup_rules.errors import CatalogError
from followup_rules.interfaces import CatalogSource, SubmissionService, VerificationService
from followup_rules.models.question import Catalog
from followup_rules.models.session import (
    SubmissionAck,
    VerificationFailure,
    VerificationResult,
)
from followup_rules.models.summary import FollowUpSummary

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def unwrap_envelope(payload: Any) -> Any:
    """Strip a ``{"success": ..., "data": ...}`` envelope if present."""
    if isinstance(payload, dict) and "data" in payload and "success" in payload:
        return payload["data"]
    return payload


# ---------------------------------------------------------------------------
# Catalog source
# ---------------------------------------------------------------------------

class RemoteCatalogSource(CatalogSource):
    """Fetches a catalog document over HTTP.

    Args:
        url: absolute URL of the catalog document
        name: catalog name to use when the document does not carry one
            (the older envelope only holds a question list)
        client: optional pre-configured ``httpx.Client``
    """

    def __init__(
        self,
        url: str,
        *,
        name: str = "remote",
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._url = url
        self._name = name
        self._client = client
        self._timeout = timeout

    def load(self) -> Catalog:
        try:
            if self._client is not None:
                resp = self._client.get(self._url)
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    resp = client.get(self._url)
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CatalogError(f"Could not fetch catalog from {self._url}: {exc}") from exc

        doc = unwrap_envelope(payload)
        if isinstance(doc, dict) and "name" not in doc:
            doc = {**doc, "name": self._name}

        catalog = parse_catalog(doc, origin=self._url)
        logger.info(
            "Fetched catalog %s v%s (%d questions) from %s",
            catalog.name, catalog.version, len(catalog.questions), self._url,
        )
        return catalog


# ---------------------------------------------------------------------------
# Collaborator adapters
# ---------------------------------------------------------------------------

class _FollowUpClient:
    """Shared plumbing: base URL, follow-up id, one retry on timeout."""

    def __init__(
        self,
        base_url: str,
        follow_up_id: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._follow_up_id = follow_up_id
        self._client = client
        self._timeout = timeout

    @property
    def follow_up_id(self) -> str:
        return self._follow_up_id

    async def _post(self, action: str, json: Any) -> httpx.Response:
        """POST to ``/follow-ups/{id}/{action}``, retry once on timeout."""
        url = f"{self._base_url}/follow-ups/{self._follow_up_id}/{action}"
        if self._client is not None:
            return await self._send(self._client, url, json)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await self._send(client, url, json)

    @staticmethod
    async def _send(client: httpx.AsyncClient, url: str, json: Any) -> httpx.Response:
        try:
            return await client.post(url, json=json)
        except httpx.TimeoutException:
            return await client.post(url, json=json)


def classify_failure(status_code: int, message: str) -> VerificationFailure:
    """Map a refused verification onto the failure taxonomy.

    The server reports failures as free text; expiry and the attempt limit
    are recognised by wording, everything else is an invalid code.
    """
    text = message.lower()
    if status_code == 429 or "attempt" in text or "too many" in text:
        return VerificationFailure.RATE_LIMITED
    if "expired" in text:
        return VerificationFailure.EXPIRED
    return VerificationFailure.INVALID_CODE


class HttpVerificationService(_FollowUpClient, VerificationService):
    """Verifies a passcode against the follow-up backend."""

    async def verify(self, code: str) -> VerificationResult:
        resp = await self._post("verify-otp", {"otp": code})
        if resp.status_code >= 500:
            resp.raise_for_status()

        body = _json_or_empty(resp)
        if resp.is_success and body.get("success", True):
            return VerificationResult.success()

        message = str(body.get("error") or body.get("message") or "")
        failure = body.get("failure")
        if failure in {f.value for f in VerificationFailure}:
            kind = VerificationFailure(failure)
        else:
            kind = classify_failure(resp.status_code, message)
        logger.info(
            "Verification refused for follow-up %s: %s", self._follow_up_id, kind.value,
        )
        return VerificationResult.failed(kind, message or None)


class HttpSubmissionService(_FollowUpClient, SubmissionService):
    """Posts the humanized summary to the follow-up backend."""

    async def submit(self, summary: FollowUpSummary, consent: bool) -> SubmissionAck:
        resp = await self._post(
            "submit",
            {"summary": summary.model_dump(mode="json"), "consent": consent},
        )
        resp.raise_for_status()

        body = _json_or_empty(resp)
        data = unwrap_envelope(body)
        if not isinstance(data, dict):
            data = {}
        case_id = (
            data.get("case_id") or data.get("caseId")
            or summary.case_id or self._follow_up_id
        )
        escalated = bool(data.get("escalated", data.get("requiresExpedited", False)))
        return SubmissionAck(
            case_id=str(case_id),
            escalated=escalated,
            message=body.get("message"),
        )


def _json_or_empty(resp: httpx.Response) -> dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
