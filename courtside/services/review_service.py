"""
Request review console — the organizer's side of the join request lifecycle.

Dispatches approve / reject / complete to the state machine, turns domain
errors into a message for the organizer and re-reads the request list so the
counts shown next to the filter buttons stay accurate.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from courtside.errors import (
    CourtsideError,
    PartialApprovalError,
    PermissionDenied,
    TournamentNotFound,
    ValidationError,
)
from courtside.models.models import JoinRequest, ParticipantRecord, RequestStatus
from courtside.services import join_requests
from courtside.services.tournament_service import Identity, ensure_organizer, get_tournament

logger = logging.getLogger(__name__)


class ReviewAction:
    APPROVE  = "approve"
    REJECT   = "reject"
    COMPLETE = "complete"

    ALL = (APPROVE, REJECT, COMPLETE)


@dataclass
class ReviewOutcome:
    ok: bool
    message: str
    request: Optional[JoinRequest] = None
    participant: Optional[ParticipantRecord] = None
    requests: List[JoinRequest] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)
    # Set when the approval went through but the participant record is missing
    retry_request_id: Optional[int] = None


async def list_for_review(
    session: AsyncSession,
    tournament_id: int,
    identity: Identity,
    status: Optional[str] = RequestStatus.PENDING,
) -> List[JoinRequest]:
    """Requests of a tournament the caller organizes, filtered by status (None = all)."""
    t = await get_tournament(session, tournament_id, load_relations=False)
    if t is None:
        raise TournamentNotFound()
    ensure_organizer(t, identity)
    if status is not None and status not in RequestStatus.ALL:
        raise ValidationError(f"Unknown status filter: {status}")
    return await join_requests.list_requests(session, tournament_id, status=status)


async def status_counts(session: AsyncSession, tournament_id: int) -> Dict[str, int]:
    all_requests = await join_requests.list_requests(session, tournament_id)
    counts = Counter(r.status for r in all_requests)
    return {s: counts.get(s, 0) for s in RequestStatus.ALL}


async def review(
    session: AsyncSession,
    request_id: int,
    identity: Identity,
    action: str,
    notes: Optional[str] = None,
    status_filter: Optional[str] = RequestStatus.PENDING,
) -> ReviewOutcome:
    """
    Apply ``action`` to one request and return what the console should show.
    Domain errors never escape; they become ``ok=False`` outcomes.
    """
    if action not in ReviewAction.ALL:
        return ReviewOutcome(ok=False, message=f"Unknown action: {action}")

    request = await join_requests.get_request(session, request_id)
    if request is None:
        return ReviewOutcome(ok=False, message="Join request not found.")
    tournament_id = request.tournament_id
    tournament = await get_tournament(session, tournament_id, load_relations=False)
    try:
        ensure_organizer(tournament, identity)
    except PermissionDenied as exc:
        logger.warning("User %d tried to %s request %d of tournament %d", identity.id, action, request_id, tournament_id)
        return ReviewOutcome(ok=False, message=f"⚠️ {exc.message}")
    notes = (notes or "").strip() or None

    outcome: ReviewOutcome
    try:
        if action == ReviewAction.APPROVE:
            record = await join_requests.approve(session, request_id, identity, reviewer_notes=notes)
            outcome = ReviewOutcome(
                ok=True,
                message=f"✅ Approved *{record.display_name}*.",
                request=request,
                participant=record,
            )
        elif action == ReviewAction.REJECT:
            rejected = await join_requests.reject(session, request_id, identity, reviewer_notes=notes)
            outcome = ReviewOutcome(
                ok=True,
                message=f"❌ Rejected *{rejected.entry_name}*.",
                request=rejected,
            )
        else:
            record = await join_requests.complete_approval(session, request_id, identity)
            outcome = ReviewOutcome(
                ok=True,
                message=f"✅ Approval of *{record.display_name}* completed.",
                request=request,
                participant=record,
            )
    except PartialApprovalError as exc:
        outcome = ReviewOutcome(
            ok=False,
            message=f"⚠️ {exc.message}",
            request=request,
            retry_request_id=exc.request_id,
        )
    except CourtsideError as exc:
        logger.info("Review %s of request %d refused: %s", action, request_id, exc.message)
        outcome = ReviewOutcome(ok=False, message=f"⚠️ {exc.message}", request=request)

    outcome.requests = await join_requests.list_requests(
        session, tournament_id, status=status_filter
    )
    outcome.counts = await status_counts(session, tournament_id)
    return outcome
