"""
Join request state machine.

State flow:
    pending → approved | rejected      (both terminal)

Approval discipline
-------------------
The store gives us no transaction that spans the request row, the capacity
counter and the participant record from the organizer's point of view, so:

1. ``try_increment`` is the single atomic gate for capacity.
2. The status write is conditional on ``status = 'pending'`` and runs in the
   same savepoint as the increment; if either fails the savepoint is rolled
   back and the request stays pending.
3. The participant record is written afterwards in its own savepoint. If that
   fails the request is already approved and counted, and
   ``PartialApprovalError`` tells the organizer to retry with
   ``complete_approval``.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from courtside.errors import (
    CapacityExceeded,
    DuplicateRequest,
    InvalidTransition,
    PartialApprovalError,
    PersistenceError,
    RegistrationClosed,
    RequestNotFound,
    ValidationError,
)
from courtside.models.models import (
    JoinRequest,
    ParticipantRecord,
    RequestStatus,
    utcnow,
)
from courtside.services import capacity_ledger
from courtside.services.tournament_service import Identity, ensure_organizer, require_sport_event
from courtside.validators import IndividualEntry, PairedEntry, TeamEntry

logger = logging.getLogger(__name__)

ParticipantDetails = Union[IndividualEntry, PairedEntry, TeamEntry]

TRANSITIONS = {
    RequestStatus.PENDING:  (RequestStatus.APPROVED, RequestStatus.REJECTED),
    RequestStatus.APPROVED: (),
    RequestStatus.REJECTED: (),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, ())


# ── Reads ─────────────────────────────────────────────────────────────────────

async def get_request(session: AsyncSession, request_id: int) -> Optional[JoinRequest]:
    result = await session.execute(
        select(JoinRequest)
        .where(JoinRequest.id == request_id)
        .options(
            selectinload(JoinRequest.tournament),
            selectinload(JoinRequest.sport_event),
            selectinload(JoinRequest.user),
        )
    )
    return result.scalar_one_or_none()


async def find_active_request(
    session: AsyncSession,
    user_id: int,
    sport_event_id: int,
) -> Optional[JoinRequest]:
    result = await session.execute(
        select(JoinRequest).where(
            JoinRequest.user_id == user_id,
            JoinRequest.sport_event_id == sport_event_id,
            JoinRequest.status != RequestStatus.REJECTED,
        )
    )
    return result.scalar_one_or_none()


async def list_requests(
    session: AsyncSession,
    tournament_id: int,
    status: Optional[str] = None,
) -> List[JoinRequest]:
    """Requests of one tournament, newest first, optionally filtered by status."""
    q = (
        select(JoinRequest)
        .where(JoinRequest.tournament_id == tournament_id)
        .options(selectinload(JoinRequest.sport_event))
        .order_by(JoinRequest.submitted_at.desc(), JoinRequest.id.desc())
    )
    if status:
        q = q.where(JoinRequest.status == status)
    result = await session.execute(q)
    return list(result.scalars().all())


async def list_user_requests(session: AsyncSession, user_id: int) -> List[JoinRequest]:
    result = await session.execute(
        select(JoinRequest)
        .where(JoinRequest.user_id == user_id)
        .options(
            selectinload(JoinRequest.tournament),
            selectinload(JoinRequest.sport_event),
        )
        .order_by(JoinRequest.submitted_at.desc(), JoinRequest.id.desc())
    )
    return list(result.scalars().all())


# ── Submit ────────────────────────────────────────────────────────────────────

def _request_columns(details: ParticipantDetails) -> dict:
    columns = details.model_dump(exclude={"mode"})
    if isinstance(details, TeamEntry):
        columns["roles"] = list(details.roles)
    return columns


async def submit(
    session: AsyncSession,
    identity: Identity,
    tournament_id: int,
    sport_event_id: int,
    details: ParticipantDetails,
    payment_proof_url: Optional[str] = None,
    photo_url: Optional[str] = None,
) -> JoinRequest:
    """
    Create a pending join request.

    Raises ``ValidationError``, ``RegistrationClosed``, ``CapacityExceeded``,
    ``DuplicateRequest`` or ``PersistenceError``; nothing is written on failure.
    """
    event = await require_sport_event(session, sport_event_id)
    if event.tournament_id != tournament_id:
        raise ValidationError("This event does not belong to the selected tournament.")
    if details.mode != event.pairing_mode:
        raise ValidationError(
            f"Entry details are for '{details.mode}' but the event is '{event.pairing_mode}'."
        )
    if event.requires_payment and not payment_proof_url:
        raise ValidationError(
            "Payment proof is required for this event.",
            errors={"payment_proof_url": "required"},
        )
    if isinstance(details, TeamEntry) and not photo_url:
        raise ValidationError("A player photo is required.", errors={"photo_url": "required"})
    if not event.tournament.registration_open():
        raise RegistrationClosed()

    if await capacity_ledger.is_full(session, tournament_id, sport_event_id):
        raise CapacityExceeded()
    if await find_active_request(session, identity.id, sport_event_id):
        raise DuplicateRequest()

    request = JoinRequest(
        tournament_id=tournament_id,
        sport_event_id=sport_event_id,
        user_id=identity.id,
        sport=event.sport,
        payment_proof_url=payment_proof_url,
        photo_url=photo_url,
        status=RequestStatus.PENDING,
        submitted_at=utcnow(),
        **_request_columns(details),
    )
    try:
        async with session.begin_nested():
            session.add(request)
    except IntegrityError as exc:
        # Lost a race against a concurrent submit: the partial unique index wins
        raise DuplicateRequest() from exc
    except SQLAlchemyError as exc:
        logger.error("Could not store join request for user %d: %s", identity.id, exc)
        raise PersistenceError() from exc

    logger.info(
        "Join request %d submitted: user %d → sport event %d",
        request.id, identity.id, sport_event_id,
    )
    return request


# ── Review transitions ────────────────────────────────────────────────────────

async def _load_for_review(
    session: AsyncSession,
    request_id: int,
    identity: Identity,
    target: str,
) -> JoinRequest:
    request = await get_request(session, request_id)
    if request is None:
        raise RequestNotFound()
    ensure_organizer(request.tournament, identity)
    if not can_transition(request.status, target):
        raise InvalidTransition(
            f"Request is already {request.status} and cannot be {target}."
        )
    return request


async def _conditional_status_write(
    session: AsyncSession,
    request_id: int,
    status: str,
    reviewer_notes: Optional[str],
) -> None:
    result = await session.execute(
        update(JoinRequest)
        .where(
            JoinRequest.id == request_id,
            JoinRequest.status == RequestStatus.PENDING,
        )
        .values(status=status, reviewed_at=utcnow(), reviewer_notes=reviewer_notes)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InvalidTransition()


async def approve(
    session: AsyncSession,
    request_id: int,
    identity: Identity,
    reviewer_notes: Optional[str] = None,
) -> ParticipantRecord:
    """
    pending → approved. Increments the capacity counter and creates the
    participant record.

    Raises ``CapacityExceeded`` (request stays pending), ``InvalidTransition``,
    ``PermissionDenied``, ``ValidationError`` (missing payment proof),
    ``PersistenceError`` or ``PartialApprovalError``.
    """
    request = await _load_for_review(session, request_id, identity, RequestStatus.APPROVED)
    if request.sport_event.requires_payment and not request.payment_proof_url:
        raise ValidationError("Cannot approve: the request has no payment proof.")

    try:
        async with session.begin_nested():
            if not await capacity_ledger.try_increment(
                session, request.tournament_id, request.sport_event_id
            ):
                raise CapacityExceeded(
                    "The event filled up after this request was submitted. "
                    "It cannot be approved unless the capacity is raised."
                )
            await _conditional_status_write(
                session, request_id, RequestStatus.APPROVED, reviewer_notes
            )
    except SQLAlchemyError as exc:
        logger.error("Approval of request %d failed: %s", request_id, exc)
        raise PersistenceError() from exc

    await session.refresh(request, ["status", "reviewed_at", "reviewer_notes"])
    logger.info("Join request %d approved by user %d", request_id, identity.id)

    try:
        return await _create_participant_record(session, request)
    except SQLAlchemyError as exc:
        logger.error("Participant record for request %d not created: %s", request_id, exc)
        raise PartialApprovalError(request_id) from exc


async def complete_approval(
    session: AsyncSession,
    request_id: int,
    identity: Identity,
) -> ParticipantRecord:
    """
    Finish an approval that raised ``PartialApprovalError``.
    Idempotent; never touches the capacity counter.
    """
    request = await get_request(session, request_id)
    if request is None:
        raise RequestNotFound()
    ensure_organizer(request.tournament, identity)
    if request.status != RequestStatus.APPROVED:
        raise InvalidTransition("Only approved requests can be completed.")

    existing = await session.execute(
        select(ParticipantRecord).where(ParticipantRecord.join_request_id == request_id)
    )
    record = existing.scalar_one_or_none()
    if record is not None:
        return record

    try:
        return await _create_participant_record(session, request)
    except SQLAlchemyError as exc:
        raise PartialApprovalError(request_id) from exc


async def _create_participant_record(
    session: AsyncSession,
    request: JoinRequest,
) -> ParticipantRecord:
    record = ParticipantRecord(
        tournament_id=request.tournament_id,
        sport_event_id=request.sport_event_id,
        join_request_id=request.id,
        user_id=request.user_id,
        display_name=request.entry_name,
        joined_at=utcnow(),
    )
    async with session.begin_nested():
        session.add(record)
    return record


async def reject(
    session: AsyncSession,
    request_id: int,
    identity: Identity,
    reviewer_notes: Optional[str] = None,
) -> JoinRequest:
    """pending → rejected. No counter mutation, no participant record."""
    request = await _load_for_review(session, request_id, identity, RequestStatus.REJECTED)
    try:
        async with session.begin_nested():
            await _conditional_status_write(
                session, request_id, RequestStatus.REJECTED, reviewer_notes
            )
    except SQLAlchemyError as exc:
        logger.error("Rejection of request %d failed: %s", request_id, exc)
        raise PersistenceError() from exc

    await session.refresh(request, ["status", "reviewed_at", "reviewer_notes"])
    logger.info("Join request %d rejected by user %d", request_id, identity.id)
    return request
