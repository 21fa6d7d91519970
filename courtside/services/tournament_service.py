"""
Tournament service — identity upsert and tournament / sport event CRUD.

All functions receive an AsyncSession parameter and are intentionally
pure async functions (no class coupling) for easy unit testing.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from courtside.errors import (
    PermissionDenied,
    SportEventNotFound,
    TournamentNotFound,
    ValidationError,
)
from courtside.models.models import SportEvent, Tournament, User, utcnow
from courtside.services import capacity_ledger
from courtside.validators import SportEventData, TournamentData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The current user as trusted from the identity service."""
    id: int
    display_name: str


# ── User ──────────────────────────────────────────────────────────────────────

async def upsert_user(
    session: AsyncSession,
    telegram_id: int,
    first_name: str,
    last_name: Optional[str],
    username: Optional[str],
) -> User:
    """Create or update a Telegram user record."""
    result = await session.execute(
        select(User).where(User.telegram_id == telegram_id)
    )
    user = result.scalar_one_or_none()
    if user is None:
        user = User(
            telegram_id=telegram_id,
            first_name=first_name,
            last_name=last_name,
            username=username,
        )
        session.add(user)
        await session.flush()
    else:
        user.first_name = first_name
        user.last_name  = last_name
        user.username   = username
    return user


async def get_user(session: AsyncSession, user_id: int) -> Optional[User]:
    return await session.get(User, user_id)


def identity_of(user: User) -> Identity:
    return Identity(id=user.id, display_name=user.display_name)


# ── Tournament ────────────────────────────────────────────────────────────────

def _validated(model, **fields):
    try:
        return model(**fields)
    except PydanticValidationError as exc:
        errors = {
            ".".join(str(p) for p in err["loc"]) or "tournament": err["msg"].removeprefix("Value error, ")
            for err in exc.errors()
        }
        raise ValidationError(
            "; ".join(errors.values()), errors=errors
        ) from exc


async def create_tournament(
    session: AsyncSession,
    organizer: Identity,
    name: str,
    registration_cutoff: datetime,
    start_at: datetime,
    end_at: datetime,
    location: Optional[str] = None,
    upi_id: Optional[str] = None,
) -> Tournament:
    data = _validated(
        TournamentData,
        name=name,
        registration_cutoff=registration_cutoff,
        start_at=start_at,
        end_at=end_at,
        location=location,
        upi_id=upi_id,
    )
    t = Tournament(organizer_id=organizer.id, **data.model_dump())
    session.add(t)
    await session.flush()
    return t


async def create_sport_event(
    session: AsyncSession,
    tournament_id: int,
    organizer: Identity,
    sport: str,
    event_name: str,
    pairing_mode: str,
    gender_category: str,
    capacity: int,
    entry_fee: float = 0,
    details: Optional[str] = None,
) -> SportEvent:
    """Add an event to a tournament. Pairing mode cannot be changed afterwards."""
    t = await get_tournament(session, tournament_id, load_relations=False)
    if t is None:
        raise TournamentNotFound()
    ensure_organizer(t, organizer)

    data = _validated(
        SportEventData,
        sport=sport,
        event_name=event_name,
        pairing_mode=pairing_mode,
        gender_category=gender_category,
        capacity=capacity,
        entry_fee=entry_fee,
        details=details,
    )
    event = SportEvent(tournament_id=tournament_id, registered_count=0, **data.model_dump())
    session.add(event)
    await session.flush()
    return event


async def get_tournament(
    session: AsyncSession,
    tournament_id: int,
    load_relations: bool = True,
) -> Optional[Tournament]:
    q = select(Tournament).where(Tournament.id == tournament_id)
    if load_relations:
        q = q.options(
            selectinload(Tournament.sport_events),
            selectinload(Tournament.organizer),
        )
    result = await session.execute(q)
    return result.scalar_one_or_none()


async def get_sport_event(session: AsyncSession, sport_event_id: int) -> Optional[SportEvent]:
    result = await session.execute(
        select(SportEvent)
        .where(SportEvent.id == sport_event_id)
        .options(selectinload(SportEvent.tournament))
    )
    return result.scalar_one_or_none()


async def require_sport_event(session: AsyncSession, sport_event_id: int) -> SportEvent:
    event = await get_sport_event(session, sport_event_id)
    if event is None:
        raise SportEventNotFound()
    return event


async def list_sport_events(session: AsyncSession, tournament_id: int) -> List[SportEvent]:
    result = await session.execute(
        select(SportEvent)
        .where(SportEvent.tournament_id == tournament_id)
        .order_by(SportEvent.id)
    )
    return list(result.scalars().all())


async def list_open_tournaments(
    session: AsyncSession,
    now: Optional[datetime] = None,
) -> List[Tournament]:
    """Tournaments whose registration cutoff has not passed yet."""
    result = await session.execute(
        select(Tournament)
        .where(Tournament.registration_cutoff >= (now or utcnow()))
        .order_by(Tournament.start_at)
    )
    return list(result.scalars().all())


async def list_organized_tournaments(session: AsyncSession, organizer: Identity) -> List[Tournament]:
    result = await session.execute(
        select(Tournament)
        .where(Tournament.organizer_id == organizer.id)
        .order_by(Tournament.created_at.desc())
    )
    return list(result.scalars().all())


def ensure_organizer(tournament: Tournament, identity: Identity) -> None:
    if tournament.organizer_id != identity.id:
        raise PermissionDenied()


async def delete_tournament(
    session: AsyncSession,
    tournament_id: int,
    organizer: Identity,
) -> None:
    """Delete a tournament; events, requests, participants and matches go with it."""
    result = await session.execute(
        select(Tournament)
        .where(Tournament.id == tournament_id)
        .options(
            selectinload(Tournament.sport_events),
            selectinload(Tournament.join_requests),
            selectinload(Tournament.participants),
            selectinload(Tournament.matches),
        )
    )
    t = result.scalar_one_or_none()
    if t is None:
        raise TournamentNotFound()
    ensure_organizer(t, organizer)
    await session.delete(t)
    await session.flush()


# ── Organizer edits ───────────────────────────────────────────────────────────

TOURNAMENT_EDITABLE = ("name", "registration_cutoff", "start_at", "end_at", "location", "upi_id")
SPORT_EVENT_EDITABLE = ("event_name", "capacity", "entry_fee", "details")


def _reject_unknown(changes: dict, editable: tuple) -> None:
    unknown = sorted(set(changes) - set(editable))
    if unknown:
        raise ValidationError(
            f"These fields cannot be changed: {', '.join(unknown)}",
            errors={name: "not editable" for name in unknown},
        )


async def update_tournament(
    session: AsyncSession,
    tournament_id: int,
    organizer: Identity,
    **changes,
) -> Tournament:
    """
    Change name, dates, venue or UPI id. The merged result is validated as a
    whole, so moving one date still has to respect the other two.
    """
    _reject_unknown(changes, TOURNAMENT_EDITABLE)
    t = await get_tournament(session, tournament_id, load_relations=False)
    if t is None:
        raise TournamentNotFound()
    ensure_organizer(t, organizer)

    merged = {name: getattr(t, name) for name in TOURNAMENT_EDITABLE}
    merged.update(changes)
    data = _validated(TournamentData, **merged)
    for name, value in data.model_dump().items():
        setattr(t, name, value)
    await session.flush()
    logger.info("Tournament %d updated by user %d: %s", t.id, organizer.id, ", ".join(sorted(changes)))
    return t


async def update_sport_event(
    session: AsyncSession,
    sport_event_id: int,
    organizer: Identity,
    **changes,
) -> SportEvent:
    """
    Change name, capacity, fee or details of an event. Sport, pairing mode and
    gender category are fixed once requests may exist against them.

    A capacity below the number of approved entries raises ``ValidationError``.
    """
    _reject_unknown(changes, SPORT_EVENT_EDITABLE)
    event = await require_sport_event(session, sport_event_id)
    ensure_organizer(event.tournament, organizer)

    merged = {
        "sport": event.sport,
        "event_name": event.event_name,
        "pairing_mode": event.pairing_mode,
        "gender_category": event.gender_category,
        "capacity": event.capacity,
        "entry_fee": event.entry_fee,
        "details": event.details,
    }
    merged.update(changes)
    data = _validated(SportEventData, **merged)

    if data.capacity != event.capacity:
        if not await capacity_ledger.set_ceiling(session, event.tournament_id, event.id, data.capacity):
            raise ValidationError(
                f"{event.registered_count} entries are already approved; "
                f"capacity cannot go below that.",
                errors={"capacity": "below approved entries"},
            )

    event.event_name = data.event_name
    event.entry_fee  = data.entry_fee
    event.details    = data.details
    await session.flush()
    logger.info("Sport event %d updated by user %d: %s", event.id, organizer.id, ", ".join(sorted(changes)))
    return event
