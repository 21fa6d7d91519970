"""
Bracket formation — round 1 of a single-elimination draw.

Approved entries are shuffled uniformly and paired off in order:
(e1, e2), (e3, e4) … An odd entry out gets a bye: a match with one occupant,
completed on creation with that occupant as winner.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from courtside.errors import (
    BracketAlreadyFormed,
    InsufficientEntries,
    MatchNotFound,
    PersistenceError,
    ValidationError,
)
from courtside.models.models import Match, MatchStatus, ParticipantRecord, User
from courtside.services.tournament_service import Identity, ensure_organizer, require_sport_event

logger = logging.getLogger(__name__)

ROUND_ONE = 1


@dataclass
class Pairing:
    match_number: int
    entry_a: ParticipantRecord
    entry_b: Optional[ParticipantRecord]

    @property
    def is_bye(self) -> bool:
        return self.entry_b is None


def pair_entries(
    entries: Sequence[ParticipantRecord],
    rng: Optional[random.Random] = None,
) -> List[Pairing]:
    """Shuffle a copy of ``entries`` and pair consecutive elements."""
    rng = rng or random.SystemRandom()
    pool = list(entries)
    rng.shuffle(pool)

    pairings = []
    for i in range(0, len(pool), 2):
        entry_b = pool[i + 1] if i + 1 < len(pool) else None
        pairings.append(Pairing(match_number=i // 2 + 1, entry_a=pool[i], entry_b=entry_b))
    return pairings


async def approved_entries(session: AsyncSession, sport_event_id: int) -> List[ParticipantRecord]:
    result = await session.execute(
        select(ParticipantRecord)
        .where(ParticipantRecord.sport_event_id == sport_event_id)
        .order_by(ParticipantRecord.id)
    )
    return list(result.scalars().all())


async def entrant_telegram_ids(session: AsyncSession, sport_event_id: int) -> List[int]:
    result = await session.execute(
        select(User.telegram_id)
        .join(ParticipantRecord, ParticipantRecord.user_id == User.id)
        .where(ParticipantRecord.sport_event_id == sport_event_id)
    )
    return list(result.scalars().all())


async def list_matches(
    session: AsyncSession,
    sport_event_id: int,
    round_number: int = ROUND_ONE,
) -> List[Match]:
    result = await session.execute(
        select(Match)
        .where(Match.sport_event_id == sport_event_id, Match.round_number == round_number)
        .order_by(Match.match_number)
    )
    return list(result.scalars().all())


async def _round_exists(session: AsyncSession, sport_event_id: int) -> bool:
    count = await session.scalar(
        select(func.count(Match.id)).where(
            Match.sport_event_id == sport_event_id,
            Match.round_number == ROUND_ONE,
        )
    )
    return bool(count)


async def form_round_one(
    session: AsyncSession,
    sport_event_id: int,
    identity: Identity,
    rng: Optional[random.Random] = None,
    scheduled_at: Optional[datetime] = None,
) -> List[Match]:
    """
    Create the round-1 matches of one sport event.

    Raises ``PermissionDenied``, ``BracketAlreadyFormed``,
    ``InsufficientEntries`` or ``PersistenceError``. Either every match is
    written or none is.
    """
    event = await require_sport_event(session, sport_event_id)
    ensure_organizer(event.tournament, identity)

    if await _round_exists(session, sport_event_id):
        raise BracketAlreadyFormed()

    entries = await approved_entries(session, sport_event_id)
    if len(entries) < 2:
        raise InsufficientEntries()

    matches = []
    for pairing in pair_entries(entries, rng):
        match = Match(
            tournament_id=event.tournament_id,
            sport_event_id=sport_event_id,
            round_number=ROUND_ONE,
            match_number=pairing.match_number,
            participant_a_id=pairing.entry_a.id,
            participant_b_id=pairing.entry_b.id if pairing.entry_b else None,
            scheduled_at=scheduled_at,
            status=MatchStatus.PENDING,
        )
        if pairing.is_bye:
            match.status    = MatchStatus.COMPLETED
            match.winner_id = pairing.entry_a.id
        matches.append(match)

    try:
        async with session.begin_nested():
            session.add_all(matches)
    except IntegrityError as exc:
        # A concurrent run already wrote match numbers for this round
        raise BracketAlreadyFormed() from exc
    except SQLAlchemyError as exc:
        logger.error("Bracket for sport event %d not written: %s", sport_event_id, exc)
        raise PersistenceError() from exc

    byes = sum(1 for m in matches if m.is_bye)
    logger.info(
        "Round 1 formed for sport event %d: %d matches (%d bye)",
        sport_event_id, len(matches), byes,
    )
    return matches


async def get_match(session: AsyncSession, match_id: int) -> Optional[Match]:
    result = await session.execute(
        select(Match).where(Match.id == match_id).options(selectinload(Match.tournament))
    )
    return result.scalar_one_or_none()


async def reschedule_match(
    session: AsyncSession,
    match_id: int,
    identity: Identity,
    scheduled_at: Optional[datetime],
) -> Match:
    """Set or clear the start time of a match that is still to be played."""
    match = await get_match(session, match_id)
    if match is None:
        raise MatchNotFound()
    ensure_organizer(match.tournament, identity)
    if match.status != MatchStatus.PENDING:
        raise ValidationError("Only matches still to be played can be rescheduled.")

    match.scheduled_at = scheduled_at
    await session.flush()
    logger.info("Match %d rescheduled to %s by user %d", match.id, scheduled_at, identity.id)
    return match
