"""
Capacity ledger — approved-entry counters per (tournament, sport event).

The counter lives in ``sport_events.registered_count``. The only write path is
``try_increment``, a single conditional UPDATE, so two organizers approving
the last slot at the same time cannot both succeed. ``set_ceiling`` moves the
capacity and never below the current count.
"""
from __future__ import annotations

import logging
from typing import Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.errors import SportEventNotFound
from courtside.models.models import SportEvent

logger = logging.getLogger(__name__)


async def _counter_row(
    session: AsyncSession,
    tournament_id: int,
    sport_event_id: int,
) -> Tuple[int, int]:
    result = await session.execute(
        select(SportEvent.registered_count, SportEvent.capacity).where(
            SportEvent.id == sport_event_id,
            SportEvent.tournament_id == tournament_id,
        )
    )
    row = result.one_or_none()
    if row is None:
        raise SportEventNotFound()
    return row.registered_count, row.capacity


async def current_count(session: AsyncSession, tournament_id: int, sport_event_id: int) -> int:
    count, _ = await _counter_row(session, tournament_id, sport_event_id)
    return count


async def ceiling(session: AsyncSession, tournament_id: int, sport_event_id: int) -> int:
    _, cap = await _counter_row(session, tournament_id, sport_event_id)
    return cap


async def remaining(session: AsyncSession, tournament_id: int, sport_event_id: int) -> int:
    """Open slots left; never negative."""
    count, cap = await _counter_row(session, tournament_id, sport_event_id)
    return max(cap - count, 0)


async def is_full(session: AsyncSession, tournament_id: int, sport_event_id: int) -> bool:
    return await remaining(session, tournament_id, sport_event_id) == 0


async def try_increment(
    session: AsyncSession,
    tournament_id: int,
    sport_event_id: int,
) -> bool:
    """
    Atomic compare-and-increment.

    Increments the counter iff it is below the ceiling and returns True;
    otherwise returns False and leaves the row untouched.
    """
    result = await session.execute(
        update(SportEvent)
        .where(
            SportEvent.id == sport_event_id,
            SportEvent.tournament_id == tournament_id,
            SportEvent.registered_count < SportEvent.capacity,
        )
        .values(registered_count=SportEvent.registered_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        # Keep an already-loaded SportEvent consistent with the row
        loaded = session.identity_map.get(session.identity_key(SportEvent, sport_event_id))
        if loaded is not None:
            await session.refresh(loaded, ["registered_count"])
        return True

    # Distinguish "full" from "no such event" for the caller
    await _counter_row(session, tournament_id, sport_event_id)
    logger.info(
        "Capacity reached for sport event %d (tournament %d)",
        sport_event_id, tournament_id,
    )
    return False


async def set_ceiling(
    session: AsyncSession,
    tournament_id: int,
    sport_event_id: int,
    capacity: int,
) -> bool:
    """
    Move the ceiling to ``capacity``.

    Same conditional-UPDATE shape as ``try_increment``: refused (False) when
    more entries are already approved than the new ceiling allows, even if an
    approval lands between the caller's read and this write.
    """
    result = await session.execute(
        update(SportEvent)
        .where(
            SportEvent.id == sport_event_id,
            SportEvent.tournament_id == tournament_id,
            SportEvent.registered_count <= capacity,
        )
        .values(capacity=capacity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        loaded = session.identity_map.get(session.identity_key(SportEvent, sport_event_id))
        if loaded is not None:
            await session.refresh(loaded, ["capacity"])
        logger.info("Capacity of sport event %d set to %d", sport_event_id, capacity)
        return True

    await _counter_row(session, tournament_id, sport_event_id)
    return False
