"""
Integration tests — capacity counters (services/capacity_ledger.py).

Uses the in-memory `async_session`; the concurrent path is exercised in
test_join_requests.py against a file-backed database.
"""
from __future__ import annotations

import pytest

from courtside.errors import SportEventNotFound
from courtside.services import capacity_ledger


class TestCapacityLedger:
    async def _event(self, session, make_identity, make_tournament, make_event, capacity: int = 2):
        organizer = await make_identity(session, 1, "Org")
        t = await make_tournament(session, organizer)
        event = await make_event(session, t.id, organizer, capacity=capacity)
        await session.commit()
        return t, event

    async def test_fresh_event_is_empty(self, async_session, make_identity, make_tournament, make_event) -> None:
        t, event = await self._event(async_session, make_identity, make_tournament, make_event, capacity=4)
        assert await capacity_ledger.current_count(async_session, t.id, event.id) == 0
        assert await capacity_ledger.ceiling(async_session, t.id, event.id) == 4
        assert await capacity_ledger.remaining(async_session, t.id, event.id) == 4
        assert not await capacity_ledger.is_full(async_session, t.id, event.id)

    async def test_increment_until_full(self, async_session, make_identity, make_tournament, make_event) -> None:
        t, event = await self._event(async_session, make_identity, make_tournament, make_event, capacity=2)

        assert await capacity_ledger.try_increment(async_session, t.id, event.id)
        assert await capacity_ledger.try_increment(async_session, t.id, event.id)
        assert not await capacity_ledger.try_increment(async_session, t.id, event.id)

        assert await capacity_ledger.current_count(async_session, t.id, event.id) == 2
        assert await capacity_ledger.remaining(async_session, t.id, event.id) == 0
        assert await capacity_ledger.is_full(async_session, t.id, event.id)

    async def test_loaded_event_sees_new_count(self, async_session, make_identity, make_tournament, make_event) -> None:
        t, event = await self._event(async_session, make_identity, make_tournament, make_event)
        await capacity_ledger.try_increment(async_session, t.id, event.id)
        assert event.registered_count == 1

    async def test_unknown_event(self, async_session, make_identity, make_tournament, make_event) -> None:
        t, _ = await self._event(async_session, make_identity, make_tournament, make_event)
        with pytest.raises(SportEventNotFound):
            await capacity_ledger.current_count(async_session, t.id, 9999)
        with pytest.raises(SportEventNotFound):
            await capacity_ledger.try_increment(async_session, t.id, 9999)

    async def test_event_of_other_tournament_not_found(
        self, async_session, make_identity, make_tournament, make_event
    ) -> None:
        t, event = await self._event(async_session, make_identity, make_tournament, make_event)
        with pytest.raises(SportEventNotFound):
            await capacity_ledger.remaining(async_session, t.id + 1, event.id)

    async def test_ceiling_can_be_raised(self, async_session, make_identity, make_tournament, make_event) -> None:
        t, event = await self._event(async_session, make_identity, make_tournament, make_event, capacity=1)
        assert await capacity_ledger.try_increment(async_session, t.id, event.id)
        assert not await capacity_ledger.try_increment(async_session, t.id, event.id)

        assert await capacity_ledger.set_ceiling(async_session, t.id, event.id, 3)
        assert event.capacity == 3
        assert await capacity_ledger.try_increment(async_session, t.id, event.id)
        assert await capacity_ledger.remaining(async_session, t.id, event.id) == 1

    async def test_ceiling_never_below_count(self, async_session, make_identity, make_tournament, make_event) -> None:
        t, event = await self._event(async_session, make_identity, make_tournament, make_event, capacity=3)
        await capacity_ledger.try_increment(async_session, t.id, event.id)
        await capacity_ledger.try_increment(async_session, t.id, event.id)

        assert not await capacity_ledger.set_ceiling(async_session, t.id, event.id, 1)
        assert await capacity_ledger.ceiling(async_session, t.id, event.id) == 3
        assert await capacity_ledger.set_ceiling(async_session, t.id, event.id, 2)
        assert await capacity_ledger.is_full(async_session, t.id, event.id)

    async def test_ceiling_of_unknown_event(self, async_session, make_identity, make_tournament, make_event) -> None:
        t, _ = await self._event(async_session, make_identity, make_tournament, make_event)
        with pytest.raises(SportEventNotFound):
            await capacity_ledger.set_ceiling(async_session, t.id, 9999, 5)
