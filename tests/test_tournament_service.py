"""
Integration tests — users, tournaments and sport events
(services/tournament_service.py).
"""
from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from courtside.errors import (
    CapacityExceeded,
    PermissionDenied,
    SportEventNotFound,
    TournamentNotFound,
    ValidationError,
)
from courtside.models.models import (
    JoinRequest,
    Match,
    PairingMode,
    ParticipantRecord,
    SportEvent,
    Tournament,
    utcnow,
)
from courtside.services import bracket, join_requests
from courtside.services.tournament_service import (
    delete_tournament,
    get_sport_event,
    get_tournament,
    get_user,
    list_open_tournaments,
    list_organized_tournaments,
    list_sport_events,
    update_sport_event,
    update_tournament,
    upsert_user,
)


# ─────────────────────────── Users ────────────────────────────────────────────

class TestUsers:
    async def test_upsert_creates_then_updates(self, async_session) -> None:
        user = await upsert_user(async_session, 100, "Asha", "Rao", "asha")
        await async_session.commit()

        same = await upsert_user(async_session, 100, "Asha", None, "asha_r")
        await async_session.commit()

        assert same.id == user.id
        fetched = await get_user(async_session, user.id)
        assert fetched.last_name is None
        assert fetched.username == "asha_r"
        assert fetched.display_name == "Asha"

    async def test_identity_carries_display_name(self, async_session, make_identity) -> None:
        identity = await make_identity(async_session, 101, "Meera", "Iyer")
        assert identity.display_name == "Meera Iyer"


# ─────────────────────────── Tournaments ──────────────────────────────────────

class TestTournaments:
    async def test_create_and_get(self, async_session, make_identity, make_tournament) -> None:
        organizer = await make_identity(async_session)
        t = await make_tournament(async_session, organizer, name="  Monsoon Cup ", upi_id="club@okbank")
        await async_session.commit()

        fetched = await get_tournament(async_session, t.id)
        assert fetched.name == "Monsoon Cup"
        assert fetched.organizer_id == organizer.id
        assert fetched.upi_id == "club@okbank"
        assert fetched.registration_open()

    async def test_date_order_enforced(self, async_session, make_identity, make_tournament) -> None:
        organizer = await make_identity(async_session)
        now = utcnow()
        with pytest.raises(ValidationError):
            await make_tournament(
                async_session, organizer,
                registration_cutoff=now + timedelta(days=5),
                start_at=now + timedelta(days=2),
                end_at=now + timedelta(days=6),
            )

    async def test_past_cutoff_not_listed_as_open(self, async_session, make_identity, make_tournament) -> None:
        organizer = await make_identity(async_session)
        now = utcnow()
        open_t = await make_tournament(async_session, organizer, name="Open Cup")
        await make_tournament(
            async_session, organizer, name="Closed Cup",
            registration_cutoff=now - timedelta(days=1),
        )
        await async_session.commit()

        listed = await list_open_tournaments(async_session)
        assert [t.id for t in listed] == [open_t.id]
        assert len(await list_organized_tournaments(async_session, organizer)) == 2


# ─────────────────────────── Sport events ─────────────────────────────────────

class TestSportEvents:
    async def test_create_event(self, async_session, make_identity, make_tournament, make_event) -> None:
        organizer = await make_identity(async_session)
        t = await make_tournament(async_session, organizer)
        event = await make_event(async_session, t.id, organizer, entry_fee=150)
        await async_session.commit()

        fetched = await get_sport_event(async_session, event.id)
        assert fetched.registered_count == 0
        assert fetched.requires_payment
        assert fetched.tournament.id == t.id
        assert [e.id for e in await list_sport_events(async_session, t.id)] == [event.id]

    async def test_capacity_must_be_positive(self, async_session, make_identity, make_tournament, make_event) -> None:
        organizer = await make_identity(async_session)
        t = await make_tournament(async_session, organizer)
        with pytest.raises(ValidationError) as exc_info:
            await make_event(async_session, t.id, organizer, capacity=0)
        assert "capacity" in exc_info.value.errors

    async def test_only_organizer_adds_events(self, async_session, make_identity, make_tournament, make_event) -> None:
        organizer = await make_identity(async_session, 1, "Org")
        stranger  = await make_identity(async_session, 2, "Stranger")
        t = await make_tournament(async_session, organizer)
        with pytest.raises(PermissionDenied):
            await make_event(async_session, t.id, stranger)

    async def test_unknown_tournament(self, async_session, make_identity, make_event) -> None:
        organizer = await make_identity(async_session)
        with pytest.raises(TournamentNotFound):
            await make_event(async_session, 4242, organizer)


# ─────────────────────────── Organizer edits ──────────────────────────────────

class TestUpdateTournament:
    async def test_rename_and_move_dates(self, async_session, make_identity, make_tournament) -> None:
        organizer = await make_identity(async_session)
        t = await make_tournament(async_session, organizer)
        start = t.start_at + timedelta(days=1)
        end   = t.end_at + timedelta(days=2)

        updated = await update_tournament(
            async_session, t.id, organizer, name="  City Open 2  ", start_at=start, end_at=end, location=None,
        )
        await async_session.commit()

        assert updated.name == "City Open 2"
        assert updated.start_at == start
        assert updated.end_at == end
        assert updated.location is None

    async def test_dates_checked_against_stored_ones(self, async_session, make_identity, make_tournament) -> None:
        organizer = await make_identity(async_session)
        t = await make_tournament(async_session, organizer)
        original_start = t.start_at
        with pytest.raises(ValidationError):
            await update_tournament(async_session, t.id, organizer, start_at=t.registration_cutoff - timedelta(days=1))
        assert t.start_at == original_start

    async def test_bad_upi_rejected(self, async_session, make_identity, make_tournament) -> None:
        organizer = await make_identity(async_session)
        t = await make_tournament(async_session, organizer)
        with pytest.raises(ValidationError):
            await update_tournament(async_session, t.id, organizer, upi_id="not a upi id")
        assert t.upi_id is None

    async def test_owner_cannot_be_changed(self, async_session, make_identity, make_tournament) -> None:
        organizer = await make_identity(async_session, 1, "Org")
        t = await make_tournament(async_session, organizer)
        with pytest.raises(ValidationError) as exc_info:
            await update_tournament(async_session, t.id, organizer, organizer_id=2)
        assert "organizer_id" in exc_info.value.errors

    async def test_stranger_refused(self, async_session, make_identity, make_tournament) -> None:
        organizer = await make_identity(async_session, 1, "Org")
        stranger  = await make_identity(async_session, 2, "Stranger")
        t = await make_tournament(async_session, organizer)
        with pytest.raises(PermissionDenied):
            await update_tournament(async_session, t.id, stranger, name="Hijacked")
        assert t.name == "City Open"

    async def test_unknown(self, async_session, make_identity) -> None:
        organizer = await make_identity(async_session)
        with pytest.raises(TournamentNotFound):
            await update_tournament(async_session, 4242, organizer, name="Nope")


class TestUpdateSportEvent:
    async def test_raised_capacity_unblocks_pending_request(
        self, async_session, make_identity, make_tournament, make_event, individual_details
    ) -> None:
        organizer = await make_identity(async_session, 1, "Org")
        t = await make_tournament(async_session, organizer)
        event = await make_event(async_session, t.id, organizer, capacity=1)
        ids = []
        for i in range(2):
            player = await make_identity(async_session, 100 + i, f"Player{i}")
            req = await join_requests.submit(
                async_session, player, t.id, event.id, individual_details(mobile_no=f"90000000{i:02d}")
            )
            ids.append(req.id)
        await join_requests.approve(async_session, ids[0], organizer)
        with pytest.raises(CapacityExceeded):
            await join_requests.approve(async_session, ids[1], organizer)

        updated = await update_sport_event(async_session, event.id, organizer, capacity=2)
        assert updated.capacity == 2
        await join_requests.approve(async_session, ids[1], organizer)
        assert event.registered_count == 2

    async def test_capacity_not_below_approved(
        self, async_session, make_identity, make_tournament, make_event, individual_details
    ) -> None:
        organizer = await make_identity(async_session, 1, "Org")
        t = await make_tournament(async_session, organizer)
        event = await make_event(async_session, t.id, organizer, capacity=4)
        for i in range(2):
            player = await make_identity(async_session, 100 + i, f"Player{i}")
            req = await join_requests.submit(
                async_session, player, t.id, event.id, individual_details(mobile_no=f"90000000{i:02d}")
            )
            await join_requests.approve(async_session, req.id, organizer)

        with pytest.raises(ValidationError) as exc_info:
            await update_sport_event(async_session, event.id, organizer, capacity=1, entry_fee=50)
        assert "capacity" in exc_info.value.errors
        assert event.capacity == 4
        assert event.entry_fee == 0

        await update_sport_event(async_session, event.id, organizer, capacity=2)
        assert event.capacity == 2
        assert event.registered_count == 2

    async def test_fee_name_and_details(self, async_session, make_identity, make_tournament, make_event) -> None:
        organizer = await make_identity(async_session)
        t = await make_tournament(async_session, organizer)
        event = await make_event(async_session, t.id, organizer)

        await update_sport_event(
            async_session, event.id, organizer, entry_fee=250, event_name=" Open Singles ", details="Shuttles provided",
        )
        await async_session.commit()

        fetched = await get_sport_event(async_session, event.id)
        assert fetched.entry_fee == 250
        assert fetched.requires_payment
        assert fetched.event_name == "Open Singles"
        assert fetched.details == "Shuttles provided"

    async def test_negative_fee_rejected(self, async_session, make_identity, make_tournament, make_event) -> None:
        organizer = await make_identity(async_session)
        t = await make_tournament(async_session, organizer)
        event = await make_event(async_session, t.id, organizer)
        with pytest.raises(ValidationError):
            await update_sport_event(async_session, event.id, organizer, entry_fee=-1)

    async def test_pairing_mode_fixed(self, async_session, make_identity, make_tournament, make_event) -> None:
        organizer = await make_identity(async_session)
        t = await make_tournament(async_session, organizer)
        event = await make_event(async_session, t.id, organizer)
        with pytest.raises(ValidationError) as exc_info:
            await update_sport_event(async_session, event.id, organizer, pairing_mode=PairingMode.TEAM)
        assert "pairing_mode" in exc_info.value.errors
        assert event.pairing_mode == PairingMode.INDIVIDUAL

    async def test_stranger_refused(self, async_session, make_identity, make_tournament, make_event) -> None:
        organizer = await make_identity(async_session, 1, "Org")
        stranger  = await make_identity(async_session, 2, "Stranger")
        t = await make_tournament(async_session, organizer)
        event = await make_event(async_session, t.id, organizer)
        with pytest.raises(PermissionDenied):
            await update_sport_event(async_session, event.id, stranger, capacity=100)
        assert event.capacity == 8

    async def test_unknown_event(self, async_session, make_identity) -> None:
        organizer = await make_identity(async_session)
        with pytest.raises(SportEventNotFound):
            await update_sport_event(async_session, 9999, organizer, capacity=3)


# ─────────────────────────── Delete ───────────────────────────────────────────

class TestDeleteTournament:
    async def test_cascade(
        self, async_session, make_identity, make_tournament, make_event, individual_details
    ) -> None:
        organizer = await make_identity(async_session, 1, "Org")
        t = await make_tournament(async_session, organizer)
        event = await make_event(async_session, t.id, organizer, pairing_mode=PairingMode.INDIVIDUAL)
        for i in range(3):
            player = await make_identity(async_session, 100 + i, f"Player{i}")
            req = await join_requests.submit(
                async_session, player, t.id, event.id,
                individual_details(mobile_no=f"98765432{i:02d}"),
            )
            await join_requests.approve(async_session, req.id, organizer)
        await bracket.form_round_one(async_session, event.id, organizer)
        await async_session.commit()

        await delete_tournament(async_session, t.id, organizer)
        await async_session.commit()

        for model in (Tournament, SportEvent, JoinRequest, ParticipantRecord, Match):
            count = await async_session.scalar(select(func.count()).select_from(model))
            assert count == 0, model.__name__

    async def test_stranger_cannot_delete(self, async_session, make_identity, make_tournament) -> None:
        organizer = await make_identity(async_session, 1, "Org")
        stranger  = await make_identity(async_session, 2, "Stranger")
        t = await make_tournament(async_session, organizer)
        with pytest.raises(PermissionDenied):
            await delete_tournament(async_session, t.id, stranger)

    async def test_delete_unknown(self, async_session, make_identity) -> None:
        organizer = await make_identity(async_session)
        with pytest.raises(TournamentNotFound):
            await delete_tournament(async_session, 777, organizer)
