"""
Tests — Telegram handlers called directly with recording doubles.

Registered handlers stay plain coroutines, so they are awaited with keyword
arguments the way the dispatcher injects them. FSM state is aiogram's own
FSMContext over MemoryStorage.

Coverage:
  - review notes: organizer-only, both on the button and on the typed notes
  - join wizard: an expired draft ends the flow instead of crashing
  - organizer edits: value parsing, capacity edit through the FSM, ownership
"""
from __future__ import annotations

from datetime import datetime

import pytest
from aiogram.fsm.context import FSMContext
from aiogram.fsm.storage.base import StorageKey
from aiogram.fsm.storage.memory import MemoryStorage

from courtside.handlers import organizer, registration, review
from courtside.keyboards import EditCb, EventCb, IntakeCb, MatchCb, ReviewCb
from courtside.services import bracket, join_requests
from courtside.states import EditStates, IntakeStates, ReviewStates


class RecordingMessage:
    def __init__(self, text=None) -> None:
        self.text     = text
        self.photo    = None
        self.document = None
        self.answers  = []
        self.edits    = []

    async def answer(self, text, **kwargs) -> None:
        self.answers.append(text)

    async def edit_text(self, text, **kwargs) -> None:
        self.edits.append(text)

    async def answer_photo(self, photo, caption=None, **kwargs) -> None:
        self.answers.append(caption)


class RecordingCallback:
    def __init__(self) -> None:
        self.message = RecordingMessage()
        self.alerts  = []

    async def answer(self, text=None, show_alert=False, **kwargs) -> None:
        self.alerts.append((text, show_alert))


@pytest.fixture
def fsm() -> FSMContext:
    return FSMContext(storage=MemoryStorage(), key=StorageKey(bot_id=1, chat_id=42, user_id=42))


async def _pending_request(session, make_identity, make_tournament, make_event, individual_details):
    organizer_id = await make_identity(session, 1, "Org")
    player       = await make_identity(session, 2, "Ravi")
    stranger     = await make_identity(session, 3, "Stranger")
    t = await make_tournament(session, organizer_id)
    event = await make_event(session, t.id, organizer_id)
    req = await join_requests.submit(session, player, t.id, event.id, individual_details())
    await session.commit()
    return organizer_id, stranger, event, req


# ─────────────────────────── Review notes ─────────────────────────────────────

class TestReviewNotes:
    async def test_stranger_cannot_open_notes(
        self, async_session, make_identity, make_tournament, make_event, individual_details, fsm
    ) -> None:
        _, stranger, _, req = await _pending_request(
            async_session, make_identity, make_tournament, make_event, individual_details
        )
        callback = RecordingCallback()
        await review.cq_review_notes(
            callback=callback,
            callback_data=ReviewCb(action="notes", tid=req.tournament_id, rid=req.id),
            session=async_session,
            state=fsm,
            identity=stranger,
        )
        assert callback.alerts == [("Join request not found.", True)]
        assert callback.message.answers == []
        assert await fsm.get_state() is None

    async def test_organizer_opens_notes(
        self, async_session, make_identity, make_tournament, make_event, individual_details, fsm
    ) -> None:
        organizer_id, _, _, req = await _pending_request(
            async_session, make_identity, make_tournament, make_event, individual_details
        )
        callback = RecordingCallback()
        await review.cq_review_notes(
            callback=callback,
            callback_data=ReviewCb(action="notes", tid=req.tournament_id, rid=req.id),
            session=async_session,
            state=fsm,
            identity=organizer_id,
        )
        assert await fsm.get_state() == ReviewStates.enter_notes.state
        assert (await fsm.get_data())["rid"] == req.id

    async def test_typed_notes_of_stranger_dropped(
        self, async_session, make_identity, make_tournament, make_event, individual_details, fsm
    ) -> None:
        _, stranger, _, req = await _pending_request(
            async_session, make_identity, make_tournament, make_event, individual_details
        )
        await fsm.set_state(ReviewStates.enter_notes)
        await fsm.update_data(rid=req.id, tid=req.tournament_id, status="pending")

        message = RecordingMessage("Looks fine")
        await review.msg_review_notes(message=message, session=async_session, state=fsm, identity=stranger)

        assert message.answers == ["Join request not found."]
        assert await fsm.get_state() is None
        assert "notes" not in await fsm.get_data()


# ─────────────────────────── Expired join wizard ──────────────────────────────

class TestExpiredDraft:
    async def test_text_answer(self, async_session, make_identity, evidence_store, fsm) -> None:
        player = await make_identity(async_session)
        await fsm.set_state(IntakeStates.answer_field)
        message = RecordingMessage("Ravi Kumar")

        await registration.msg_field_text(
            message=message, session=async_session, state=fsm, identity=player, evidence_store=evidence_store,
        )
        assert message.answers == [registration.SESSION_EXPIRED]
        assert await fsm.get_state() is None

    async def test_photo_answer(self, async_session, make_identity, evidence_store, fsm) -> None:
        player = await make_identity(async_session)
        await fsm.set_state(IntakeStates.answer_field)
        message = RecordingMessage()

        await registration.msg_field_photo(
            message=message, session=async_session, state=fsm, identity=player, evidence_store=evidence_store,
        )
        assert message.answers == [registration.SESSION_EXPIRED]

    async def test_choice_and_skip_buttons(self, async_session, make_identity, evidence_store, fsm) -> None:
        player = await make_identity(async_session)
        for handler, kwargs in (
            (registration.cq_field_choice, {"callback_data": IntakeCb(action="choose", idx=0)}),
            (registration.cq_field_skip, {}),
        ):
            await fsm.set_state(IntakeStates.answer_field)
            callback = RecordingCallback()
            await handler(
                callback=callback, session=async_session, state=fsm, identity=player,
                evidence_store=evidence_store, **kwargs,
            )
            assert callback.alerts == [(registration.SESSION_EXPIRED, True)]
            assert await fsm.get_state() is None

    async def test_confirm_and_payment_proof(self, async_session, make_identity, evidence_store, storage, fsm) -> None:
        player = await make_identity(async_session)
        await fsm.set_state(IntakeStates.confirm_details)
        callback = RecordingCallback()
        await registration.cq_confirm_details(
            callback=callback, bot=None, session=async_session, state=fsm,
            identity=player, evidence_store=evidence_store,
        )
        assert callback.alerts == [(registration.SESSION_EXPIRED, True)]

        await fsm.set_state(IntakeStates.upload_proof)
        message = RecordingMessage()
        await registration.msg_payment_proof(
            message=message, bot=None, session=async_session, state=fsm,
            identity=player, evidence_store=evidence_store,
        )
        assert message.answers == [registration.SESSION_EXPIRED]
        assert storage.uploads == []


# ─────────────────────────── Organizer edits ──────────────────────────────────

class TestParseEditValue:
    def test_dates(self) -> None:
        changes = organizer.parse_edit_value("dates", "2026-11-01 18:00; 2026-11-05 09:00; 2026-11-07 20:00")
        assert changes == {
            "registration_cutoff": datetime(2026, 11, 1, 18, 0),
            "start_at": datetime(2026, 11, 5, 9, 0),
            "end_at": datetime(2026, 11, 7, 20, 0),
        }

    def test_numbers(self) -> None:
        assert organizer.parse_edit_value("capacity", " 12 ") == {"capacity": 12}
        assert organizer.parse_edit_value("entry_fee", "199,50") == {"entry_fee": 199.5}

    def test_dash_clears_optional_fields(self) -> None:
        assert organizer.parse_edit_value("location", "-") == {"location": None}
        assert organizer.parse_edit_value("upi_id", "club@okbank") == {"upi_id": "club@okbank"}

    @pytest.mark.parametrize("field, raw", [
        ("capacity", "ten"),
        ("capacity", "-3"),
        ("entry_fee", "free"),
        ("dates", "2026-11-01 18:00"),
        ("name", "   "),
    ])
    def test_bad_values(self, field, raw) -> None:
        with pytest.raises(ValueError):
            organizer.parse_edit_value(field, raw)


class TestEditHandlers:
    async def test_capacity_edit_through_fsm(
        self, async_session, make_identity, make_tournament, make_event, individual_details, fsm
    ) -> None:
        organizer_id, _, event, _ = await _pending_request(
            async_session, make_identity, make_tournament, make_event, individual_details
        )
        callback = RecordingCallback()
        await organizer.cq_edit_field(
            callback=callback,
            callback_data=EditCb(target="e", oid=event.id, field="capacity"),
            session=async_session,
            state=fsm,
            identity=organizer_id,
        )
        assert await fsm.get_state() == EditStates.enter_value.state

        message = RecordingMessage("3")
        await organizer.msg_edit_value(message=message, session=async_session, state=fsm, identity=organizer_id)

        assert event.capacity == 3
        assert message.answers[-1].startswith("✅ Saved")
        assert await fsm.get_state() is None

    async def test_stranger_cannot_start_edit(
        self, async_session, make_identity, make_tournament, make_event, individual_details, fsm
    ) -> None:
        _, stranger, event, _ = await _pending_request(
            async_session, make_identity, make_tournament, make_event, individual_details
        )
        callback = RecordingCallback()
        await organizer.cq_edit_menu(
            callback=callback,
            callback_data=EditCb(target="t", oid=event.tournament_id),
            session=async_session,
            state=fsm,
            identity=stranger,
        )
        assert callback.alerts == [("Only the tournament organizer can do this.", True)]
        assert callback.message.edits == []

    async def test_match_time_only_for_organizer(
        self, async_session, make_identity, make_tournament, make_event, individual_details, fsm
    ) -> None:
        organizer_id = await make_identity(async_session, 1, "Org")
        stranger     = await make_identity(async_session, 3, "Stranger")
        t = await make_tournament(async_session, organizer_id)
        event = await make_event(async_session, t.id, organizer_id)
        for i in range(2):
            player = await make_identity(async_session, 100 + i, f"Player{i}")
            req = await join_requests.submit(
                async_session, player, t.id, event.id, individual_details(mobile_no=f"90000000{i:02d}")
            )
            await join_requests.approve(async_session, req.id, organizer_id)
        matches = await bracket.form_round_one(async_session, event.id, organizer_id)

        callback = RecordingCallback()
        await organizer.cq_match_pick(
            callback=callback,
            callback_data=MatchCb(action="reschedule", mid=matches[0].id),
            session=async_session,
            state=fsm,
            identity=stranger,
        )
        assert callback.alerts == [("Match not found.", True)]
        assert await fsm.get_state() is None

        listing = RecordingCallback()
        await organizer.cq_event_matches(
            callback=listing,
            callback_data=EventCb(action="matches", eid=event.id),
            session=async_session,
            state=fsm,
            identity=organizer_id,
        )
        assert listing.message.edits and "round 1" in listing.message.edits[0]
