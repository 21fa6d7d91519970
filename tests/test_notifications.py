"""
Tests — outgoing Telegram messages (services/notification_service.py).

A small recording double stands in for aiogram's Bot; only ``send_message``
is used by the service.
"""
from __future__ import annotations

from aiogram.enums import ParseMode

from courtside.services import join_requests
from courtside.services.notification_service import (
    format_bracket,
    format_request_summary,
    notify_bracket_formed,
    notify_request_approved,
    notify_request_submitted,
)
from courtside.services.bracket import form_round_one


class RecordingBot:
    def __init__(self) -> None:
        self.sent = []

    async def send_message(self, chat_id: int, text: str, parse_mode=None, **kwargs) -> None:
        self.sent.append((chat_id, text, parse_mode))


async def _request(session, make_identity, make_tournament, make_event, individual_details):
    organizer = await make_identity(session, 1, "Org")
    player    = await make_identity(session, 2, "Ravi")
    t = await make_tournament(session, organizer, name="Monsoon Cup")
    event = await make_event(session, t.id, organizer)
    req = await join_requests.submit(session, player, t.id, event.id, individual_details(affiliation="IIT Madras"))
    await session.commit()
    return organizer, await join_requests.get_request(session, req.id)


class TestRequestMessages:
    async def test_summary(
        self, async_session, make_identity, make_tournament, make_event, individual_details
    ) -> None:
        _, request = await _request(async_session, make_identity, make_tournament, make_event, individual_details)
        text = format_request_summary(request)
        assert "Ravi Kumar" in text
        assert "Badminton · Men's Singles" in text
        assert "IIT Madras" in text
        assert text.startswith("⏳")

    async def test_submitted_goes_to_organizer(
        self, async_session, make_identity, make_tournament, make_event, individual_details
    ) -> None:
        _, request = await _request(async_session, make_identity, make_tournament, make_event, individual_details)
        bot = RecordingBot()
        assert await notify_request_submitted(bot, 1, request)
        chat_id, text, parse_mode = bot.sent[0]
        assert chat_id == 1
        assert "Monsoon Cup" in text
        assert parse_mode == ParseMode.MARKDOWN

    async def test_approved_includes_notes(
        self, async_session, make_identity, make_tournament, make_event, individual_details
    ) -> None:
        organizer, request = await _request(
            async_session, make_identity, make_tournament, make_event, individual_details
        )
        await join_requests.approve(async_session, request.id, organizer, reviewer_notes="Report at 8am")
        bot = RecordingBot()
        await notify_request_approved(bot, 2, request)
        assert "Report at 8am" in bot.sent[0][1]


class TestBracketMessages:
    async def test_draw_sent_to_every_entrant(
        self, async_session, make_identity, make_tournament, make_event, individual_details
    ) -> None:
        organizer = await make_identity(async_session, 1, "Org")
        t = await make_tournament(async_session, organizer)
        event = await make_event(async_session, t.id, organizer)
        names = {}
        for i in range(3):
            player = await make_identity(async_session, 100 + i, f"Player{i}")
            req = await join_requests.submit(
                async_session, player, t.id, event.id,
                individual_details(player_name=f"Player {i}", mobile_no=f"90000000{i:02d}"),
            )
            record = await join_requests.approve(async_session, req.id, organizer)
            names[record.id] = record.display_name
        matches = await form_round_one(async_session, event.id, organizer)

        text = format_bracket(matches, names)
        assert "bye" in text
        assert "🆚" in text

        bot = RecordingBot()
        delivered = await notify_bracket_formed(bot, [100, 101, 102], matches, names, event.display_name)
        assert delivered == 3
        assert {chat_id for chat_id, _, _ in bot.sent} == {100, 101, 102}
