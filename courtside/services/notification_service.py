"""
Join request notification service.

The submitter is told when the organizer decides on their request; the
organizer is told when a new request arrives. Delivery failures (user blocked
the bot, chat not found) are logged and otherwise ignored.
"""
from __future__ import annotations

import logging
from typing import Optional

from aiogram import Bot
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest, TelegramForbiddenError

from courtside.models.models import JoinRequest, PairingMode

logger = logging.getLogger(__name__)


async def _send(bot: Bot, telegram_id: int, text: str) -> bool:
    try:
        await bot.send_message(chat_id=telegram_id, text=text, parse_mode=ParseMode.MARKDOWN)
    except (TelegramForbiddenError, TelegramBadRequest) as e:
        logger.warning("Could not notify telegram_id=%d: %s", telegram_id, e)
        return False
    return True


def format_request_summary(request: JoinRequest) -> str:
    """Multi-line Markdown summary used in notifications and the review console."""
    event = request.sport_event
    lines = [
        f"{request.status_emoji} *{request.entry_name}*",
        f"🏅 Event: {event.display_name}",
        f"📱 Mobile: `{request.mobile_no}`",
    ]
    if request.age is not None:
        lines.append(f"🎂 Age: {request.age}")
    if request.affiliation:
        lines.append(f"🏫 {request.affiliation}")
    if event.pairing_mode == PairingMode.PAIRED and request.partner_name:
        lines.append(
            f"🤝 Partner: {request.partner_name} "
            f"({request.partner_gender}, `{request.partner_mobile_no}`, {request.partner_age})"
        )
    if event.pairing_mode == PairingMode.TEAM:
        lines.append(f"📈 Experience: {request.experience_level}")
        if request.roles:
            lines.append(f"🎯 Role: {', '.join(request.roles)}")
        if request.additional_info:
            lines.append(f"📝 {request.additional_info}")
    if request.payment_proof_url:
        lines.append(f"🧾 [Payment proof]({request.payment_proof_url})")
    if request.photo_url:
        lines.append(f"🖼 [Photo]({request.photo_url})")
    if request.reviewer_notes:
        lines.append(f"💬 _{request.reviewer_notes}_")
    return "\n".join(lines)


async def notify_request_submitted(
    bot: Bot,
    organizer_telegram_id: int,
    request: JoinRequest,
) -> bool:
    text = (
        f"📥 *New join request*\n"
        f"🏆 {request.tournament.name}\n\n"
        f"{format_request_summary(request)}\n\n"
        f"Open /review to approve or reject it."
    )
    return await _send(bot, organizer_telegram_id, text)


async def notify_request_approved(
    bot: Bot,
    submitter_telegram_id: int,
    request: JoinRequest,
) -> bool:
    text = (
        f"🎉 *Your registration is approved!*\n\n"
        f"🏆 Tournament: *{request.tournament.name}*\n"
        f"🏅 Event: {request.sport_event.display_name}\n"
        f"👤 Entry: {request.entry_name}\n"
    )
    if request.reviewer_notes:
        text += f"\n💬 _{request.reviewer_notes}_\n"
    text += "\nSee you on court! 💪"
    return await _send(bot, submitter_telegram_id, text)


async def notify_request_rejected(
    bot: Bot,
    submitter_telegram_id: int,
    request: JoinRequest,
) -> bool:
    text = (
        f"😔 *Your registration was not accepted*\n\n"
        f"🏆 Tournament: *{request.tournament.name}*\n"
        f"🏅 Event: {request.sport_event.display_name}\n"
    )
    if request.reviewer_notes:
        text += f"\n💬 Reason: _{request.reviewer_notes}_\n"
    text += "\nYou can submit a new request with corrected details."
    return await _send(bot, submitter_telegram_id, text)


def format_bracket(matches: list, names: dict, title: Optional[str] = None) -> str:
    """Round-1 listing. ``names`` maps participant record id → display name."""
    lines = [f"🗂 *{title or 'Round 1'}*", ""]
    for m in matches:
        a = names.get(m.participant_a_id, "?")
        if m.is_bye:
            lines.append(f"`#{m.match_number:>2}` {a} — _bye_ ➡️")
        else:
            b = names.get(m.participant_b_id, "?")
            lines.append(f"`#{m.match_number:>2}` {a} 🆚 {b}")
    return "\n".join(lines)


async def notify_bracket_formed(
    bot: Bot,
    telegram_ids: list,
    matches: list,
    names: dict,
    event_name: str,
) -> int:
    """Send the round-1 draw to every entrant. Returns delivered count."""
    text = format_bracket(matches, names, title=f"{event_name} — Round 1 draw")
    count = 0
    for telegram_id in telegram_ids:
        if await _send(bot, telegram_id, text):
            count += 1
    return count
