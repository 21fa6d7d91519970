"""
Organizer console: tournament setup and edits, sport events, payment QR upload,
round-1 bracket formation and match times, delete.

Every action re-checks ownership through the service layer; buttons of a
tournament someone else organizes answer with PermissionDenied.
"""
import logging
from datetime import datetime

from aiogram import Bot, F, Router
from aiogram.enums import ParseMode
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.config import settings
from courtside.errors import CourtsideError, TournamentNotFound, ValidationError
from courtside.keyboards import (
    EditCb, EventCb, MainMenuCb, MatchCb, SetupCb, TournamentCb,
    back_to_main, back_to_tournament_kb, bracket_confirm_kb, confirm_action_kb,
    edit_fields_kb, event_created_kb, match_list_kb,
    gender_category_kb, organizer_tournaments_kb, pairing_mode_kb, skip_kb,
    sport_choice_kb, tournament_detail_kb,
)
from courtside.models.models import PairingMode, Sports
from courtside.services import (
    EvidenceStore, Identity,
    create_sport_event, create_tournament, delete_tournament,
    ensure_organizer, form_round_one, format_bracket, get_match, get_tournament,
    list_matches, list_organized_tournaments, notify_bracket_formed,
    require_sport_event, reschedule_match, update_sport_event, update_tournament,
)
from courtside.services.bracket import approved_entries, entrant_telegram_ids
from courtside.states import (
    EditStates, MatchScheduleStates, QrUploadStates, SportEventSetupStates, TournamentSetupStates,
)

logger = logging.getLogger(__name__)
router = Router(name="organizer")

DATE_FORMAT = "%Y-%m-%d %H:%M"


def _parse_dates(raw: str) -> tuple:
    parts = [p.strip() for p in raw.split(";")]
    if len(parts) != 3:
        raise ValueError
    return tuple(datetime.strptime(p, DATE_FORMAT) for p in parts)


async def _show_tournament(callback: CallbackQuery, session: AsyncSession, tid: int, identity: Identity) -> None:
    t = await get_tournament(session, tid)
    if t is None:
        await callback.answer("Tournament not found.", show_alert=True)
        return
    try:
        ensure_organizer(t, identity)
    except CourtsideError as exc:
        await callback.answer(exc.message, show_alert=True)
        return

    lines = [
        f"🏆 *{t.name}*\n",
        f"📅 {t.start_at:%d %b %Y} → {t.end_at:%d %b %Y}",
        f"⏰ Registration until {t.registration_cutoff:%d %b %H:%M}",
    ]
    if t.location:
        lines.append(f"📍 {t.location}")
    if t.upi_id:
        lines.append(f"💳 UPI: `{t.upi_id}`")
    lines.append("")
    if not t.sport_events:
        lines.append("_No events yet. Add one below._")
    for e in t.sport_events:
        fee = f" · ₹{e.entry_fee:g}" if e.requires_payment else ""
        lines.append(
            f"🏅 {e.display_name} ({PairingMode.LABELS[e.pairing_mode]}, {e.gender_category})"
            f" — `{e.registered_count}/{e.capacity}`{fee}"
        )
    await callback.message.edit_text(
        "\n".join(lines),
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=tournament_detail_kb(t),
    )
    await callback.answer()


# ── Tournament list ───────────────────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "organize"))
async def cq_organizer_home(
    callback: CallbackQuery,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    await state.clear()
    tournaments = await list_organized_tournaments(session, identity)
    await callback.message.edit_text(
        f"🎯 *Your tournaments*\n\nTotal: `{len(tournaments)}`",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=organizer_tournaments_kb(tournaments),
    )
    await callback.answer()


@router.callback_query(TournamentCb.filter(F.action == "view"))
async def cq_tournament_view(
    callback: CallbackQuery,
    callback_data: TournamentCb,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    await state.clear()
    await _show_tournament(callback, session, callback_data.tid, identity)


# ── Create tournament (FSM) ───────────────────────────────────────────────────

@router.callback_query(TournamentCb.filter(F.action == "create"))
async def cq_create_tournament_start(callback: CallbackQuery, state: FSMContext) -> None:
    await state.set_state(TournamentSetupStates.enter_name)
    await callback.message.edit_text(
        "➕ *New tournament*\n\nEnter the tournament *name*:",
        parse_mode=ParseMode.MARKDOWN,
    )
    await callback.answer()


@router.message(TournamentSetupStates.enter_name)
async def msg_tournament_name(message: Message, state: FSMContext) -> None:
    name = message.text.strip() if message.text else ""
    if len(name) < 3:
        await message.answer("⚠️ The name must be at least 3 characters.")
        return
    await state.update_data(name=name)
    await state.set_state(TournamentSetupStates.enter_dates)
    await message.answer(
        f"🏷 *{name}*\n\n"
        f"Send *registration cutoff; start; end* in one message, e.g.\n"
        f"`2026-11-01 18:00; 2026-11-05 09:00; 2026-11-07 20:00`",
        parse_mode=ParseMode.MARKDOWN,
    )


@router.message(TournamentSetupStates.enter_dates)
async def msg_tournament_dates(message: Message, state: FSMContext) -> None:
    try:
        cutoff, start, end = _parse_dates(message.text or "")
    except ValueError:
        await message.answer(
            f"⚠️ Use the format `{DATE_FORMAT}` three times, separated by `;`.",
            parse_mode=ParseMode.MARKDOWN,
        )
        return
    if not (cutoff <= start <= end):
        await message.answer("⚠️ Dates must satisfy cutoff ≤ start ≤ end.", parse_mode=None)
        return
    await state.update_data(
        registration_cutoff=cutoff.isoformat(),
        start_at=start.isoformat(),
        end_at=end.isoformat(),
    )
    await state.set_state(TournamentSetupStates.enter_location)
    await message.answer("📍 Enter the *venue*:", parse_mode=ParseMode.MARKDOWN, reply_markup=skip_kb())


async def _ask_upi(message: Message, state: FSMContext) -> None:
    await state.set_state(TournamentSetupStates.enter_upi)
    await message.answer(
        "💳 Enter your *UPI id* (e.g. `club@okbank`) so players get a payment QR:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=skip_kb(),
    )


@router.message(TournamentSetupStates.enter_location)
async def msg_tournament_location(message: Message, state: FSMContext) -> None:
    await state.update_data(location=(message.text or "").strip() or None)
    await _ask_upi(message, state)


@router.callback_query(SetupCb.filter(F.action == "skip"), TournamentSetupStates.enter_location)
async def cq_skip_location(callback: CallbackQuery, state: FSMContext) -> None:
    await state.update_data(location=None)
    await _ask_upi(callback.message, state)
    await callback.answer()


async def _save_tournament(
    message: Message,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
    upi_id,
) -> None:
    data = await state.get_data()
    try:
        t = await create_tournament(
            session,
            identity,
            name=data["name"],
            registration_cutoff=datetime.fromisoformat(data["registration_cutoff"]),
            start_at=datetime.fromisoformat(data["start_at"]),
            end_at=datetime.fromisoformat(data["end_at"]),
            location=data.get("location"),
            upi_id=upi_id,
        )
    except ValidationError as exc:
        await message.answer(f"⚠️ {exc.message}", parse_mode=None)
        return

    await state.clear()
    logger.info("Tournament %d created by user %d", t.id, identity.id)
    await message.answer(
        f"✅ Tournament *{t.name}* created.\n\nNow add its events.",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=event_created_kb(t.id),
    )


@router.message(TournamentSetupStates.enter_upi)
async def msg_tournament_upi(
    message: Message,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    await _save_tournament(message, session, state, identity, (message.text or "").strip() or None)


@router.callback_query(SetupCb.filter(F.action == "skip"), TournamentSetupStates.enter_upi)
async def cq_skip_upi(
    callback: CallbackQuery,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    await _save_tournament(callback.message, session, state, identity, None)
    await callback.answer()


# ── Add sport event (FSM) ─────────────────────────────────────────────────────

@router.callback_query(TournamentCb.filter(F.action == "add_event"))
async def cq_add_event_start(
    callback: CallbackQuery,
    callback_data: TournamentCb,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    t = await get_tournament(session, callback_data.tid, load_relations=False)
    if t is None or t.organizer_id != identity.id:
        await callback.answer("Only the tournament organizer can do this.", show_alert=True)
        return
    await state.set_state(SportEventSetupStates.choose_sport)
    await state.update_data(tournament_id=t.id)
    await callback.message.edit_text(
        f"➕ *New event for {t.name}*\n\nChoose the *sport*:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=sport_choice_kb(),
    )
    await callback.answer()


@router.callback_query(SetupCb.filter(F.action == "sport"), SportEventSetupStates.choose_sport)
async def cq_event_sport(callback: CallbackQuery, callback_data: SetupCb, state: FSMContext) -> None:
    await state.update_data(sport=callback_data.value)
    await state.set_state(SportEventSetupStates.enter_event_name)
    await callback.message.edit_text(
        f"🏅 *{callback_data.value}*\n\nEnter the *event name* (e.g. _Men's Singles_):",
        parse_mode=ParseMode.MARKDOWN,
    )
    await callback.answer()


@router.message(SportEventSetupStates.enter_event_name)
async def msg_event_name(message: Message, state: FSMContext) -> None:
    name = (message.text or "").strip()
    if not name:
        await message.answer("⚠️ Enter a name for the event.")
        return
    data = await state.get_data()
    await state.update_data(event_name=name)

    if data["sport"] in Sports.AUCTION:
        # Auction sports always register individual players for team assembly
        await state.update_data(pairing_mode=PairingMode.TEAM)
        await state.set_state(SportEventSetupStates.choose_gender)
        await message.answer("🚻 Choose the *gender category*:", parse_mode=ParseMode.MARKDOWN,
                             reply_markup=gender_category_kb())
        return

    await state.set_state(SportEventSetupStates.choose_mode)
    await message.answer(
        "👥 Choose the *entry type*:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=pairing_mode_kb(),
    )


@router.callback_query(SetupCb.filter(F.action == "mode"), SportEventSetupStates.choose_mode)
async def cq_event_mode(callback: CallbackQuery, callback_data: SetupCb, state: FSMContext) -> None:
    await state.update_data(pairing_mode=callback_data.value)
    await state.set_state(SportEventSetupStates.choose_gender)
    await callback.message.edit_text(
        "🚻 Choose the *gender category*:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=gender_category_kb(),
    )
    await callback.answer()


@router.callback_query(SetupCb.filter(F.action == "gender"), SportEventSetupStates.choose_gender)
async def cq_event_gender(callback: CallbackQuery, callback_data: SetupCb, state: FSMContext) -> None:
    await state.update_data(gender_category=callback_data.value)
    await state.set_state(SportEventSetupStates.enter_capacity)
    await callback.message.edit_text(
        "🔢 Enter the *maximum number of entries*:",
        parse_mode=ParseMode.MARKDOWN,
    )
    await callback.answer()


@router.message(SportEventSetupStates.enter_capacity)
async def msg_event_capacity(message: Message, state: FSMContext) -> None:
    raw = (message.text or "").strip()
    if not raw.isdigit() or int(raw) <= 0:
        await message.answer("⚠️ Capacity must be a positive whole number.")
        return
    await state.update_data(capacity=int(raw))
    await state.set_state(SportEventSetupStates.enter_fee)
    await message.answer(
        "💳 Enter the *entry fee* in ₹ (`0` for free):",
        parse_mode=ParseMode.MARKDOWN,
    )


@router.message(SportEventSetupStates.enter_fee)
async def msg_event_fee(
    message: Message,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    raw = (message.text or "").strip().replace(",", ".")
    try:
        fee = float(raw)
    except ValueError:
        await message.answer("⚠️ Enter a number, e.g. `250`.", parse_mode=ParseMode.MARKDOWN)
        return

    data = await state.get_data()
    try:
        event = await create_sport_event(
            session,
            data["tournament_id"],
            identity,
            sport=data["sport"],
            event_name=data["event_name"],
            pairing_mode=data["pairing_mode"],
            gender_category=data["gender_category"],
            capacity=data["capacity"],
            entry_fee=fee,
        )
    except CourtsideError as exc:
        await message.answer(f"⚠️ {exc.message}", parse_mode=None)
        return

    await state.clear()
    await message.answer(
        f"✅ *{event.display_name}* added — {PairingMode.LABELS[event.pairing_mode]}, "
        f"{event.capacity} entries.",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=event_created_kb(event.tournament_id),
    )


# ── Payment QR upload ─────────────────────────────────────────────────────────

@router.callback_query(TournamentCb.filter(F.action == "qr"))
async def cq_qr_upload_start(
    callback: CallbackQuery,
    callback_data: TournamentCb,
    state: FSMContext,
) -> None:
    await state.set_state(QrUploadStates.send_photo)
    await state.update_data(tournament_id=callback_data.tid)
    await callback.message.edit_text(
        "📷 Send your *payment QR code* as a photo.\n"
        "_Players of all your tournaments will see the latest one you upload._",
        parse_mode=ParseMode.MARKDOWN,
    )
    await callback.answer()


@router.message(QrUploadStates.send_photo, F.photo)
async def msg_qr_photo(
    message: Message,
    bot: Bot,
    state: FSMContext,
    identity: Identity,
    evidence_store: EvidenceStore,
) -> None:
    buf = await bot.download(message.photo[-1].file_id)
    try:
        await evidence_store.upload(
            buf.read(), "qr.jpg", identity.id,
            bucket=settings.QR_CODE_BUCKET,
            content_type="image/jpeg",
        )
    except CourtsideError as exc:
        await message.answer(f"⚠️ {exc.message}", parse_mode=None)
        return
    await state.clear()
    await message.answer("✅ Payment QR saved.", reply_markup=back_to_main())


@router.message(QrUploadStates.send_photo)
async def msg_qr_hint(message: Message) -> None:
    await message.answer("📷 Please send the QR code as a photo.")


# ── Bracket ───────────────────────────────────────────────────────────────────

@router.callback_query(EventCb.filter(F.action == "bracket"))
async def cq_bracket_ask(
    callback: CallbackQuery,
    callback_data: EventCb,
    session: AsyncSession,
    identity: Identity,
) -> None:
    try:
        event = await require_sport_event(session, callback_data.eid)
        ensure_organizer(event.tournament, identity)
    except CourtsideError as exc:
        await callback.answer(exc.message, show_alert=True)
        return
    entries = await approved_entries(session, event.id)
    await callback.message.edit_text(
        f"🗂 *Draw round 1 for {event.display_name}?*\n\n"
        f"👥 Approved entries: `{len(entries)}`\n"
        f"_The draw is random and cannot be redone._",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=bracket_confirm_kb(event),
    )
    await callback.answer()


@router.callback_query(EventCb.filter(F.action == "bracket_confirm"))
async def cq_bracket_confirm(
    callback: CallbackQuery,
    callback_data: EventCb,
    bot: Bot,
    session: AsyncSession,
    identity: Identity,
) -> None:
    try:
        matches = await form_round_one(session, callback_data.eid, identity)
    except CourtsideError as exc:
        await callback.answer(exc.message, show_alert=True)
        return

    event   = await require_sport_event(session, callback_data.eid)
    entries = await approved_entries(session, event.id)
    names   = {e.id: e.display_name for e in entries}
    await callback.message.edit_text(
        format_bracket(matches, names, title=f"{event.display_name} — Round 1"),
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=back_to_main(),
    )
    await callback.answer("✅ Bracket formed")

    telegram_ids = await entrant_telegram_ids(session, event.id)
    await notify_bracket_formed(bot, telegram_ids, matches, names, event.display_name)


# ── Edit tournament / event (FSM) ─────────────────────────────────────────────

EDIT_PROMPTS = {
    "name":       "Send the new *tournament name*:",
    "dates":      "Send *registration cutoff; start; end*, e.g.\n`2026-11-01 18:00; 2026-11-05 09:00; 2026-11-07 20:00`",
    "location":   "Send the new *venue* (`-` to clear):",
    "upi_id":     "Send the new *UPI id* (`-` to clear):",
    "event_name": "Send the new *event name*:",
    "capacity":   "Send the new *maximum number of entries*:",
    "entry_fee":  "Send the new *entry fee* in ₹ (`0` for free):",
    "details":    "Send the new *details* (`-` to clear):",
}


def parse_edit_value(field: str, raw: str) -> dict:
    """Organizer's text → keyword changes for the update call. Raises ValueError."""
    raw = raw.strip()
    if field == "dates":
        cutoff, start, end = _parse_dates(raw)
        return {"registration_cutoff": cutoff, "start_at": start, "end_at": end}
    if field == "capacity":
        if not raw.isdigit():
            raise ValueError(raw)
        return {"capacity": int(raw)}
    if field == "entry_fee":
        return {"entry_fee": float(raw.replace(",", "."))}
    if field in ("location", "upi_id", "details"):
        return {field: None if raw in ("", "-") else raw}
    if not raw:
        raise ValueError(raw)
    return {field: raw}


async def _owned_tournament_id(session: AsyncSession, target: str, oid: int, identity: Identity) -> int:
    """Tournament id behind an edit target; raises if the caller does not organize it."""
    if target == "t":
        t = await get_tournament(session, oid, load_relations=False)
        if t is None:
            raise TournamentNotFound()
        ensure_organizer(t, identity)
        return t.id
    event = await require_sport_event(session, oid)
    ensure_organizer(event.tournament, identity)
    return event.tournament_id


@router.callback_query(EditCb.filter(F.field == ""))
async def cq_edit_menu(
    callback: CallbackQuery,
    callback_data: EditCb,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    await state.clear()
    try:
        tid = await _owned_tournament_id(session, callback_data.target, callback_data.oid, identity)
    except CourtsideError as exc:
        await callback.answer(exc.message, show_alert=True)
        return
    what = "tournament" if callback_data.target == "t" else "event"
    await callback.message.edit_text(
        f"✏️ *Edit {what}*\n\nWhat do you want to change?",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=edit_fields_kb(callback_data.target, callback_data.oid, tid),
    )
    await callback.answer()


@router.callback_query(EditCb.filter(F.field != ""))
async def cq_edit_field(
    callback: CallbackQuery,
    callback_data: EditCb,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    if callback_data.field not in EDIT_PROMPTS:
        await callback.answer("⚠️ This button is outdated.", show_alert=True)
        return
    try:
        tid = await _owned_tournament_id(session, callback_data.target, callback_data.oid, identity)
    except CourtsideError as exc:
        await callback.answer(exc.message, show_alert=True)
        return
    await state.set_state(EditStates.enter_value)
    await state.update_data(
        target=callback_data.target, oid=callback_data.oid, field=callback_data.field, tid=tid,
    )
    await callback.message.answer(EDIT_PROMPTS[callback_data.field], parse_mode=ParseMode.MARKDOWN)
    await callback.answer()


@router.message(EditStates.enter_value)
async def msg_edit_value(
    message: Message,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    data = await state.get_data()
    try:
        changes = parse_edit_value(data["field"], message.text or "")
    except ValueError:
        await message.answer(
            f"⚠️ That does not look right.\n\n{EDIT_PROMPTS[data['field']]}",
            parse_mode=ParseMode.MARKDOWN,
        )
        return

    try:
        if data["target"] == "t":
            t = await update_tournament(session, data["oid"], identity, **changes)
            label = t.name
        else:
            event = await update_sport_event(session, data["oid"], identity, **changes)
            label = f"{event.display_name} ({event.registered_count}/{event.capacity})"
    except CourtsideError as exc:
        await message.answer(f"⚠️ {exc.message}", parse_mode=None)
        return

    await state.clear()
    await message.answer(
        f"✅ Saved: *{label}*",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=back_to_tournament_kb(data["tid"]),
    )


# ── Match schedule ────────────────────────────────────────────────────────────

@router.callback_query(EventCb.filter(F.action == "matches"))
async def cq_event_matches(
    callback: CallbackQuery,
    callback_data: EventCb,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    await state.clear()
    try:
        event = await require_sport_event(session, callback_data.eid)
        ensure_organizer(event.tournament, identity)
    except CourtsideError as exc:
        await callback.answer(exc.message, show_alert=True)
        return
    matches = await list_matches(session, event.id)
    if not matches:
        await callback.answer("Draw round 1 first.", show_alert=True)
        return
    names = {e.id: e.display_name for e in await approved_entries(session, event.id)}
    await callback.message.edit_text(
        f"📅 *{event.display_name}: round 1*\n\nPick a match to set its start time.",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=match_list_kb(matches, names, event.tournament_id),
    )
    await callback.answer()


@router.callback_query(MatchCb.filter(F.action == "reschedule"))
async def cq_match_pick(
    callback: CallbackQuery,
    callback_data: MatchCb,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    match = await get_match(session, callback_data.mid)
    if match is None or match.tournament.organizer_id != identity.id:
        await callback.answer("Match not found.", show_alert=True)
        return
    await state.set_state(MatchScheduleStates.enter_time)
    await state.update_data(mid=match.id)
    await callback.message.answer(
        f"📅 Send the start time of match *#{match.match_number}* as `{DATE_FORMAT}`\n"
        f"(`-` to clear it):",
        parse_mode=ParseMode.MARKDOWN,
    )
    await callback.answer()


@router.message(MatchScheduleStates.enter_time)
async def msg_match_time(
    message: Message,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    raw = (message.text or "").strip()
    try:
        scheduled_at = None if raw == "-" else datetime.strptime(raw, DATE_FORMAT)
    except ValueError:
        await message.answer(f"⚠️ Use the format `{DATE_FORMAT}`.", parse_mode=ParseMode.MARKDOWN)
        return

    data = await state.get_data()
    try:
        match = await reschedule_match(session, data["mid"], identity, scheduled_at)
    except CourtsideError as exc:
        await state.clear()
        await message.answer(f"⚠️ {exc.message}", parse_mode=None)
        return

    await state.clear()
    when = f"{scheduled_at:%d %b %Y %H:%M}" if scheduled_at else "not scheduled"
    await message.answer(
        f"✅ Match *#{match.match_number}*: {when}",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=back_to_tournament_kb(match.tournament_id),
    )


# ── Delete ────────────────────────────────────────────────────────────────────

@router.callback_query(TournamentCb.filter(F.action == "delete"))
async def cq_delete_ask(callback: CallbackQuery, callback_data: TournamentCb) -> None:
    await callback.message.edit_text(
        "🗑 *Delete this tournament?*\n\n"
        "_All events, requests, participants and matches are removed._",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=confirm_action_kb(
            TournamentCb(action="delete_confirm", tid=callback_data.tid).pack(),
            TournamentCb(action="view", tid=callback_data.tid).pack(),
        ),
    )
    await callback.answer()


@router.callback_query(TournamentCb.filter(F.action == "delete_confirm"))
async def cq_delete_confirm(
    callback: CallbackQuery,
    callback_data: TournamentCb,
    session: AsyncSession,
    identity: Identity,
) -> None:
    try:
        await delete_tournament(session, callback_data.tid, identity)
    except CourtsideError as exc:
        await callback.answer(exc.message, show_alert=True)
        return
    logger.info("Tournament %d deleted by user %d", callback_data.tid, identity.id)
    tournaments = await list_organized_tournaments(session, identity)
    await callback.message.edit_text(
        "🗑 Tournament deleted.",
        reply_markup=organizer_tournaments_kb(tournaments),
    )
    await callback.answer()
