"""
Join wizard FSM handler.

Flow:
  Join → choose tournament → choose sport event
       → one question per message (fields_for the event's pairing mode)
       → summary → [payment QR + screenshot] → pending request ✅

The IntakeDraft lives in FSM data under "draft"; raw answers under "answers".
"""
import logging
from typing import Optional

from aiogram import Bot, F, Router
from aiogram.enums import ParseMode
from aiogram.fsm.context import FSMContext
from aiogram.types import BufferedInputFile, CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.errors import CourtsideError, ValidationError
from courtside.keyboards import (
    EventCb, IntakeCb, MainMenuCb, TournamentCb,
    back_to_main, choice_kb, confirm_details_kb, event_list_kb,
    main_menu, question_kb, tournament_list_kb,
)
from courtside.models.models import Gender, PairingMode, SportEvent
from courtside.services import (
    EvidenceStore, Identity, IntakeDraft, IntakeFlow, IntakeStep, Upload,
    fields_for, get_request, get_user, list_open_tournaments,
    list_sport_events, list_user_requests, notify_request_submitted,
)
from courtside.states import IntakeStates

logger = logging.getLogger(__name__)
router = Router(name="registration")

SESSION_EXPIRED = "⚠️ Session expired. Start again."


# ── Draft helpers ─────────────────────────────────────────────────────────────

async def _flow(
    state: FSMContext,
    session: AsyncSession,
    evidence_store: EvidenceStore,
    identity: Identity,
) -> Optional[IntakeFlow]:
    data = await state.get_data()
    if "draft" not in data:
        return None
    return IntakeFlow(session, evidence_store, identity, IntakeDraft.from_state(data["draft"]))


async def _expired(message: Message, state: FSMContext) -> None:
    await state.clear()
    await message.answer(SESSION_EXPIRED, reply_markup=back_to_main())


async def _save(state: FSMContext, flow: IntakeFlow, **extra) -> None:
    await state.update_data(draft=flow.draft.to_state(), **extra)


def _question_text(event: SportEvent, idx: int, total: int, prompt: str) -> str:
    return (
        f"🏅 *{event.display_name}* — {PairingMode.LABELS[event.pairing_mode]}\n"
        f"_Step {idx + 1} of {total}_\n\n"
        f"{prompt}"
    )


async def _ask(message: Message, event: SportEvent, idx: int, edit: bool = False) -> None:
    fields = fields_for(event)
    question = fields[idx]
    text     = _question_text(event, idx, len(fields), question.prompt)
    if event.is_mixed and question.name == "partner_name":
        text += "\n\n_Mixed event: your partner must be of the opposite gender._"
    kb = choice_kb(question.choices, question.optional) if question.kind == "choice" else question_kb(question.optional)
    if edit:
        await message.edit_text(text, parse_mode=ParseMode.MARKDOWN, reply_markup=kb)
    else:
        await message.answer(text, parse_mode=ParseMode.MARKDOWN, reply_markup=kb)


def _summary(event: SportEvent, details: dict) -> str:
    lines = [
        "📝 *Check your entry:*\n",
        f"🏅 {event.display_name}",
        f"👤 {details['player_name']} ({Gender.LABELS[details['gender']]})",
        f"📱 `{details['mobile_no']}`",
    ]
    if details.get("age") is not None:
        lines.append(f"🎂 Age: {details['age']}")
    if details.get("affiliation"):
        lines.append(f"🏫 {details['affiliation']}")
    if details.get("partner_name"):
        lines.append(
            f"🤝 Partner: {details['partner_name']} ({Gender.LABELS[details['partner_gender']]}), "
            f"`{details['partner_mobile_no']}`, age {details['partner_age']}"
        )
    if details.get("experience_level"):
        lines.append(f"📈 Experience: {details['experience_level']}")
    if details.get("roles"):
        lines.append(f"🎯 Role: {', '.join(details['roles'])}")
    if details.get("additional_info"):
        lines.append(f"📝 {details['additional_info']}")
    if event.requires_payment:
        lines.append(f"\n💳 Entry fee: ₹{event.entry_fee:g}")
    return "\n".join(lines)


# ── Entry: "Join" button ──────────────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "join"))
async def cq_start_join(
    callback: CallbackQuery,
    session: AsyncSession,
    state: FSMContext,
) -> None:
    await state.clear()
    tournaments = await list_open_tournaments(session)
    if not tournaments:
        await callback.answer("No tournaments are open for registration.", show_alert=True)
        return

    await state.set_state(IntakeStates.choose_tournament)
    await callback.message.edit_text(
        "🏆 *Choose a tournament:*",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=tournament_list_kb(tournaments),
    )
    await callback.answer()


# ── Step 1: tournament, then sport event ──────────────────────────────────────

@router.callback_query(TournamentCb.filter(F.action == "join_select"), IntakeStates.choose_tournament)
async def cq_tournament_selected(
    callback: CallbackQuery,
    callback_data: TournamentCb,
    session: AsyncSession,
    state: FSMContext,
) -> None:
    events = await list_sport_events(session, callback_data.tid)
    if not events:
        await callback.answer("This tournament has no events yet.", show_alert=True)
        return

    draft = IntakeDraft(tournament_id=callback_data.tid)
    await state.update_data(draft=draft.to_state(), answers={}, field_idx=0)
    await state.set_state(IntakeStates.choose_event)
    await callback.message.edit_text(
        "🏅 *Choose an event:*",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=event_list_kb(events),
    )
    await callback.answer()


@router.callback_query(EventCb.filter(F.action == "join_select"), IntakeStates.choose_event)
async def cq_event_selected(
    callback: CallbackQuery,
    callback_data: EventCb,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
    evidence_store: EvidenceStore,
) -> None:
    flow = await _flow(state, session, evidence_store, identity)
    if flow is None:
        await callback.answer(SESSION_EXPIRED, show_alert=True)
        return

    previous = flow.draft.sport_event_id
    try:
        event = await flow.select_sport(callback_data.eid)
    except CourtsideError as exc:
        await callback.answer(exc.message, show_alert=True)
        return

    data    = await state.get_data()
    answers = data.get("answers", {}) if previous == event.id else {}
    await _save(state, flow, answers=answers, field_idx=0)
    await state.set_state(IntakeStates.answer_field)
    await _ask(callback.message, event, 0, edit=True)
    await callback.answer()


# ── Step 2: participant details, one field at a time ──────────────────────────

async def _store_answer(
    message: Message,
    state: FSMContext,
    flow: IntakeFlow,
    value,
) -> None:
    """Record the answer of the current field and move on (or validate at the end)."""
    event  = await flow.current_event()
    fields = fields_for(event)
    data   = await state.get_data()
    idx    = data.get("field_idx", 0)
    answers = dict(data.get("answers", {}))
    answers[fields[idx].name] = value

    if idx + 1 < len(fields):
        await state.update_data(answers=answers, field_idx=idx + 1)
        await _ask(message, event, idx + 1)
        return

    try:
        details = await flow.submit_details(answers)
    except ValidationError as exc:
        names = [f.name for f in fields]
        restart = min((names.index(k) for k in exc.errors if k in names), default=0)
        await state.update_data(answers=answers, field_idx=restart)
        await message.answer(f"⚠️ {exc.message}", parse_mode=None)
        await _ask(message, event, restart)
        return

    await _save(state, flow, answers=answers)
    await state.set_state(IntakeStates.confirm_details)
    await message.answer(
        _summary(event, details),
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=confirm_details_kb(event.requires_payment),
    )


@router.message(IntakeStates.answer_field, F.photo)
async def msg_field_photo(
    message: Message,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
    evidence_store: EvidenceStore,
) -> None:
    flow = await _flow(state, session, evidence_store, identity)
    if flow is None:
        await _expired(message, state)
        return
    event = await flow.current_event()
    idx = (await state.get_data()).get("field_idx", 0)
    if fields_for(event)[idx].kind != "photo":
        await message.answer("👆 Please answer the question above with text or a button.")
        return
    await _store_answer(message, state, flow, message.photo[-1].file_id)


@router.message(IntakeStates.answer_field)
async def msg_field_text(
    message: Message,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
    evidence_store: EvidenceStore,
) -> None:
    flow = await _flow(state, session, evidence_store, identity)
    if flow is None:
        await _expired(message, state)
        return
    event = await flow.current_event()
    question = fields_for(event)[(await state.get_data()).get("field_idx", 0)]
    text = message.text.strip() if message.text else ""

    if question.kind == "photo":
        await message.answer("📷 Please send a photo.", reply_markup=question_kb())
        return
    if question.kind == "choice":
        await message.answer(
            "👆 Please pick one of the buttons:",
            reply_markup=choice_kb(question.choices, question.optional),
        )
        return
    if not text:
        await message.answer("⚠️ Please type an answer.", reply_markup=question_kb(question.optional))
        return
    if question.optional and text == "-":
        text = None
    await _store_answer(message, state, flow, text)


@router.callback_query(IntakeCb.filter(F.action == "choose"), IntakeStates.answer_field)
async def cq_field_choice(
    callback: CallbackQuery,
    callback_data: IntakeCb,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
    evidence_store: EvidenceStore,
) -> None:
    flow = await _flow(state, session, evidence_store, identity)
    if flow is None:
        await state.clear()
        await callback.answer(SESSION_EXPIRED, show_alert=True)
        return
    event = await flow.current_event()
    question = fields_for(event)[(await state.get_data()).get("field_idx", 0)]
    if question.kind != "choice" or not 0 <= callback_data.idx < len(question.choices):
        await callback.answer("⚠️ This button is outdated.", show_alert=True)
        return
    await callback.answer()
    await _store_answer(callback.message, state, flow, question.choices[callback_data.idx])


@router.callback_query(IntakeCb.filter(F.action == "skip"), IntakeStates.answer_field)
async def cq_field_skip(
    callback: CallbackQuery,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
    evidence_store: EvidenceStore,
) -> None:
    flow = await _flow(state, session, evidence_store, identity)
    if flow is None:
        await state.clear()
        await callback.answer(SESSION_EXPIRED, show_alert=True)
        return
    event = await flow.current_event()
    question = fields_for(event)[(await state.get_data()).get("field_idx", 0)]
    if not question.optional:
        await callback.answer("This question cannot be skipped.", show_alert=True)
        return
    await callback.answer()
    await _store_answer(callback.message, state, flow, None)


# ── Back navigation ───────────────────────────────────────────────────────────

@router.callback_query(IntakeCb.filter(F.action == "back"))
async def cq_back(
    callback: CallbackQuery,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
    evidence_store: EvidenceStore,
) -> None:
    flow = await _flow(state, session, evidence_store, identity)
    if flow is None:
        await callback.answer(SESSION_EXPIRED, show_alert=True)
        return
    current = await state.get_state()
    data    = await state.get_data()

    if current == IntakeStates.upload_proof.state:
        # Payment step → summary; the draft itself stays on the payment step
        event = await flow.current_event()
        await state.set_state(IntakeStates.confirm_details)
        await callback.message.answer(
            _summary(event, flow.draft.details),
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=confirm_details_kb(event.requires_payment),
        )
        await callback.answer()
        return

    if current == IntakeStates.answer_field.state and data.get("field_idx", 0) > 0:
        idx = data["field_idx"] - 1
        await state.update_data(field_idx=idx)
        await _ask(callback.message, await flow.current_event(), idx, edit=True)
        await callback.answer()
        return

    step = await flow.back()
    if step == IntakeStep.SPORT_SELECTION:
        events = await list_sport_events(session, flow.draft.tournament_id)
        await _save(state, flow)
        await state.set_state(IntakeStates.choose_event)
        await callback.message.edit_text(
            "🏅 *Choose an event:*",
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=event_list_kb(events),
        )
    else:
        event = await flow.current_event()
        idx = len(fields_for(event)) - 1
        await _save(state, flow, field_idx=idx)
        await state.set_state(IntakeStates.answer_field)
        await _ask(callback.message, event, idx, edit=True)
    await callback.answer()


# ── Step 3: confirm / payment evidence ────────────────────────────────────────

@router.callback_query(IntakeCb.filter(F.action == "confirm"), IntakeStates.confirm_details)
async def cq_confirm_details(
    callback: CallbackQuery,
    bot: Bot,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
    evidence_store: EvidenceStore,
) -> None:
    flow = await _flow(state, session, evidence_store, identity)
    if flow is None:
        await state.clear()
        await callback.answer(SESSION_EXPIRED, show_alert=True)
        return
    event = await flow.current_event()

    if flow.draft.step != IntakeStep.PAYMENT:
        await callback.answer()
        await _finish(callback.message, bot, session, state, flow, proof=None)
        return

    await state.set_state(IntakeStates.upload_proof)
    qr = await flow.payment_qr()
    caption = (
        f"💳 *Pay ₹{event.entry_fee:g}* for {event.display_name}\n\n"
        f"Then send a *screenshot of the payment* here."
    )
    if qr is not None and qr.url:
        await callback.message.answer_photo(qr.url, caption=caption, parse_mode=ParseMode.MARKDOWN,
                                            reply_markup=question_kb())
    elif qr is not None:
        await callback.message.answer_photo(
            BufferedInputFile(qr.png, filename="upi.png"),
            caption=caption, parse_mode=ParseMode.MARKDOWN, reply_markup=question_kb(),
        )
    else:
        await callback.message.answer(
            caption + "\n\n_The organizer has not shared a payment QR yet; contact them for details._",
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=question_kb(),
        )
    await callback.answer()


@router.message(IntakeStates.upload_proof, F.photo | F.document)
async def msg_payment_proof(
    message: Message,
    bot: Bot,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
    evidence_store: EvidenceStore,
) -> None:
    flow = await _flow(state, session, evidence_store, identity)
    if flow is None:
        await _expired(message, state)
        return
    if message.photo:
        file_id, filename, content_type = message.photo[-1].file_id, "proof.jpg", "image/jpeg"
    else:
        doc = message.document
        if not (doc.mime_type or "").startswith("image/"):
            await message.answer("⚠️ Please send an image (screenshot) of the payment.")
            return
        file_id, filename, content_type = doc.file_id, doc.file_name or "proof.jpg", doc.mime_type

    buf = await bot.download(file_id)
    proof = Upload(content=buf.read(), filename=filename, content_type=content_type)
    await _finish(message, bot, session, state, flow, proof=proof)


@router.message(IntakeStates.upload_proof)
async def msg_payment_proof_hint(message: Message) -> None:
    await message.answer("📷 Send the payment screenshot as a photo.", reply_markup=question_kb())


async def _finish(
    message: Message,
    bot: Bot,
    session: AsyncSession,
    state: FSMContext,
    flow: IntakeFlow,
    proof: Optional[Upload],
) -> None:
    data = await state.get_data()
    photo = None
    photo_id = data.get("answers", {}).get("photo")
    if photo_id:
        buf = await bot.download(photo_id)
        photo = Upload(content=buf.read(), filename="photo.jpg", content_type="image/jpeg")

    try:
        request = await flow.confirm(proof=proof, photo=photo)
    except CourtsideError as exc:
        await message.answer(f"⚠️ {exc.message}", parse_mode=None, reply_markup=question_kb())
        return

    await state.clear()
    request = await get_request(session, request.id)
    await message.answer(
        f"🎉 *Request submitted!*\n\n"
        f"🏆 {request.tournament.name}\n"
        f"🏅 {request.sport_event.display_name}\n"
        f"👤 {request.entry_name}\n"
        f"📌 Status: ⏳ pending review\n\n"
        f"You will be notified once the organizer decides. 🔔",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=main_menu(),
    )

    organizer = await get_user(session, request.tournament.organizer_id)
    if organizer is not None:
        await notify_request_submitted(bot, organizer.telegram_id, request)


# ── My requests ───────────────────────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "my_requests"))
async def cq_my_requests(
    callback: CallbackQuery,
    session: AsyncSession,
    identity: Identity,
) -> None:
    requests = await list_user_requests(session, identity.id)
    if not requests:
        text = "📋 You have no join requests yet."
    else:
        lines = ["📋 *My requests*\n"]
        for r in requests:
            lines.append(f"{r.status_emoji} *{r.tournament.name}* — {r.sport_event.display_name}")
            if r.reviewer_notes:
                lines.append(f"   💬 _{r.reviewer_notes}_")
        text = "\n".join(lines)
    await callback.message.edit_text(text, parse_mode=ParseMode.MARKDOWN, reply_markup=back_to_main())
    await callback.answer()
