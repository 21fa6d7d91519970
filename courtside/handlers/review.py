"""
Organizer review console: filtered request list, request detail,
approve / reject (with optional notes), finish a partial approval.
"""
import logging
from typing import Optional

from aiogram import Bot, F, Router
from aiogram.enums import ParseMode
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.errors import CourtsideError
from courtside.keyboards import ReviewCb, review_list_kb, review_request_kb
from courtside.models.models import RequestStatus
from courtside.services import (
    Identity, ReviewAction, ReviewOutcome, format_request_summary, get_request,
    list_for_review, notify_request_approved, notify_request_rejected, review,
)
from courtside.services.review_service import status_counts
from courtside.states import ReviewStates

logger = logging.getLogger(__name__)
router = Router(name="review")


def _filter_value(status: str) -> Optional[str]:
    return None if status == "all" else status


async def _render_list(
    message: Message,
    session: AsyncSession,
    tournament_id: int,
    identity: Identity,
    status: str,
) -> None:
    requests = await list_for_review(session, tournament_id, identity, _filter_value(status))
    counts   = await status_counts(session, tournament_id)
    text = "📥 *Join requests*"
    if not requests:
        text += "\n\n_Nothing here._"
    await message.edit_text(
        text,
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=review_list_kb(tournament_id, requests, counts, status),
    )


# ── List ──────────────────────────────────────────────────────────────────────

@router.callback_query(ReviewCb.filter(F.action == "list"))
async def cq_review_list(
    callback: CallbackQuery,
    callback_data: ReviewCb,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    await state.clear()
    try:
        await _render_list(callback.message, session, callback_data.tid, identity, callback_data.status)
    except CourtsideError as exc:
        await callback.answer(exc.message, show_alert=True)
        return
    await callback.answer()


# ── Detail ────────────────────────────────────────────────────────────────────

@router.callback_query(ReviewCb.filter(F.action == "view"))
async def cq_review_view(
    callback: CallbackQuery,
    callback_data: ReviewCb,
    session: AsyncSession,
    identity: Identity,
) -> None:
    request = await get_request(session, callback_data.rid)
    if request is None or request.tournament.organizer_id != identity.id:
        await callback.answer("Join request not found.", show_alert=True)
        return

    text = (
        f"{format_request_summary(request)}\n\n"
        f"🕒 Submitted {request.submitted_at:%d %b %H:%M}"
    )
    if request.reviewed_at:
        text += f"\n📌 Reviewed {request.reviewed_at:%d %b %H:%M}"
    await callback.message.edit_text(
        text,
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=review_request_kb(request, callback_data.status),
    )
    await callback.answer()


# ── Notes (FSM) ───────────────────────────────────────────────────────────────

@router.callback_query(ReviewCb.filter(F.action == "notes"))
async def cq_review_notes(
    callback: CallbackQuery,
    callback_data: ReviewCb,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    request = await get_request(session, callback_data.rid)
    if request is None or request.tournament.organizer_id != identity.id:
        await callback.answer("Join request not found.", show_alert=True)
        return
    await state.set_state(ReviewStates.enter_notes)
    await state.update_data(rid=request.id, tid=request.tournament_id, status=callback_data.status)
    await callback.message.answer(
        "💬 Type the *reviewer notes*. They are shown to the player with the decision.",
        parse_mode=ParseMode.MARKDOWN,
    )
    await callback.answer()


@router.message(ReviewStates.enter_notes)
async def msg_review_notes(
    message: Message,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    notes = (message.text or "").strip()
    if not notes:
        await message.answer("⚠️ Notes cannot be empty.")
        return
    data = await state.get_data()
    request = await get_request(session, data["rid"])
    if request is None or request.tournament.organizer_id != identity.id:
        await state.clear()
        await message.answer("Join request not found.")
        return
    await state.update_data(notes=notes)
    await message.answer(
        f"💬 Notes saved: _{notes}_\n\nNow approve or reject:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=review_request_kb(request, data["status"]),
    )


# ── Approve / reject / complete ───────────────────────────────────────────────

async def _notify_submitter(bot: Bot, outcome: ReviewOutcome) -> None:
    request = outcome.request
    if request is None or not outcome.ok:
        return
    telegram_id = request.user.telegram_id
    if request.status == RequestStatus.APPROVED:
        await notify_request_approved(bot, telegram_id, request)
    elif request.status == RequestStatus.REJECTED:
        await notify_request_rejected(bot, telegram_id, request)


@router.callback_query(ReviewCb.filter(F.action.in_(set(ReviewAction.ALL))))
async def cq_review_action(
    callback: CallbackQuery,
    callback_data: ReviewCb,
    bot: Bot,
    session: AsyncSession,
    state: FSMContext,
    identity: Identity,
) -> None:
    data  = await state.get_data()
    notes = data.get("notes") if data.get("rid") == callback_data.rid else None
    await state.clear()

    outcome = await review(
        session,
        callback_data.rid,
        identity,
        callback_data.action,
        notes=notes,
        status_filter=_filter_value(callback_data.status),
    )

    if outcome.retry_request_id is not None:
        await callback.message.edit_text(
            outcome.message,
            parse_mode=None,
            reply_markup=review_request_kb(outcome.request, callback_data.status, retry=True),
        )
        await callback.answer()
        return

    if not outcome.ok:
        await callback.answer(outcome.message, show_alert=True)
        return

    kb = review_list_kb(callback_data.tid, outcome.requests, outcome.counts, callback_data.status)
    await callback.message.edit_text(
        f"{outcome.message}\n\n📥 *Join requests*",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=kb,
    )
    await callback.answer()
    if callback_data.action != ReviewAction.COMPLETE:
        await _notify_submitter(bot, outcome)
