"""
Keyboards for the join wizard.
"""
from typing import List

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from courtside.keyboards.callbacks import EventCb, IntakeCb, MainMenuCb, TournamentCb
from courtside.models.models import Gender, SportEvent, Tournament


def tournament_list_kb(tournaments: List[Tournament]) -> InlineKeyboardMarkup:
    """Tournaments still open for registration."""
    builder = InlineKeyboardBuilder()
    for t in tournaments:
        builder.row(
            InlineKeyboardButton(
                text=f"🏆 {t.name}  (until {t.registration_cutoff:%d %b})",
                callback_data=TournamentCb(action="join_select", tid=t.id).pack(),
            )
        )
    builder.row(InlineKeyboardButton(text="🔙 Back", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()


def event_list_kb(events: List[SportEvent]) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for e in events:
        full = e.registered_count >= e.capacity
        seats = "full" if full else f"{e.capacity - e.registered_count} left"
        fee = f" · ₹{e.entry_fee:g}" if e.requires_payment else ""
        builder.row(
            InlineKeyboardButton(
                text=f"{'🔒' if full else '🏅'} {e.display_name} ({seats}){fee}",
                callback_data=EventCb(action="join_select", eid=e.id).pack(),
            )
        )
    builder.row(InlineKeyboardButton(text="❌ Cancel", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()


def choice_kb(choices: List[str], optional: bool = False) -> InlineKeyboardMarkup:
    """Buttons for a ``choice`` question; the index travels in the callback."""
    builder = InlineKeyboardBuilder()
    for idx, choice in enumerate(choices):
        label = Gender.LABELS.get(choice, choice)
        builder.button(text=label, callback_data=IntakeCb(action="choose", idx=idx).pack())
    builder.adjust(2)
    if optional:
        builder.row(InlineKeyboardButton(text="⏭ Skip", callback_data=IntakeCb(action="skip").pack()))
    builder.row(
        InlineKeyboardButton(text="⬅️ Back",   callback_data=IntakeCb(action="back").pack()),
        InlineKeyboardButton(text="❌ Cancel", callback_data=MainMenuCb(action="main").pack()),
    )
    return builder.as_markup()


def question_kb(optional: bool = False) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    if optional:
        builder.row(InlineKeyboardButton(text="⏭ Skip", callback_data=IntakeCb(action="skip").pack()))
    builder.row(
        InlineKeyboardButton(text="⬅️ Back",   callback_data=IntakeCb(action="back").pack()),
        InlineKeyboardButton(text="❌ Cancel", callback_data=MainMenuCb(action="main").pack()),
    )
    return builder.as_markup()


def confirm_details_kb(requires_payment: bool) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(
            text="💳 Continue to payment" if requires_payment else "✅ Submit request",
            callback_data=IntakeCb(action="confirm").pack(),
        ),
    )
    builder.row(
        InlineKeyboardButton(text="✏️ Edit",   callback_data=IntakeCb(action="back").pack()),
        InlineKeyboardButton(text="❌ Cancel", callback_data=MainMenuCb(action="main").pack()),
    )
    return builder.as_markup()
