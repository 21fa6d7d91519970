"""
Common handlers: /start, /cancel, main menu routing.
"""
import logging

from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from courtside.keyboards import MainMenuCb, main_menu
from courtside.services import Identity

logger = logging.getLogger(__name__)
router = Router(name="common")


# ── /start ────────────────────────────────────────────────────────────────────

@router.message(CommandStart())
async def cmd_start(message: Message, state: FSMContext, identity: Identity) -> None:
    await state.clear()
    text = (
        f"🏸 Welcome to *Courtside*, {identity.display_name}!\n\n"
        f"Here you can:\n"
        f"• 🏆 Join a tournament event, solo, with a partner or for team selection\n"
        f"• 📋 Follow the status of your requests\n"
        f"• 🎯 Organize your own tournament and review entries\n\n"
        f"Choose an action:"
    )
    await message.answer(text, parse_mode=ParseMode.MARKDOWN, reply_markup=main_menu())


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, state: FSMContext) -> None:
    await state.clear()
    await message.answer("❌ Cancelled.", reply_markup=main_menu())


# ── Main menu callback ────────────────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "main"))
async def cq_main_menu(callback: CallbackQuery, state: FSMContext) -> None:
    await state.clear()
    await callback.message.edit_text(
        "🏸 *Courtside*\n\nChoose an action:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=main_menu(),
    )
    await callback.answer()


@router.callback_query(F.data == "noop")
async def cq_noop(callback: CallbackQuery) -> None:
    await callback.answer()
