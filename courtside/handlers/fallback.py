"""
Global fallback handler — included LAST in the dispatcher.

Catches any callback query that no other router handled.
Prevents infinite Telegram spinners from:
  - Stale keyboards after bot restart (MemoryStorage is wiped on redeploy)
  - Buttons of a wizard step the user already left
"""
from aiogram import Router
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery

from courtside.keyboards import main_menu

router = Router(name="fallback")


@router.callback_query()
async def cq_fallback(callback: CallbackQuery, state: FSMContext) -> None:
    await callback.answer("⚠️ This button is outdated. Start again.", show_alert=True)
    await state.clear()
    try:
        await callback.message.edit_text(
            "🔄 *Session reset.* Back to the main menu:",
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=main_menu(),
        )
    except TelegramBadRequest:
        # Message too old to edit or already showing the menu
        pass
