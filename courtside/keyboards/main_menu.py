"""
Main menu keyboards.
"""
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from courtside.keyboards.callbacks import MainMenuCb


def main_menu() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="🏸 Join a tournament",    callback_data=MainMenuCb(action="join").pack()),
    )
    builder.row(
        InlineKeyboardButton(text="📋 My requests",          callback_data=MainMenuCb(action="my_requests").pack()),
    )
    builder.row(
        InlineKeyboardButton(text="🎯 Organize",             callback_data=MainMenuCb(action="organize").pack()),
    )
    return builder.as_markup()


def back_to_main() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="🔙 Main menu", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()
