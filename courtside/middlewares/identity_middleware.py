"""
Identity middleware.

Turns the Telegram sender into a stored ``User`` and injects
``identity: Identity`` into handler data. Must run after DatabaseMiddleware.
"""
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from courtside.services.tournament_service import identity_of, upsert_user


class IdentityMiddleware(BaseMiddleware):
    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        tg_user = data.get("event_from_user")
        session = data.get("session")
        if tg_user is None or session is None:
            return await handler(event, data)

        user = await upsert_user(
            session,
            telegram_id=tg_user.id,
            first_name=tg_user.first_name,
            last_name=tg_user.last_name,
            username=tg_user.username,
        )
        data["user"]     = user
        data["identity"] = identity_of(user)
        return await handler(event, data)
