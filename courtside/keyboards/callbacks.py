"""
Centralized CallbackData factories.
Telegram limits callback_data to 64 bytes — all prefixes are kept short.
"""
from aiogram.filters.callback_data import CallbackData


class MainMenuCb(CallbackData, prefix="mm"):
    action: str           # main | join | my_requests | organize


class TournamentCb(CallbackData, prefix="trn"):
    action: str           # join_select | view | create | add_event | qr | delete | delete_confirm
    tid: int = 0          # tournament id


class EventCb(CallbackData, prefix="evt"):
    action: str           # join_select | bracket | bracket_confirm | matches
    eid: int = 0          # sport event id


class IntakeCb(CallbackData, prefix="itk"):
    action: str           # choose | skip | back | confirm
    idx: int = 0          # choice index for "choose"


class ReviewCb(CallbackData, prefix="rev"):
    action: str           # list | view | approve | reject | notes | complete
    tid: int = 0          # tournament id
    rid: int = 0          # join request id
    status: str = "pending"   # list filter; "all" = no filter


class SetupCb(CallbackData, prefix="set"):
    action: str           # sport | mode | gender | skip
    value: str = ""


class EditCb(CallbackData, prefix="edt"):
    target: str           # t = tournament | e = sport event
    oid: int              # id of the tournament / sport event
    field: str = ""       # "" = show the field menu


class MatchCb(CallbackData, prefix="mt"):
    action: str           # reschedule
    mid: int = 0          # match id
