"""
Keyboards for the organizer console: tournaments, review, setup wizards.
"""
from typing import Dict, List

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from courtside.keyboards.callbacks import (
    EditCb, EventCb, MainMenuCb, MatchCb, ReviewCb, SetupCb, TournamentCb,
)
from courtside.models.models import (
    GenderCategory,
    JoinRequest,
    Match,
    PairingMode,
    RequestStatus,
    SportEvent,
    Sports,
    Tournament,
)

STATUS_FILTER_LABELS = {
    RequestStatus.PENDING:  "⏳ Pending",
    RequestStatus.APPROVED: "✅ Approved",
    RequestStatus.REJECTED: "❌ Rejected",
    "all":                  "📋 All",
}


def organizer_tournaments_kb(tournaments: List[Tournament]) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for t in tournaments:
        builder.row(
            InlineKeyboardButton(
                text=f"🏆 {t.name}",
                callback_data=TournamentCb(action="view", tid=t.id).pack(),
            )
        )
    builder.row(
        InlineKeyboardButton(text="➕ New tournament", callback_data=TournamentCb(action="create").pack())
    )
    builder.row(InlineKeyboardButton(text="🔙 Back", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()


def tournament_detail_kb(t: Tournament) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(
            text="📥 Review requests",
            callback_data=ReviewCb(action="list", tid=t.id).pack(),
        )
    )
    builder.row(
        InlineKeyboardButton(text="➕ Add event",         callback_data=TournamentCb(action="add_event", tid=t.id).pack()),
        InlineKeyboardButton(text="📷 Upload payment QR", callback_data=TournamentCb(action="qr", tid=t.id).pack()),
    )
    for e in t.sport_events:
        builder.row(
            InlineKeyboardButton(
                text=f"🗂 Draw round 1: {e.display_name}",
                callback_data=EventCb(action="bracket", eid=e.id).pack(),
            )
        )
        builder.row(
            InlineKeyboardButton(text="✏️ Edit event", callback_data=EditCb(target="e", oid=e.id).pack()),
            InlineKeyboardButton(text="📅 Schedule",   callback_data=EventCb(action="matches", eid=e.id).pack()),
        )
    builder.row(
        InlineKeyboardButton(text="✏️ Edit tournament", callback_data=EditCb(target="t", oid=t.id).pack()),
        InlineKeyboardButton(text="🗑 Delete",          callback_data=TournamentCb(action="delete", tid=t.id).pack()),
    )
    builder.row(InlineKeyboardButton(text="🔙 Back", callback_data=MainMenuCb(action="organize").pack()))
    return builder.as_markup()


def confirm_action_kb(confirm_cb: str, cancel_cb: str) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="✅ Yes",    callback_data=confirm_cb),
        InlineKeyboardButton(text="❌ Cancel", callback_data=cancel_cb),
    )
    return builder.as_markup()


def review_list_kb(
    tournament_id: int,
    requests: List[JoinRequest],
    counts: Dict[str, int],
    status: str,
) -> InlineKeyboardMarkup:
    """Filter row with live counts, then one button per request."""
    builder = InlineKeyboardBuilder()
    total = sum(counts.values())
    for key, label in STATUS_FILTER_LABELS.items():
        n = total if key == "all" else counts.get(key, 0)
        mark = "• " if key == status else ""
        builder.button(
            text=f"{mark}{label} ({n})",
            callback_data=ReviewCb(action="list", tid=tournament_id, status=key).pack(),
        )
    builder.adjust(2)

    for r in requests[:30]:
        builder.row(
            InlineKeyboardButton(
                text=f"{r.status_emoji} {r.entry_name} — {r.sport_event.display_name}",
                callback_data=ReviewCb(action="view", tid=tournament_id, rid=r.id, status=status).pack(),
            )
        )
    builder.row(
        InlineKeyboardButton(text="🔙 Back", callback_data=TournamentCb(action="view", tid=tournament_id).pack())
    )
    return builder.as_markup()


def review_request_kb(request: JoinRequest, status: str, retry: bool = False) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    tid, rid = request.tournament_id, request.id
    if retry:
        builder.row(
            InlineKeyboardButton(
                text="🔁 Finish approval",
                callback_data=ReviewCb(action="complete", tid=tid, rid=rid, status=status).pack(),
            )
        )
    elif request.status == RequestStatus.PENDING:
        builder.row(
            InlineKeyboardButton(
                text="✅ Approve",
                callback_data=ReviewCb(action="approve", tid=tid, rid=rid, status=status).pack(),
            ),
            InlineKeyboardButton(
                text="❌ Reject",
                callback_data=ReviewCb(action="reject", tid=tid, rid=rid, status=status).pack(),
            ),
        )
        builder.row(
            InlineKeyboardButton(
                text="💬 Add notes",
                callback_data=ReviewCb(action="notes", tid=tid, rid=rid, status=status).pack(),
            )
        )
    builder.row(
        InlineKeyboardButton(
            text="🔙 Back to list",
            callback_data=ReviewCb(action="list", tid=tid, status=status).pack(),
        )
    )
    return builder.as_markup()


# ── Setup wizards ─────────────────────────────────────────────────────────────

def sport_choice_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for sport in Sports.RACQUET + Sports.AUCTION:
        builder.button(text=sport, callback_data=SetupCb(action="sport", value=sport).pack())
    builder.adjust(3)
    builder.row(InlineKeyboardButton(text="❌ Cancel", callback_data=MainMenuCb(action="organize").pack()))
    return builder.as_markup()


def pairing_mode_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for mode in PairingMode.ALL:
        builder.button(text=PairingMode.LABELS[mode], callback_data=SetupCb(action="mode", value=mode).pack())
    builder.adjust(3)
    return builder.as_markup()


def gender_category_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for category in GenderCategory.ALL:
        builder.button(
            text=category.capitalize(),
            callback_data=SetupCb(action="gender", value=category).pack(),
        )
    builder.adjust(3)
    return builder.as_markup()


def skip_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="⏭ Skip", callback_data=SetupCb(action="skip").pack()))
    return builder.as_markup()


def event_created_kb(tournament_id: int) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="➕ Add another event", callback_data=TournamentCb(action="add_event", tid=tournament_id).pack()),
    )
    builder.row(
        InlineKeyboardButton(text="🏆 Tournament", callback_data=TournamentCb(action="view", tid=tournament_id).pack()),
    )
    return builder.as_markup()


def bracket_confirm_kb(event: SportEvent) -> InlineKeyboardMarkup:
    return confirm_action_kb(
        EventCb(action="bracket_confirm", eid=event.id).pack(),
        TournamentCb(action="view", tid=event.tournament_id).pack(),
    )


# ── Organizer edits ───────────────────────────────────────────────────────────

TOURNAMENT_FIELD_LABELS = {
    "name":     "🏷 Name",
    "dates":    "📅 Dates",
    "location": "📍 Venue",
    "upi_id":   "💳 UPI id",
}

EVENT_FIELD_LABELS = {
    "event_name": "🏷 Name",
    "capacity":   "🔢 Capacity",
    "entry_fee":  "💳 Entry fee",
    "details":    "📝 Details",
}


def back_to_tournament_kb(tournament_id: int) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="🏆 Tournament", callback_data=TournamentCb(action="view", tid=tournament_id).pack())
    )
    return builder.as_markup()


def edit_fields_kb(target: str, object_id: int, tournament_id: int) -> InlineKeyboardMarkup:
    labels = TOURNAMENT_FIELD_LABELS if target == "t" else EVENT_FIELD_LABELS
    builder = InlineKeyboardBuilder()
    for field_name, label in labels.items():
        builder.button(text=label, callback_data=EditCb(target=target, oid=object_id, field=field_name).pack())
    builder.adjust(2)
    builder.row(
        InlineKeyboardButton(text="🔙 Back", callback_data=TournamentCb(action="view", tid=tournament_id).pack())
    )
    return builder.as_markup()


def match_list_kb(matches: List[Match], names: Dict[int, str], tournament_id: int) -> InlineKeyboardMarkup:
    """One button per match still to be played; byes are left out."""
    builder = InlineKeyboardBuilder()
    for m in matches:
        if m.is_bye:
            continue
        when = f"{m.scheduled_at:%d %b %H:%M}" if m.scheduled_at else "unscheduled"
        a = names.get(m.participant_a_id, "?")
        b = names.get(m.participant_b_id, "?")
        builder.row(
            InlineKeyboardButton(
                text=f"#{m.match_number} {a} vs {b} · {when}",
                callback_data=MatchCb(action="reschedule", mid=m.id).pack(),
            )
        )
    builder.row(
        InlineKeyboardButton(text="🔙 Back", callback_data=TournamentCb(action="view", tid=tournament_id).pack())
    )
    return builder.as_markup()
