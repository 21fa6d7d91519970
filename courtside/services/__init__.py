from courtside.services.tournament_service import (
    Identity, upsert_user, get_user, identity_of,
    create_tournament, create_sport_event, get_tournament, get_sport_event,
    require_sport_event, list_sport_events, list_open_tournaments,
    list_organized_tournaments, ensure_organizer, delete_tournament,
    update_tournament, update_sport_event,
)
from courtside.services.capacity_ledger import (
    current_count, ceiling, remaining, is_full, try_increment, set_ceiling,
)
from courtside.services.evidence_store import EvidenceStore
from courtside.services.join_requests import (
    submit, approve, complete_approval, reject,
    get_request, find_active_request, list_requests, list_user_requests,
)
from courtside.services.intake import IntakeDraft, IntakeFlow, IntakeStep, Upload, fields_for
from courtside.services.bracket import (
    pair_entries, form_round_one, list_matches, get_match, reschedule_match,
)
from courtside.services.review_service import ReviewAction, ReviewOutcome, list_for_review, review
from courtside.services.notification_service import (
    notify_request_submitted, notify_request_approved, notify_request_rejected,
    notify_bracket_formed, format_request_summary, format_bracket,
)
from courtside.services.qr_service import upi_payment_uri, upi_payment_qr_png, generate_qr_png

__all__ = [
    # identity & tournaments
    "Identity", "upsert_user", "get_user", "identity_of",
    "create_tournament", "create_sport_event", "get_tournament", "get_sport_event",
    "require_sport_event", "list_sport_events", "list_open_tournaments",
    "list_organized_tournaments", "ensure_organizer", "delete_tournament",
    "update_tournament", "update_sport_event",
    # capacity ledger
    "current_count", "ceiling", "remaining", "is_full", "try_increment", "set_ceiling",
    # evidence
    "EvidenceStore",
    # join request state machine
    "submit", "approve", "complete_approval", "reject",
    "get_request", "find_active_request", "list_requests", "list_user_requests",
    # intake
    "IntakeDraft", "IntakeFlow", "IntakeStep", "Upload", "fields_for",
    # bracket
    "pair_entries", "form_round_one", "list_matches", "get_match", "reschedule_match",
    # review console
    "ReviewAction", "ReviewOutcome", "list_for_review", "review",
    # notifications
    "notify_request_submitted", "notify_request_approved", "notify_request_rejected",
    "notify_bracket_formed", "format_request_summary", "format_bracket",
    # QR
    "upi_payment_uri", "upi_payment_qr_png", "generate_qr_png",
]
