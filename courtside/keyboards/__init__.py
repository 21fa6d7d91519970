from courtside.keyboards.callbacks import (
    MainMenuCb,
    TournamentCb,
    EventCb,
    IntakeCb,
    ReviewCb,
    SetupCb,
    EditCb,
    MatchCb,
)
from courtside.keyboards.main_menu import main_menu, back_to_main
from courtside.keyboards.registration_kb import (
    tournament_list_kb,
    event_list_kb,
    choice_kb,
    question_kb,
    confirm_details_kb,
)
from courtside.keyboards.organizer_kb import (
    organizer_tournaments_kb,
    tournament_detail_kb,
    confirm_action_kb,
    review_list_kb,
    review_request_kb,
    sport_choice_kb,
    pairing_mode_kb,
    gender_category_kb,
    skip_kb,
    event_created_kb,
    bracket_confirm_kb,
    back_to_tournament_kb,
    edit_fields_kb,
    match_list_kb,
)

__all__ = [
    # callbacks
    "MainMenuCb", "TournamentCb", "EventCb", "IntakeCb", "ReviewCb", "SetupCb", "EditCb", "MatchCb",
    # main menu
    "main_menu", "back_to_main",
    # join wizard
    "tournament_list_kb", "event_list_kb", "choice_kb", "question_kb", "confirm_details_kb",
    # organizer
    "organizer_tournaments_kb", "tournament_detail_kb", "confirm_action_kb",
    "review_list_kb", "review_request_kb",
    "sport_choice_kb", "pairing_mode_kb", "gender_category_kb", "skip_kb",
    "event_created_kb", "bracket_confirm_kb",
    "back_to_tournament_kb", "edit_fields_kb", "match_list_kb",
]
