from aiogram.fsm.state import State, StatesGroup


class TournamentSetupStates(StatesGroup):
    """FSM for the tournament creation wizard."""
    enter_name     = State()
    enter_dates    = State()   # "cutoff; start; end" in one message
    enter_location = State()
    enter_upi      = State()


class SportEventSetupStates(StatesGroup):
    """FSM for adding a sport event to a tournament."""
    choose_sport     = State()
    enter_event_name = State()
    choose_mode      = State()
    choose_gender    = State()
    enter_capacity   = State()
    enter_fee        = State()


class ReviewStates(StatesGroup):
    enter_notes = State()      # Reviewer notes before approve / reject


class QrUploadStates(StatesGroup):
    send_photo = State()       # Organizer sends their payment QR image


class EditStates(StatesGroup):
    enter_value = State()      # New value for the field picked in the edit menu


class MatchScheduleStates(StatesGroup):
    enter_time = State()       # New start time for one round-1 match
