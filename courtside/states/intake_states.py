from aiogram.fsm.state import State, StatesGroup


class IntakeStates(StatesGroup):
    """FSM for the join wizard. The IntakeDraft itself lives in FSM data."""
    choose_tournament = State()   # Select tournament from list
    choose_event      = State()   # Select sport event of the tournament
    answer_field      = State()   # One question per message, driven by fields_for()
    confirm_details   = State()   # Summary → confirm / back
    upload_proof      = State()   # Payment screenshot (fee events only)
