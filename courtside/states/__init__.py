from courtside.states.intake_states import IntakeStates
from courtside.states.organizer_states import (
    TournamentSetupStates,
    SportEventSetupStates,
    ReviewStates,
    QrUploadStates,
    EditStates,
    MatchScheduleStates,
)

__all__ = [
    "IntakeStates",
    "TournamentSetupStates", "SportEventSetupStates",
    "ReviewStates", "QrUploadStates", "EditStates", "MatchScheduleStates",
]
