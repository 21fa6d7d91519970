from courtside.models.base import Base, engine, AsyncSessionFactory, make_engine, make_session_factory
from courtside.models.models import (
    User,
    Tournament,
    SportEvent,
    JoinRequest,
    ParticipantRecord,
    Match,
    PairingMode,
    Gender,
    GenderCategory,
    ExperienceLevel,
    Sports,
    RequestStatus,
    MatchStatus,
    utcnow,
)

__all__ = [
    "Base",
    "engine",
    "AsyncSessionFactory",
    "make_engine",
    "make_session_factory",
    "User",
    "Tournament",
    "SportEvent",
    "JoinRequest",
    "ParticipantRecord",
    "Match",
    "PairingMode",
    "Gender",
    "GenderCategory",
    "ExperienceLevel",
    "Sports",
    "RequestStatus",
    "MatchStatus",
    "utcnow",
]
