"""
ORM models for the Courtside registration engine.

Domain overview
---------------
Tournament  — a multi-sport event owned by one organizer
  └─ SportEvent  — e.g. "Badminton · Mixed Doubles" (carries the capacity counter)
       ├─ JoinRequest       — a player's application (pending → approved | rejected)
       ├─ ParticipantRecord — confirmed entry, created once per approved request
       └─ Match             — round 1 bracket produced from the approved entries
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from courtside.models.base import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ─────────────────────────── Constants ────────────────────────────────────────

class PairingMode:
    INDIVIDUAL = "individual"   # one player per entry (singles, athletics, chess)
    PAIRED     = "paired"       # two players per entry (doubles)
    TEAM       = "team"         # one player record, assembled into teams later

    ALL = (INDIVIDUAL, PAIRED, TEAM)

    LABELS = {
        INDIVIDUAL: "Singles",
        PAIRED:     "Doubles",
        TEAM:       "Team / Auction",
    }


class Gender:
    MALE   = "male"
    FEMALE = "female"

    ALL = (MALE, FEMALE)

    LABELS = {
        MALE:   "👨 Male",
        FEMALE: "👩 Female",
    }

    @classmethod
    def opposite(cls, gender: str) -> str:
        return cls.FEMALE if gender == cls.MALE else cls.MALE


class GenderCategory:
    MALE   = "male"
    FEMALE = "female"
    MIXED  = "mixed"

    ALL = (MALE, FEMALE, MIXED)


class ExperienceLevel:
    BEGINNER     = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED     = "Advanced"
    PROFESSIONAL = "Professional"

    ALL = (BEGINNER, INTERMEDIATE, ADVANCED, PROFESSIONAL)


class Sports:
    """Sport catalogue and the pairing mode each sport defaults to."""

    RACQUET = ("Tennis", "Badminton", "Table Tennis")
    AUCTION = ("Cricket", "Football", "Volleyball", "Basketball", "Kabaddi")

    ROLES: dict[str, list[str]] = {
        "Cricket":    ["Batsman", "Bowler", "All Rounder", "Wicket Keeper"],
        "Football":   ["Goalkeeper", "Defender", "Midfielder", "Winger", "Striker"],
        "Volleyball": ["Setter", "Outside Hitter", "Middle Blocker", "Opposite Hitter", "Libero"],
        "Basketball": ["Point Guard", "Shooting Guard", "Small Forward", "Power Forward", "Center"],
        "Kabaddi":    ["Raider", "Defender", "All Rounder"],
    }

    @classmethod
    def default_pairing_mode(cls, sport: str, play_type: str = "singles") -> str:
        if sport in cls.AUCTION:
            return PairingMode.TEAM
        if sport in cls.RACQUET and play_type in ("doubles", "mixed"):
            return PairingMode.PAIRED
        return PairingMode.INDIVIDUAL


class RequestStatus:
    PENDING  = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL      = (PENDING, APPROVED, REJECTED)
    TERMINAL = (APPROVED, REJECTED)

    EMOJI = {
        PENDING:  "⏳",
        APPROVED: "✅",
        REJECTED: "❌",
    }


class MatchStatus:
    PENDING   = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# ─────────────────────────── Models ───────────────────────────────────────────

class User(Base):
    """Telegram user: a player, an organizer, or both."""
    __tablename__ = "users"

    id:          Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    telegram_id: Mapped[int]           = mapped_column(BigInteger, unique=True, index=True)
    username:    Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    first_name:  Mapped[str]           = mapped_column(String(255))
    last_name:   Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at:  Mapped[datetime]      = mapped_column(DateTime, default=utcnow)

    @property
    def display_name(self) -> str:
        parts = [self.first_name]
        if self.last_name:
            parts.append(self.last_name)
        return " ".join(parts)


class Tournament(Base):
    __tablename__ = "tournaments"
    __table_args__ = (
        CheckConstraint(
            "registration_cutoff <= start_at AND start_at <= end_at",
            name="ck_tournaments_dates",
        ),
    )

    id:                  Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    name:                Mapped[str]           = mapped_column(String(255))
    organizer_id:        Mapped[int]           = mapped_column(ForeignKey("users.id"), index=True)
    registration_cutoff: Mapped[datetime]      = mapped_column(DateTime)
    start_at:            Mapped[datetime]      = mapped_column(DateTime)
    end_at:              Mapped[datetime]      = mapped_column(DateTime)
    location:            Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    upi_id:              Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at:          Mapped[datetime]      = mapped_column(DateTime, default=utcnow)

    organizer:     Mapped["User"]                    = relationship()
    sport_events:  Mapped[List["SportEvent"]]        = relationship(
        back_populates="tournament", cascade="all, delete-orphan", order_by="SportEvent.id"
    )
    join_requests: Mapped[List["JoinRequest"]]       = relationship(
        back_populates="tournament", cascade="all, delete-orphan"
    )
    participants:  Mapped[List["ParticipantRecord"]] = relationship(
        back_populates="tournament", cascade="all, delete-orphan"
    )
    matches:       Mapped[List["Match"]]             = relationship(
        back_populates="tournament", cascade="all, delete-orphan"
    )

    def registration_open(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) <= self.registration_cutoff


class SportEvent(Base):
    """
    One competition unit of a tournament.

    ``registered_count`` is the capacity counter; it is only ever changed by
    the conditional update in ``capacity_ledger.try_increment``.
    """
    __tablename__ = "sport_events"
    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_sport_events_capacity"),
        CheckConstraint(
            "registered_count >= 0 AND registered_count <= capacity",
            name="ck_sport_events_registered",
        ),
    )

    id:               Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    tournament_id:    Mapped[int]           = mapped_column(ForeignKey("tournaments.id", ondelete="CASCADE"))
    sport:            Mapped[str]           = mapped_column(String(100))
    event_name:       Mapped[str]           = mapped_column(String(255))
    pairing_mode:     Mapped[str]           = mapped_column(String(20))     # PairingMode.*
    gender_category:  Mapped[str]           = mapped_column(String(10))     # GenderCategory.*
    capacity:         Mapped[int]           = mapped_column(Integer)        # max teams or max participants
    registered_count: Mapped[int]           = mapped_column(Integer, default=0)
    entry_fee:        Mapped[float]         = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    details:          Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    tournament: Mapped["Tournament"] = relationship(back_populates="sport_events")

    @property
    def requires_payment(self) -> bool:
        return bool(self.entry_fee and self.entry_fee > 0)

    @property
    def is_mixed(self) -> bool:
        return self.gender_category == GenderCategory.MIXED

    @property
    def display_name(self) -> str:
        return f"{self.sport} · {self.event_name}"


class JoinRequest(Base):
    """A registration attempt governed by the join request state machine."""
    __tablename__ = "join_requests"
    __table_args__ = (
        # One active (non-rejected) request per submitter and event
        Index(
            "uq_join_requests_active",
            "user_id",
            "sport_event_id",
            unique=True,
            sqlite_where=text("status != 'rejected'"),
            postgresql_where=text("status != 'rejected'"),
        ),
    )

    id:                Mapped[int]                 = mapped_column(Integer, primary_key=True, autoincrement=True)
    tournament_id:     Mapped[int]                 = mapped_column(ForeignKey("tournaments.id", ondelete="CASCADE"), index=True)
    sport_event_id:    Mapped[int]                 = mapped_column(ForeignKey("sport_events.id", ondelete="CASCADE"))
    user_id:           Mapped[int]                 = mapped_column(ForeignKey("users.id"))
    sport:             Mapped[str]                 = mapped_column(String(100))

    player_name:       Mapped[str]                 = mapped_column(String(255))
    gender:            Mapped[str]                 = mapped_column(String(10))
    mobile_no:         Mapped[str]                 = mapped_column(String(20))
    age:               Mapped[Optional[int]]       = mapped_column(Integer, nullable=True)
    affiliation:       Mapped[Optional[str]]       = mapped_column(String(255), nullable=True)
    roles:             Mapped[Optional[list]]      = mapped_column(JSON, nullable=True)
    experience_level:  Mapped[Optional[str]]       = mapped_column(String(20), nullable=True)
    photo_url:         Mapped[Optional[str]]       = mapped_column(String(1024), nullable=True)

    partner_name:      Mapped[Optional[str]]       = mapped_column(String(255), nullable=True)
    partner_gender:    Mapped[Optional[str]]       = mapped_column(String(10), nullable=True)
    partner_mobile_no: Mapped[Optional[str]]       = mapped_column(String(20), nullable=True)
    partner_age:       Mapped[Optional[int]]       = mapped_column(Integer, nullable=True)

    additional_info:   Mapped[Optional[str]]       = mapped_column(Text, nullable=True)
    payment_proof_url: Mapped[Optional[str]]       = mapped_column(String(1024), nullable=True)

    status:            Mapped[str]                 = mapped_column(String(20), default=RequestStatus.PENDING)
    submitted_at:      Mapped[datetime]            = mapped_column(DateTime, default=utcnow)
    reviewed_at:       Mapped[Optional[datetime]]  = mapped_column(DateTime, nullable=True)
    reviewer_notes:    Mapped[Optional[str]]       = mapped_column(Text, nullable=True)

    tournament:  Mapped["Tournament"] = relationship(back_populates="join_requests")
    sport_event: Mapped["SportEvent"] = relationship()
    user:        Mapped["User"]       = relationship()

    @property
    def is_terminal(self) -> bool:
        return self.status in RequestStatus.TERMINAL

    @property
    def status_emoji(self) -> str:
        return RequestStatus.EMOJI.get(self.status, "❓")

    @property
    def entry_name(self) -> str:
        if self.partner_name:
            return f"{self.player_name} / {self.partner_name}"
        return self.player_name


class ParticipantRecord(Base):
    """Confirmed membership, written once per approved join request."""
    __tablename__ = "participant_records"

    id:              Mapped[int]      = mapped_column(Integer, primary_key=True, autoincrement=True)
    tournament_id:   Mapped[int]      = mapped_column(ForeignKey("tournaments.id", ondelete="CASCADE"))
    sport_event_id:  Mapped[int]      = mapped_column(ForeignKey("sport_events.id", ondelete="CASCADE"), index=True)
    join_request_id: Mapped[int]      = mapped_column(ForeignKey("join_requests.id", ondelete="CASCADE"), unique=True)
    user_id:         Mapped[int]      = mapped_column(ForeignKey("users.id"))
    display_name:    Mapped[str]      = mapped_column(String(512))
    role:            Mapped[str]      = mapped_column(String(20), default="player")
    joined_at:       Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    tournament:   Mapped["Tournament"]  = relationship(back_populates="participants")
    sport_event:  Mapped["SportEvent"]  = relationship()
    join_request: Mapped["JoinRequest"] = relationship()


class Match(Base):
    """
    A bracket match. Round 1 only is produced by the bracket engine.
    A bye has no second occupant and is completed on creation.
    """
    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint(
            "sport_event_id", "round_number", "match_number",
            name="uq_matches_event_round_number",
        ),
    )

    id:               Mapped[int]                = mapped_column(Integer, primary_key=True, autoincrement=True)
    tournament_id:    Mapped[int]                = mapped_column(ForeignKey("tournaments.id", ondelete="CASCADE"))
    sport_event_id:   Mapped[int]                = mapped_column(ForeignKey("sport_events.id", ondelete="CASCADE"))
    round_number:     Mapped[int]                = mapped_column(Integer, default=1)
    match_number:     Mapped[int]                = mapped_column(Integer)
    participant_a_id: Mapped[int]                = mapped_column(ForeignKey("participant_records.id", ondelete="CASCADE"))
    participant_b_id: Mapped[Optional[int]]      = mapped_column(ForeignKey("participant_records.id", ondelete="CASCADE"), nullable=True)
    scheduled_at:     Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    status:           Mapped[str]                = mapped_column(String(20), default=MatchStatus.PENDING)
    winner_id:        Mapped[Optional[int]]      = mapped_column(ForeignKey("participant_records.id", ondelete="SET NULL"), nullable=True)

    tournament:    Mapped["Tournament"]                  = relationship(back_populates="matches")
    sport_event:   Mapped["SportEvent"]                  = relationship()
    participant_a: Mapped["ParticipantRecord"]           = relationship(foreign_keys=[participant_a_id])
    participant_b: Mapped[Optional["ParticipantRecord"]] = relationship(foreign_keys=[participant_b_id])

    @property
    def is_bye(self) -> bool:
        return self.participant_b_id is None
