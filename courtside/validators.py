"""
Input validation for the join wizard and tournament setup — Pydantic v2 models.

Participant details are a closed tagged union keyed by ``mode`` (the sport
event's pairing mode); ``parse_details`` is the single entry point and turns
pydantic errors into ``courtside.errors.ValidationError``.
"""
from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from courtside.errors import ValidationError
from courtside.models.models import Gender, GenderCategory, PairingMode

MOBILE_NUMBER_LENGTH = 10
MIN_AGE = 16
MAX_AGE = 30

_MOBILE_RE = re.compile(rf"^[0-9]{{{MOBILE_NUMBER_LENGTH}}}$")
_UPI_ID_RE = re.compile(r"^[\w.\-]{2,256}@[A-Za-z][A-Za-z0-9]{1,63}$")

GenderValue = Literal["male", "female"]
ExperienceValue = Literal["Beginner", "Intermediate", "Advanced", "Professional"]


def _clean_name(v: str) -> str:
    v = v.strip()
    if len(v) < 2:
        raise ValueError("Name must be at least 2 characters")
    if len(v) > 255:
        raise ValueError("Name must be at most 255 characters")
    return v


def _clean_mobile(v: str) -> str:
    v = v.strip().replace(" ", "")
    if not _MOBILE_RE.match(v):
        raise ValueError(f"Mobile number must be exactly {MOBILE_NUMBER_LENGTH} digits")
    return v


def validate_upi_id(upi_id: str) -> bool:
    """Basic shape check for a VPA such as ``club.treasurer@okbank``."""
    return bool(_UPI_ID_RE.match(upi_id.strip()))


def _clean_optional(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


# ─────────────────────────── Participant details ──────────────────────────────

class PlayerFields(BaseModel):
    """Fields every variant collects for the primary player."""

    player_name: str
    gender: GenderValue
    mobile_no: str

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("mobile_no")
    @classmethod
    def validate_mobile_no(cls, v: str) -> str:
        return _clean_mobile(v)


class IndividualEntry(PlayerFields):
    """Singles entry: one player, age 16–30, optional college / club."""

    mode: Literal["individual"] = PairingMode.INDIVIDUAL
    age: int = Field(ge=MIN_AGE, le=MAX_AGE)
    affiliation: Optional[str] = None

    @field_validator("affiliation")
    @classmethod
    def validate_affiliation(cls, v: Optional[str]) -> Optional[str]:
        return _clean_optional(v)


class PairedEntry(IndividualEntry):
    """
    Doubles entry: the player plus a partner sub-record.

    For mixed events the partner's gender is forced by ``parse_details``.
    """

    mode: Literal["paired"] = PairingMode.PAIRED
    partner_name: str
    partner_gender: GenderValue
    partner_mobile_no: str
    partner_age: int = Field(ge=MIN_AGE, le=MAX_AGE)

    @field_validator("partner_name")
    @classmethod
    def validate_partner_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("partner_mobile_no")
    @classmethod
    def validate_partner_mobile_no(cls, v: str) -> str:
        return _clean_mobile(v)

    @model_validator(mode="after")
    def partner_differs_from_player(self) -> "PairedEntry":
        if self.partner_mobile_no == self.mobile_no:
            raise ValueError("Partner must have a different mobile number")
        return self


class TeamEntry(PlayerFields):
    """Team / auction sport entry: one player, a photo and an experience level."""

    mode: Literal["team"] = PairingMode.TEAM
    experience_level: ExperienceValue
    roles: List[str] = Field(default_factory=list)
    additional_info: Optional[str] = None

    @field_validator("additional_info")
    @classmethod
    def validate_additional_info(cls, v: Optional[str]) -> Optional[str]:
        return _clean_optional(v)


ParticipantDetails = Annotated[
    Union[IndividualEntry, PairedEntry, TeamEntry],
    Field(discriminator="mode"),
]

_details_adapter: TypeAdapter[ParticipantDetails] = TypeAdapter(ParticipantDetails)


def parse_details(
    pairing_mode: str,
    answers: dict,
    gender_category: str = GenderCategory.MIXED,
    allowed_roles: Optional[List[str]] = None,
) -> Union[IndividualEntry, PairedEntry, TeamEntry]:
    """
    Validate raw wizard answers against the variant for ``pairing_mode``.

    Raises ``ValidationError`` with a field → reason map on failure.
    """
    if pairing_mode not in PairingMode.ALL:
        raise ValidationError(f"Unknown pairing mode: {pairing_mode}")

    data = dict(answers)
    data["mode"] = pairing_mode
    if pairing_mode == PairingMode.PAIRED and gender_category == GenderCategory.MIXED:
        gender = data.get("gender")
        if gender in Gender.ALL:
            data["partner_gender"] = Gender.opposite(gender)

    try:
        details = _details_adapter.validate_python(data)
    except PydanticValidationError as exc:
        errors = {}
        for err in exc.errors():
            field = ".".join(str(p) for p in err["loc"][1:]) or "details"
            errors[field] = err["msg"].removeprefix("Value error, ")
        raise ValidationError(_summarise(errors), errors=errors) from exc

    if isinstance(details, TeamEntry) and details.roles and allowed_roles is not None:
        unknown = [r for r in details.roles if r not in allowed_roles]
        if unknown:
            errors = {"roles": f"Unknown role(s): {', '.join(unknown)}"}
            raise ValidationError(_summarise(errors), errors=errors)
    return details


def _summarise(errors: dict) -> str:
    lines = [f"• {field}: {reason}" for field, reason in errors.items()]
    return "Please fix the following:\n" + "\n".join(lines)


# ─────────────────────────── Tournament setup ─────────────────────────────────

class TournamentData(BaseModel):
    """Tournament payload validated before it is written (cutoff ≤ start ≤ end)."""

    name: str
    registration_cutoff: datetime
    start_at: datetime
    end_at: datetime
    location: Optional[str] = None
    upi_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Tournament name must be at least 3 characters")
        return v

    @field_validator("upi_id")
    @classmethod
    def check_upi_id(cls, v: Optional[str]) -> Optional[str]:
        v = _clean_optional(v)
        if v is not None and not validate_upi_id(v):
            raise ValueError("UPI id must look like name@bank")
        return v

    @model_validator(mode="after")
    def validate_dates(self) -> "TournamentData":
        if not (self.registration_cutoff <= self.start_at <= self.end_at):
            raise ValueError("Dates must satisfy registration cutoff ≤ start ≤ end")
        return self


class SportEventData(BaseModel):
    """Sport event payload; capacity must be positive."""

    sport: str
    event_name: str
    pairing_mode: Literal["individual", "paired", "team"]
    gender_category: Literal["male", "female", "mixed"]
    capacity: int = Field(gt=0)
    entry_fee: float = Field(default=0, ge=0)
    details: Optional[str] = None

    @field_validator("sport", "event_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Must not be empty")
        return v
