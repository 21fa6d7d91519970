"""
Registration intake flow — the join wizard without the Telegram plumbing.

Flow:
  sport selection → participant details (shaped by pairing mode)
                  → payment evidence (only when the event charges a fee)
                  → confirm → pending join request

The draft is a plain dict-friendly dataclass so the bot can keep it in FSM
storage and resume after any message. Nothing reaches the store or the blob
service before ``confirm``; if ``confirm`` fails after an upload, every upload
made during that call is deleted again (best effort, failures only logged).
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.config import settings
from courtside.errors import (
    CapacityExceeded,
    CourtsideError,
    DeleteError,
    PersistenceError,
    RegistrationClosed,
    ValidationError,
)
from courtside.models.models import (
    ExperienceLevel,
    Gender,
    JoinRequest,
    PairingMode,
    SportEvent,
    Sports,
)
from courtside.services import capacity_ledger, join_requests
from courtside.services.evidence_store import EvidenceStore
from courtside.services.qr_service import upi_payment_qr_png
from courtside.services.tournament_service import Identity, require_sport_event
from courtside.validators import parse_details

logger = logging.getLogger(__name__)


class IntakeStep:
    SPORT_SELECTION = "sport_selection"
    DETAILS         = "details"
    PAYMENT         = "payment"
    DONE            = "done"

    ORDER = (SPORT_SELECTION, DETAILS, PAYMENT, DONE)


@dataclass
class Upload:
    """A file handed over by the surface (Telegram photo, web upload …)."""
    content: bytes
    filename: str
    content_type: Optional[str] = None


@dataclass
class FieldSpec:
    """One question of the details step."""
    name: str
    prompt: str
    kind: str = "text"                      # text | choice | photo
    choices: List[str] = field(default_factory=list)
    optional: bool = False


@dataclass
class PaymentQr:
    """Where the payer finds the organizer's QR: an uploaded image or a rendered PNG."""
    url: Optional[str] = None
    png: Optional[bytes] = None


@dataclass
class IntakeDraft:
    tournament_id: int
    step: str = IntakeStep.SPORT_SELECTION
    sport_event_id: Optional[int] = None
    pairing_mode: Optional[str] = None
    details: Optional[dict] = None
    request_id: Optional[int] = None

    def to_state(self) -> dict:
        return asdict(self)

    @classmethod
    def from_state(cls, data: dict) -> "IntakeDraft":
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)


def fields_for(event: SportEvent) -> List[FieldSpec]:
    """Questions asked in the details step for the event's pairing mode."""
    genders = list(Gender.ALL)
    player = [
        FieldSpec("player_name", "Enter the player's *full name*:"),
        FieldSpec("gender", "Select the player's *gender*:", kind="choice", choices=genders),
        FieldSpec("mobile_no", "Enter a *10-digit mobile number*:"),
    ]

    if event.pairing_mode == PairingMode.INDIVIDUAL:
        return player + [
            FieldSpec("age", "Enter the player's *age* (16–30):"),
            FieldSpec("affiliation", "College / club (send `-` to skip):", optional=True),
        ]

    if event.pairing_mode == PairingMode.PAIRED:
        partner = [
            FieldSpec("age", "Enter the player's *age* (16–30):"),
            FieldSpec("affiliation", "College / club (send `-` to skip):", optional=True),
            FieldSpec("partner_name", "Enter the *partner's full name*:"),
        ]
        if not event.is_mixed:
            partner.append(
                FieldSpec("partner_gender", "Select the *partner's gender*:", kind="choice", choices=genders)
            )
        partner += [
            FieldSpec("partner_mobile_no", "Enter the *partner's 10-digit mobile number*:"),
            FieldSpec("partner_age", "Enter the *partner's age* (16–30):"),
        ]
        return player + partner

    team = player + [
        FieldSpec(
            "experience_level", "Select your *experience level*:",
            kind="choice", choices=list(ExperienceLevel.ALL),
        ),
    ]
    roles = Sports.ROLES.get(event.sport)
    if roles:
        team.append(FieldSpec("roles", "Select your *playing role*:", kind="choice", choices=roles))
    team += [
        FieldSpec("photo", "Send a *photo* of yourself (used for team assembly):", kind="photo"),
        FieldSpec("additional_info", "Anything else the organizer should know? (send `-` to skip)", optional=True),
    ]
    return team


class IntakeFlow:
    """
    Drives one draft through the wizard.

    Parameters
    ----------
    session  : database session of the current update
    store    : evidence store used for proofs, photos and QR lookup
    identity : the submitting user
    draft    : wizard state, persisted by the caller between steps
    """

    def __init__(
        self,
        session: AsyncSession,
        store: EvidenceStore,
        identity: Identity,
        draft: IntakeDraft,
    ) -> None:
        self.session  = session
        self.store    = store
        self.identity = identity
        self.draft    = draft

    # ── Step 1: sport selection ───────────────────────────────────────────────

    async def select_sport(self, sport_event_id: int) -> SportEvent:
        event = await require_sport_event(self.session, sport_event_id)
        if event.tournament_id != self.draft.tournament_id:
            raise ValidationError("This event does not belong to the selected tournament.")
        if not event.tournament.registration_open():
            raise RegistrationClosed()
        if await capacity_ledger.is_full(self.session, event.tournament_id, event.id):
            raise CapacityExceeded()

        if self.draft.sport_event_id != event.id:
            # Another event means another form variant
            self.draft.details = None
        self.draft.sport_event_id = event.id
        self.draft.pairing_mode   = event.pairing_mode
        self.draft.step           = IntakeStep.DETAILS
        return event

    async def current_event(self) -> SportEvent:
        if self.draft.sport_event_id is None:
            raise ValidationError("Select an event first.")
        return await require_sport_event(self.session, self.draft.sport_event_id)

    # ── Step 2: participant details ───────────────────────────────────────────

    async def submit_details(self, answers: dict) -> dict:
        """
        Validate the collected answers for the event's variant.
        ``photo`` answers are not part of the payload and are ignored here.
        """
        event = await self.current_event()
        payload = {k: v for k, v in answers.items() if k != "photo" and v is not None}
        if isinstance(payload.get("roles"), str):
            payload["roles"] = [payload["roles"]]

        details = parse_details(
            event.pairing_mode,
            payload,
            gender_category=event.gender_category,
            allowed_roles=Sports.ROLES.get(event.sport),
        )
        self.draft.details = details.model_dump(mode="json")
        self.draft.step = IntakeStep.PAYMENT if event.requires_payment else IntakeStep.DONE
        return self.draft.details

    # ── Step 3: payment evidence ──────────────────────────────────────────────

    async def payment_qr(self) -> Optional[PaymentQr]:
        """
        The organizer's most recently uploaded QR code, or a UPI QR rendered
        from the tournament's UPI id. None when neither exists.
        """
        event = await self.current_event()
        tournament = event.tournament
        latest = await self.store.list_latest(
            str(tournament.organizer_id), bucket=settings.QR_CODE_BUCKET
        )
        if latest:
            return PaymentQr(url=self.store.get_public_url(latest, bucket=settings.QR_CODE_BUCKET))
        if tournament.upi_id:
            png = upi_payment_qr_png(
                tournament.upi_id,
                payee_name=tournament.name,
                amount=event.entry_fee,
                note=f"{event.display_name} entry",
            )
            return PaymentQr(png=png)
        return None

    # ── Navigation ────────────────────────────────────────────────────────────

    async def back(self) -> str:
        """Show the previous step. Validated data is kept."""
        step = self.draft.step
        if step == IntakeStep.DETAILS:
            self.draft.step = IntakeStep.SPORT_SELECTION
        elif step == IntakeStep.PAYMENT:
            self.draft.step = IntakeStep.DETAILS
        elif step == IntakeStep.DONE and self.draft.request_id is None:
            event = await self.current_event()
            self.draft.step = IntakeStep.PAYMENT if event.requires_payment else IntakeStep.DETAILS
        return self.draft.step

    # ── Confirm ───────────────────────────────────────────────────────────────

    async def confirm(
        self,
        proof: Optional[Upload] = None,
        photo: Optional[Upload] = None,
    ) -> JoinRequest:
        """
        Upload evidence, then submit the join request.

        On any failure after an upload the uploaded objects are deleted and
        the original error is re-raised.
        """
        if self.draft.step not in (IntakeStep.PAYMENT, IntakeStep.DONE) or not self.draft.details:
            raise ValidationError("Complete the participant details first.")
        event = await self.current_event()
        if event.requires_payment and proof is None:
            raise ValidationError(
                "Upload a screenshot of your payment to continue.",
                errors={"payment_proof": "required"},
            )
        if event.pairing_mode == PairingMode.TEAM and photo is None:
            raise ValidationError("A player photo is required.", errors={"photo": "required"})

        details = parse_details(
            event.pairing_mode,
            self.draft.details,
            gender_category=event.gender_category,
            allowed_roles=Sports.ROLES.get(event.sport),
        )

        uploaded: List[tuple[str, str]] = []   # (url, bucket)
        try:
            proof_url = None
            if event.requires_payment:
                proof_url = await self.store.upload(
                    proof.content, proof.filename, self.identity.id,
                    bucket=settings.PAYMENT_PROOF_BUCKET,
                    content_type=proof.content_type,
                )
                uploaded.append((proof_url, settings.PAYMENT_PROOF_BUCKET))

            photo_url = None
            if photo is not None and event.pairing_mode == PairingMode.TEAM:
                photo_url = await self.store.upload(
                    photo.content, photo.filename, self.identity.id,
                    bucket=settings.PLAYER_PHOTO_BUCKET,
                    content_type=photo.content_type,
                )
                uploaded.append((photo_url, settings.PLAYER_PHOTO_BUCKET))

            request = await join_requests.submit(
                self.session,
                self.identity,
                self.draft.tournament_id,
                event.id,
                details,
                payment_proof_url=proof_url,
                photo_url=photo_url,
            )
        except (CourtsideError, SQLAlchemyError) as exc:
            await self._compensate(uploaded)
            if isinstance(exc, SQLAlchemyError):
                raise PersistenceError() from exc
            raise

        self.draft.request_id = request.id
        self.draft.step = IntakeStep.DONE
        return request

    async def _compensate(self, uploaded: List[tuple[str, str]]) -> None:
        for url, bucket in uploaded:
            try:
                await self.store.delete(url, bucket=bucket)
            except DeleteError as exc:
                logger.warning("Orphaned upload left behind at %s: %s", url, exc)
            else:
                logger.info("Removed orphaned upload %s", url)
