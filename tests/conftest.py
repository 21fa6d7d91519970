"""
Shared pytest fixtures for Courtside tests.

Sets required environment variables BEFORE any courtside module is imported so
that pydantic-settings and SQLAlchemy engine initialisation use safe test values.
"""
from __future__ import annotations

import json
import os
from datetime import timedelta
from typing import AsyncGenerator, List

# ── Set env vars before any courtside import ──────────────────────────────────
os.environ.setdefault("BOT_TOKEN", "test-token-for-pytest")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STORAGE_URL", "https://storage.test")
os.environ.setdefault("STORAGE_SERVICE_KEY", "test-service-key")

# ── Third-party ───────────────────────────────────────────────────────────────
import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# ── Courtside imports (safe after env vars are set) ───────────────────────────
from courtside.models.base import Base, make_engine, make_session_factory
from courtside.models.models import GenderCategory, PairingMode, utcnow
from courtside.services.evidence_store import EvidenceStore
from courtside.services.tournament_service import (
    create_sport_event,
    create_tournament,
    identity_of,
    upsert_user,
)
from courtside.validators import parse_details

STORAGE_BASE = "https://storage.test"


# ── DB fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture
async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a fresh AsyncSession backed by an isolated in-memory SQLite database.
    Schema is created fresh for every test function; engine is always disposed
    on teardown, even if the test raises an exception.
    """
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with factory() as session:
            yield session
    finally:
        await engine.dispose()


@pytest.fixture
async def file_session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """
    Session factory over a SQLite file, so several sessions (connections) can
    work on the same data concurrently.
    """
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'courtside.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield make_session_factory(engine)
    finally:
        await engine.dispose()


# ── Domain factories ──────────────────────────────────────────────────────────

@pytest.fixture
def make_identity():
    """Factory fixture: upserts a Telegram user and returns its Identity."""
    async def _make(session, telegram_id: int = 1001, first_name: str = "Asha", last_name: str = "Rao"):
        user = await upsert_user(session, telegram_id, first_name, last_name, None)
        return identity_of(user)
    return _make


@pytest.fixture
def make_tournament():
    """Factory fixture: a tournament with registration open for another week."""
    async def _make(session, organizer, **overrides):
        now = utcnow()
        fields = dict(
            name="City Open",
            registration_cutoff=now + timedelta(days=7),
            start_at=now + timedelta(days=10),
            end_at=now + timedelta(days=12),
            location="Indoor Stadium",
            upi_id=None,
        )
        fields.update(overrides)
        return await create_tournament(session, organizer, **fields)
    return _make


@pytest.fixture
def make_event():
    """Factory fixture: a free men's singles badminton event with 8 slots."""
    async def _make(session, tournament_id: int, organizer, **overrides):
        fields = dict(
            sport="Badminton",
            event_name="Men's Singles",
            pairing_mode=PairingMode.INDIVIDUAL,
            gender_category=GenderCategory.MALE,
            capacity=8,
            entry_fee=0,
        )
        fields.update(overrides)
        return await create_sport_event(session, tournament_id, organizer, **fields)
    return _make


@pytest.fixture
def individual_answers():
    def _make(**overrides) -> dict:
        answers = dict(player_name="Ravi Kumar", gender="male", mobile_no="9876543210", age="21")
        answers.update(overrides)
        return answers
    return _make


@pytest.fixture
def paired_answers():
    def _make(**overrides) -> dict:
        answers = dict(
            player_name="Ravi Kumar", gender="male", mobile_no="9876543210", age="21",
            partner_name="Meera Iyer", partner_gender="female",
            partner_mobile_no="9123456780", partner_age="22",
        )
        answers.update(overrides)
        return answers
    return _make


@pytest.fixture
def team_answers():
    def _make(**overrides) -> dict:
        answers = dict(
            player_name="Ravi Kumar", gender="male", mobile_no="9876543210",
            experience_level="Intermediate", roles=["Bowler"],
        )
        answers.update(overrides)
        return answers
    return _make


@pytest.fixture
def individual_details(individual_answers):
    """Factory fixture: validated IndividualEntry; mobile varies per call via overrides."""
    def _make(**overrides):
        return parse_details(PairingMode.INDIVIDUAL, individual_answers(**overrides))
    return _make


# ── Blob store double ─────────────────────────────────────────────────────────

class FakeStorage:
    """
    In-process stand-in for the storage REST API, plugged into httpx via
    MockTransport. Records every request it sees.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.listing: list = []
        self.fail_upload = False
        self.fail_delete = False
        self.fail_list   = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "POST" and path.startswith("/storage/v1/object/list/"):
            if self.fail_list:
                return httpx.Response(503, json={"error": "unavailable"})
            return httpx.Response(200, json=self.listing)
        if request.method == "POST":
            if self.fail_upload:
                return httpx.Response(500, json={"error": "internal"})
            return httpx.Response(200, json={"Key": path.removeprefix("/storage/v1/object/")})
        if request.method == "DELETE":
            if self.fail_delete:
                return httpx.Response(500, json={"error": "internal"})
            return httpx.Response(200, json=[])
        return httpx.Response(404)

    @property
    def uploads(self) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == "POST" and not r.url.path.startswith("/storage/v1/object/list/")
        ]

    @property
    def deletes(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "DELETE"]

    @staticmethod
    def uploaded_path(request: httpx.Request, bucket: str) -> str:
        return request.url.path.removeprefix(f"/storage/v1/object/{bucket}/")

    @staticmethod
    def deleted_paths(request: httpx.Request) -> list:
        return json.loads(request.content)["prefixes"]


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
async def evidence_store(storage) -> AsyncGenerator[EvidenceStore, None]:
    store = EvidenceStore(
        STORAGE_BASE,
        "test-service-key",
        max_bytes=5 * 1024 * 1024,
        transport=httpx.MockTransport(storage.handler),
    )
    try:
        yield store
    finally:
        await store.close()
