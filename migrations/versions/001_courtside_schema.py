"""Courtside schema — tournaments, sport events, join requests, participants, matches

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

Changes:
  - users, tournaments, sport_events (capacity counter + CHECK constraints)
  - join_requests with the partial unique index on active requests
  - participant_records (one per approved join request)
  - matches with unique (sport_event_id, round_number, match_number)
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("telegram_id", sa.BigInteger(), nullable=False),
        sa.Column("username", sa.String(255), nullable=True),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_telegram_id", "users", ["telegram_id"], unique=True)

    # ── tournaments ───────────────────────────────────────────────────────────
    op.create_table(
        "tournaments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("organizer_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("registration_cutoff", sa.DateTime(), nullable=False),
        sa.Column("start_at", sa.DateTime(), nullable=False),
        sa.Column("end_at", sa.DateTime(), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("upi_id", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "registration_cutoff <= start_at AND start_at <= end_at",
            name="ck_tournaments_dates",
        ),
    )
    op.create_index("ix_tournaments_organizer_id", "tournaments", ["organizer_id"])

    # ── sport_events: capacity counter lives here ─────────────────────────────
    op.create_table(
        "sport_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "tournament_id",
            sa.Integer(),
            sa.ForeignKey("tournaments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sport", sa.String(100), nullable=False),
        sa.Column("event_name", sa.String(255), nullable=False),
        sa.Column("pairing_mode", sa.String(20), nullable=False),
        sa.Column("gender_category", sa.String(10), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("registered_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("entry_fee", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("details", sa.Text(), nullable=True),
        sa.CheckConstraint("capacity > 0", name="ck_sport_events_capacity"),
        sa.CheckConstraint(
            "registered_count >= 0 AND registered_count <= capacity",
            name="ck_sport_events_registered",
        ),
    )

    # ── join_requests ─────────────────────────────────────────────────────────
    op.create_table(
        "join_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "tournament_id",
            sa.Integer(),
            sa.ForeignKey("tournaments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "sport_event_id",
            sa.Integer(),
            sa.ForeignKey("sport_events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("sport", sa.String(100), nullable=False),
        sa.Column("player_name", sa.String(255), nullable=False),
        sa.Column("gender", sa.String(10), nullable=False),
        sa.Column("mobile_no", sa.String(20), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("affiliation", sa.String(255), nullable=True),
        sa.Column("roles", sa.JSON(), nullable=True),
        sa.Column("experience_level", sa.String(20), nullable=True),
        sa.Column("photo_url", sa.String(1024), nullable=True),
        sa.Column("partner_name", sa.String(255), nullable=True),
        sa.Column("partner_gender", sa.String(10), nullable=True),
        sa.Column("partner_mobile_no", sa.String(20), nullable=True),
        sa.Column("partner_age", sa.Integer(), nullable=True),
        sa.Column("additional_info", sa.Text(), nullable=True),
        sa.Column("payment_proof_url", sa.String(1024), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("submitted_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("reviewer_notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_join_requests_tournament_id", "join_requests", ["tournament_id"])
    # One active (non-rejected) request per submitter and event
    op.create_index(
        "uq_join_requests_active",
        "join_requests",
        ["user_id", "sport_event_id"],
        unique=True,
        postgresql_where=sa.text("status != 'rejected'"),
        sqlite_where=sa.text("status != 'rejected'"),
    )

    # ── participant_records ───────────────────────────────────────────────────
    op.create_table(
        "participant_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "tournament_id",
            sa.Integer(),
            sa.ForeignKey("tournaments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "sport_event_id",
            sa.Integer(),
            sa.ForeignKey("sport_events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "join_request_id",
            sa.Integer(),
            sa.ForeignKey("join_requests.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("display_name", sa.String(512), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="player"),
        sa.Column("joined_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_participant_records_sport_event_id", "participant_records", ["sport_event_id"])

    # ── matches ───────────────────────────────────────────────────────────────
    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "tournament_id",
            sa.Integer(),
            sa.ForeignKey("tournaments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "sport_event_id",
            sa.Integer(),
            sa.ForeignKey("sport_events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("round_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("match_number", sa.Integer(), nullable=False),
        sa.Column(
            "participant_a_id",
            sa.Integer(),
            sa.ForeignKey("participant_records.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "participant_b_id",
            sa.Integer(),
            sa.ForeignKey("participant_records.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("scheduled_at", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column(
            "winner_id",
            sa.Integer(),
            sa.ForeignKey("participant_records.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.UniqueConstraint(
            "sport_event_id", "round_number", "match_number",
            name="uq_matches_event_round_number",
        ),
    )


def downgrade() -> None:
    op.drop_table("matches")
    op.drop_index("ix_participant_records_sport_event_id", table_name="participant_records")
    op.drop_table("participant_records")
    op.drop_index("uq_join_requests_active", table_name="join_requests")
    op.drop_index("ix_join_requests_tournament_id", table_name="join_requests")
    op.drop_table("join_requests")
    op.drop_table("sport_events")
    op.drop_index("ix_tournaments_organizer_id", table_name="tournaments")
    op.drop_table("tournaments")
    op.drop_index("ix_users_telegram_id", table_name="users")
    op.drop_table("users")
