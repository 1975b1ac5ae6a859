"""Initial LegalTendr schema

Revision ID: 001
Revises: None
Create Date: 2025-01-20 00:00:00.000000+00:00

What:  Creates every table (accounts, catalog, cases, swipes, conversations,
       sessions) and seeds the eight default legal specialties.

Rollback: downgrade() drops everything (destructive — all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DEFAULT_SPECIALTIES = [
    ("s1", "Family Law", "Marriage, annulment, custody and support"),
    ("s2", "Corporate Law", "Business formation, contracts and compliance"),
    ("s3", "Immigration Law", "Visas, residency and citizenship"),
    ("s4", "Real Estate Law", "Property transactions, titles and leases"),
    ("s5", "Criminal Law", "Defense and prosecution of criminal cases"),
    ("s6", "Employment Law", "Labor disputes, dismissal and workplace rights"),
    ("s7", "Environmental Law", "Land use, pollution and natural resources"),
    ("s8", "Intellectual Property Law", "Patents, trademarks and copyright"),
]


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
    ]


def upgrade() -> None:
    # ── Accounts ──────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("user_type", sa.String(20), nullable=False,
                  comment="client, lawyer or admin"),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("phone_number", sa.String(30), nullable=True),
        sa.Column("profile_picture_url", sa.String(500), nullable=True),
        sa.Column("province_id", sa.String(20), nullable=True),
        sa.Column("province_name", sa.String(100), nullable=True),
        sa.Column("city_id", sa.String(20), nullable=True),
        sa.Column("city_name", sa.String(100), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("user_id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "clients",
        sa.Column("client_id", sa.String(50), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["client_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("client_id"),
    )

    op.create_table(
        "lawyers",
        sa.Column("lawyer_id", sa.String(50), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("matches_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("rating", sa.Numeric(3, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("reviews", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("years_of_experience", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["lawyer_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("lawyer_id"),
    )
    # Discovery orders by rating, then reviews
    op.create_index("idx_lawyers_rating", "lawyers", ["rating", "reviews"])

    op.create_table(
        "sessions",
        sa.Column("token_hash", sa.String(64), nullable=False,
                  comment="SHA-256 of the session token"),
        sa.Column("user_id", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("token_hash"),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])

    # ── Catalog ───────────────────────────────────────────────────────────
    specialties = op.create_table(
        "specialties",
        sa.Column("specialty_id", sa.String(50), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("specialty_id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "lawyer_specialties",
        sa.Column("lawyer_id", sa.String(50), nullable=False),
        sa.Column("specialty_id", sa.String(50), nullable=False),
        sa.ForeignKeyConstraint(["lawyer_id"], ["lawyers.lawyer_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["specialty_id"], ["specialties.specialty_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("lawyer_id", "specialty_id"),
    )
    op.create_index("ix_lawyer_specialties_specialty_id", "lawyer_specialties", ["specialty_id"])

    op.create_table(
        "geo_codes",
        sa.Column("id", sa.String(20), nullable=False, comment="PSGC code"),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("geo_level", sa.String(10), nullable=False, comment="Prov, City or Mun"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_geo_codes_geo_level", "geo_codes", ["geo_level"])

    # ── Cases ─────────────────────────────────────────────────────────────
    op.create_table(
        "cases",
        sa.Column("case_id", sa.Uuid(), nullable=False),
        sa.Column("client_id", sa.String(50), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("hired_lawyer_id", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'open'"),
                  comment="open, in_progress or closed"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["client_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["hired_lawyer_id"], ["lawyers.lawyer_id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("case_id"),
    )
    op.create_index("idx_cases_client_created", "cases", ["client_id", "created_at"])
    op.create_index("ix_cases_hired_lawyer_id", "cases", ["hired_lawyer_id"])

    op.create_table(
        "case_categories",
        sa.Column("case_id", sa.Uuid(), nullable=False),
        sa.Column("specialty_id", sa.String(50), nullable=False),
        sa.ForeignKeyConstraint(["case_id"], ["cases.case_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["specialty_id"], ["specialties.specialty_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("case_id", "specialty_id"),
    )

    # ── Swipes and conversations ──────────────────────────────────────────
    op.create_table(
        "swipes",
        sa.Column("swipe_id", sa.Uuid(), nullable=False),
        sa.Column("client_id", sa.String(50), nullable=False),
        sa.Column("lawyer_id", sa.String(50), nullable=False),
        sa.Column("matched", sa.Boolean(), nullable=False, comment="true for a right swipe"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["client_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["lawyer_id"], ["lawyers.lawyer_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("swipe_id"),
        sa.UniqueConstraint("client_id", "lawyer_id", name="uq_swipes_client_lawyer"),
    )
    op.create_index("idx_swipes_client_created", "swipes", ["client_id", "created_at"])
    op.create_index("ix_swipes_lawyer_id", "swipes", ["lawyer_id"])

    op.create_table(
        "conversations",
        sa.Column("conversation_id", sa.Uuid(), nullable=False),
        sa.Column("client_id", sa.String(50), nullable=False),
        sa.Column("lawyer_id", sa.String(50), nullable=False),
        sa.Column("match_id", sa.Uuid(), nullable=True),
        sa.Column("latest_message_id", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["client_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["lawyer_id"], ["lawyers.lawyer_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["match_id"], ["swipes.swipe_id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("conversation_id"),
        sa.UniqueConstraint("client_id", "lawyer_id", name="uq_conversations_pair"),
    )
    op.create_index("ix_conversations_lawyer_id", "conversations", ["lawyer_id"])

    op.create_table(
        "messages",
        sa.Column("message_id", sa.Uuid(), nullable=False),
        sa.Column("conversation_id", sa.Uuid(), nullable=False),
        sa.Column("sender_id", sa.String(50), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.ForeignKeyConstraint(
            ["conversation_id"], ["conversations.conversation_id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["sender_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("message_id"),
    )
    op.create_index(
        "idx_messages_conversation_timestamp", "messages", ["conversation_id", "timestamp"]
    )

    # ── Seed data ─────────────────────────────────────────────────────────
    op.bulk_insert(
        specialties,
        [
            {"specialty_id": sid, "name": name, "description": description}
            for sid, name, description in DEFAULT_SPECIALTIES
        ],
    )


def downgrade() -> None:
    """Drop every table in reverse dependency order."""
    op.drop_index("idx_messages_conversation_timestamp", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_conversations_lawyer_id", table_name="conversations")
    op.drop_table("conversations")
    op.drop_index("ix_swipes_lawyer_id", table_name="swipes")
    op.drop_index("idx_swipes_client_created", table_name="swipes")
    op.drop_table("swipes")
    op.drop_table("case_categories")
    op.drop_index("ix_cases_hired_lawyer_id", table_name="cases")
    op.drop_index("idx_cases_client_created", table_name="cases")
    op.drop_table("cases")
    op.drop_index("ix_geo_codes_geo_level", table_name="geo_codes")
    op.drop_table("geo_codes")
    op.drop_index("ix_lawyer_specialties_specialty_id", table_name="lawyer_specialties")
    op.drop_table("lawyer_specialties")
    op.drop_table("specialties")
    op.drop_index("ix_sessions_user_id", table_name="sessions")
    op.drop_table("sessions")
    op.drop_index("idx_lawyers_rating", table_name="lawyers")
    op.drop_table("lawyers")
    op.drop_table("clients")
    op.drop_table("users")
