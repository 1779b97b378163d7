"""initial

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "call_claims",
        sa.Column("phone_norm", sa.String(length=32), primary_key=True),
        sa.Column("last_pbx_call_id", sa.String(length=128), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="missed"),
        sa.Column("handled_by_ext", sa.String(length=32), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_call_claims_status", "call_claims", ["status"])
    op.create_index("ix_call_claims_handled_by_ext", "call_claims", ["handled_by_ext"])
    op.create_index("ix_call_claims_updated_at", "call_claims", ["updated_at"])
    op.create_index("ix_call_claims_expires_at", "call_claims", ["expires_at"])

    op.create_table(
        "extension_mappings",
        sa.Column("phone_number", sa.String(length=32), primary_key=True),
        sa.Column("extension", sa.String(length=32), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_extension_mappings_created_at", "extension_mappings", ["created_at"])

    op.create_table(
        "credentials",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False, server_default="session"),
        sa.Column("extension", sa.String(length=32), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.UniqueConstraint("token_hash", name="uq_credentials_token_hash"),
    )
    op.create_index("ix_credentials_expires_at", "credentials", ["expires_at"])


def downgrade() -> None:
    op.drop_table("credentials")
    op.drop_index("ix_extension_mappings_created_at", table_name="extension_mappings")
    op.drop_table("extension_mappings")
    op.drop_index("ix_call_claims_expires_at", table_name="call_claims")
    op.drop_index("ix_call_claims_updated_at", table_name="call_claims")
    op.drop_index("ix_call_claims_handled_by_ext", table_name="call_claims")
    op.drop_index("ix_call_claims_status", table_name="call_claims")
    op.drop_table("call_claims")
