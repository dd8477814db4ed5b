"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for the Campus Gate Pass service:
principals, gate_pass_requests.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- principals ---
    op.create_table(
        "principals",
        sa.Column("principal_id", sa.String(36), primary_key=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("photo_url", sa.String(500), nullable=True),
        sa.Column("profile_complete", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("enrollment_number", sa.String(50), nullable=True),
        sa.Column("course", sa.String(100), nullable=True),
        sa.Column("semester", sa.String(20), nullable=True),
        sa.Column("hostel_block", sa.String(50), nullable=True),
        sa.Column("room_number", sa.String(20), nullable=True),
        sa.Column("permanent_address", sa.String(500), nullable=True),
        sa.Column("parent_name", sa.String(100), nullable=True),
        sa.Column("parent_contact", sa.String(20), nullable=True),
        sa.Column("emergency_contact", sa.String(20), nullable=True),
        sa.Column("designation", sa.String(100), nullable=True),
        sa.Column("assigned_block", sa.String(50), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- gate_pass_requests ---
    op.create_table(
        "gate_pass_requests",
        sa.Column("request_id", sa.String(36), primary_key=True),
        sa.Column("requester_id", sa.String(36), nullable=False),
        sa.Column("requester_name", sa.String(100), nullable=True),
        sa.Column("requester_email", sa.String(255), nullable=True),
        sa.Column("requester_context", sa.JSON, nullable=True),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column("destination", sa.String(255), nullable=True),
        sa.Column("departure_date", sa.Date, nullable=True),
        sa.Column("departure_time", sa.Time, nullable=True),
        sa.Column("return_date", sa.Date, nullable=True),
        sa.Column("return_time", sa.Time, nullable=True),
        sa.Column("parent_contact", sa.String(20), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("decision_by", sa.String(36), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("attributes", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_gate_pass_requests_requester_id", "gate_pass_requests", ["requester_id"])
    op.create_index("ix_gate_pass_requests_status", "gate_pass_requests", ["status"])


def downgrade() -> None:
    op.drop_index("ix_gate_pass_requests_status", table_name="gate_pass_requests")
    op.drop_index("ix_gate_pass_requests_requester_id", table_name="gate_pass_requests")
    op.drop_table("gate_pass_requests")
    op.drop_table("principals")
