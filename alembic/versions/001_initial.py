"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-06-02

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("phone", sa.String(32), unique=True, nullable=False, index=True),
        sa.Column("name", sa.String(128)),
        sa.Column("email", sa.String(255)),
        sa.Column("marketing_opt_in", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "services",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("category", sa.String(64)),
        sa.Column("base_price", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("duration_minutes", sa.Integer()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_table(
        "visits",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False, index=True),
        sa.Column("service_id", sa.String(64), sa.ForeignKey("services.id"), nullable=False),
        sa.Column("staff_name", sa.String(128)),
        sa.Column("appointment_time", sa.DateTime(), nullable=False),
        sa.Column("checkout_time", sa.DateTime(), nullable=True),
        sa.Column("price_charged", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("source", sa.String(32)),
        sa.Column("notes", sa.Text()),
    )
    op.create_index("ix_visits_customer_checkout", "visits", ["customer_id", "checkout_time"])
    op.create_table(
        "feedback_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("visit_id", sa.Integer(), sa.ForeignKey("visits.id"), nullable=False, unique=True, index=True),
        sa.Column("channel", sa.String(16), nullable=False, server_default="sms"),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending", index=True),
        sa.Column("failure_reason", sa.String(255)),
        sa.Column("provider_message_id", sa.String(64)),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("sent_at", sa.DateTime()),
        sa.Column("rating", sa.Integer()),
        sa.Column("comment", sa.Text()),
        sa.Column("review_link_clicked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("responded_at", sa.DateTime()),
    )
    op.create_table(
        "app_settings",
        sa.Column("key", sa.String(64), primary_key=True),
        sa.Column("value_json", postgresql.JSONB(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_by", sa.String(16), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("app_settings")
    op.drop_table("feedback_requests")
    op.drop_index("ix_visits_customer_checkout", table_name="visits")
    op.drop_table("visits")
    op.drop_table("services")
    op.drop_table("customers")
