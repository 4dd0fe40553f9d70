"""winback campaigns/messages and issues

Revision ID: 002_winback_and_issues
Revises: 001
Create Date: 2026-06-09
"""

from alembic import op
import sqlalchemy as sa


revision = "002_winback_and_issues"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "winback_campaigns",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("message_template", sa.Text(), nullable=False),
        sa.Column("min_days_since_last_visit", sa.Integer(), nullable=False),
        sa.Column("max_days_since_last_visit", sa.Integer(), nullable=False),
        sa.Column("booking_url", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "winback_messages",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("campaign_id", sa.Integer(), sa.ForeignKey("winback_campaigns.id"), nullable=False, index=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False, index=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending", index=True),
        sa.Column("failure_reason", sa.String(length=255), nullable=True),
        sa.Column("provider_message_id", sa.String(length=64), nullable=True),
        sa.Column("last_visit_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
        sa.Column("response_type", sa.String(length=32), nullable=True),
        sa.UniqueConstraint("campaign_id", "customer_id", name="uq_winback_campaign_customer"),
    )
    op.create_table(
        "issues",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False, index=True),
        sa.Column("feedback_request_id", sa.String(length=36), sa.ForeignKey("feedback_requests.id"), nullable=False, unique=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="open"),
        sa.Column("severity", sa.String(length=16), nullable=False, server_default="medium"),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("owner_response", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("issues")
    op.drop_table("winback_messages")
    op.drop_table("winback_campaigns")
