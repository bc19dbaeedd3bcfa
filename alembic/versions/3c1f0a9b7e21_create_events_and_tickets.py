"""create events and tickets"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "3c1f0a9b7e21"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ticket_status = sa.Enum("ACTIVE", "USED", "CANCELLED", name="ticket_status")


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("venue", sa.Text(), nullable=True),
        sa.Column("starts_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("total_tickets", sa.Integer(), nullable=False),
        sa.Column("available_tickets", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("total_tickets > 0", name="chk_total_tickets_positive"),
        sa.CheckConstraint("available_tickets >= 0", name="chk_available_tickets_nonneg"),
        sa.CheckConstraint("available_tickets <= total_tickets", name="chk_available_lte_total"),
        sa.CheckConstraint("price >= 0", name="chk_event_price_nonneg"),
    )
    op.create_index("ix_events_starts_at", "events", ["starts_at"])
    op.create_index("ix_events_category", "events", ["category"])

    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("purchaser_id", sa.Text(), nullable=False),
        sa.Column("ticket_number", sa.Text(), nullable=False),
        sa.Column("status", ticket_status, server_default="ACTIVE", nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("price >= 0", name="chk_ticket_price_nonneg"),
        sa.UniqueConstraint("ticket_number", name="uq_tickets_ticket_number"),
    )
    op.create_index("ix_tickets_event_id", "tickets", ["event_id"])
    op.create_index("ix_tickets_purchaser_id", "tickets", ["purchaser_id"])


def downgrade() -> None:
    op.drop_index("ix_tickets_purchaser_id", table_name="tickets")
    op.drop_index("ix_tickets_event_id", table_name="tickets")
    op.drop_table("tickets")
    ticket_status.drop(op.get_bind(), checkfirst=True)
    op.drop_index("ix_events_category", table_name="events")
    op.drop_index("ix_events_starts_at", table_name="events")
    op.drop_table("events")
