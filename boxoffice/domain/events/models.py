from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import mapped_column, Mapped
from sqlalchemy import Identity, Text, Integer, Numeric, CheckConstraint, TIMESTAMP, Index, func
from boxoffice.core.database import Base


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    venue: Mapped[str | None] = mapped_column(Text, nullable=True)
    starts_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    total_tickets: Mapped[int] = mapped_column(Integer, nullable=False)
    # Only the reservation engine decrements this column
    available_tickets: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("total_tickets > 0", name="chk_total_tickets_positive"),
        CheckConstraint("available_tickets >= 0", name="chk_available_tickets_nonneg"),
        CheckConstraint("available_tickets <= total_tickets", name="chk_available_lte_total"),
        CheckConstraint("price >= 0", name="chk_event_price_nonneg"),
        Index("ix_events_starts_at", "starts_at"),
    )
