from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Identity, Text, ForeignKey, Numeric, TIMESTAMP, CheckConstraint, func, Enum as SQLEnum
from boxoffice.core.database import Base


class TicketStatus(str, Enum):
    ACTIVE = "ACTIVE"
    USED = "USED"
    CANCELLED = "CANCELLED"


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="RESTRICT"), nullable=False, index=True)
    purchaser_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    ticket_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    status: Mapped[TicketStatus] = mapped_column(SQLEnum(TicketStatus, name="ticket_status"),
                                                 nullable=False, default=TicketStatus.ACTIVE,
                                                 server_default=TicketStatus.ACTIVE.value)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True),
                                                 default=lambda: datetime.now(timezone.utc),
                                                 server_default=func.now(),
                                                 nullable=False)

    __table_args__ = (
        CheckConstraint("price >= 0", name="chk_ticket_price_nonneg"),
    )
