from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from boxoffice.core.config import MAX_TICKETS_PER_RESERVATION
from boxoffice.domain.tickets.models import TicketStatus


class PurchaseRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    quantity: int = Field(gt=0, le=MAX_TICKETS_PER_RESERVATION)


class TicketReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: int
    event_id: int
    ticket_number: str
    status: TicketStatus
    price: Decimal
    created_at: datetime


class PurchaseReadDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    event_id: int
    quantity: int
    total_price: Decimal
    tickets: list[TicketReadDTO]


class PurchaserTicketsQueryDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=200)
    event_id: int | None = Field(default=None, gt=0)
    status: TicketStatus | None = None
