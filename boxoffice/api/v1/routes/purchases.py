from decimal import Decimal
from fastapi import APIRouter, Depends, Response, status
from typing import Annotated
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from boxoffice.core.database import get_session_factory
from boxoffice.core.dependencies.auth import get_current_purchaser
from boxoffice.domain.auth.schemas import Purchaser
from boxoffice.domain.tickets.schemas import PurchaseRequestDTO, PurchaseReadDTO, TicketReadDTO
from boxoffice.services import reservation_service


router = APIRouter(prefix="/events/{event_id}/purchases", tags=["purchases"])
session_factory_dependency = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=PurchaseReadDTO
)
async def purchase_tickets(
        event_id: int,
        schema: PurchaseRequestDTO,
        session_factory: session_factory_dependency,
        purchaser: Annotated[Purchaser, Depends(get_current_purchaser("CUSTOMER", "ADMIN"))],
        response: Response,
):
    tickets = await reservation_service.reserve_tickets(
        session_factory,
        event_id=event_id,
        purchaser_id=purchaser.id,
        quantity=schema.quantity,
    )

    response.headers["Location"] = f"/users/me/tickets?event_id={event_id}"

    return PurchaseReadDTO(
        event_id=event_id,
        quantity=len(tickets),
        total_price=sum((t.price for t in tickets), Decimal("0")),
        tickets=[TicketReadDTO.model_validate(t) for t in tickets],
    )
