from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from boxoffice.core.database import get_db
from boxoffice.core.dependencies.auth import get_current_purchaser
from boxoffice.core.pagination import PageDTO
from boxoffice.domain.auth.schemas import Purchaser
from boxoffice.domain.tickets.schemas import PurchaserTicketsQueryDTO, TicketReadDTO
from boxoffice.services import tickets_service


router = APIRouter(tags=["tickets"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.get(
    "/users/me/tickets",
    status_code=status.HTTP_200_OK,
    response_model=PageDTO[TicketReadDTO]
)
async def list_my_tickets(
        db: db_dependency,
        purchaser: Annotated[Purchaser, Depends(get_current_purchaser("CUSTOMER", "ADMIN"))],
        query: Annotated[PurchaserTicketsQueryDTO, Depends()]
):
    return await tickets_service.list_purchaser_tickets(db, purchaser.id, query)
