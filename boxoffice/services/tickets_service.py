from sqlalchemy.ext.asyncio import AsyncSession
from boxoffice.core.pagination import PageDTO
from boxoffice.domain.tickets import crud
from boxoffice.domain.tickets.schemas import PurchaserTicketsQueryDTO, TicketReadDTO


async def list_purchaser_tickets(
        db: AsyncSession,
        purchaser_id: str,
        query: PurchaserTicketsQueryDTO
) -> PageDTO[TicketReadDTO]:
    tickets, total = await crud.list_tickets_for_purchaser(
        db,
        purchaser_id,
        page=query.page,
        page_size=query.page_size,
        event_id=query.event_id,
        status=query.status
    )

    return PageDTO(
        items=[TicketReadDTO.model_validate(ticket) for ticket in tickets],
        total=total,
        page=query.page,
        page_size=query.page_size
    )
