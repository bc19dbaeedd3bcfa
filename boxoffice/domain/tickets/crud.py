from typing import Iterable
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from boxoffice.core.pagination import paginate
from .models import Ticket, TicketStatus


async def find_existing_numbers(db: AsyncSession, numbers: Iterable[str]) -> set[str]:
    numbers = list(numbers)
    if not numbers:
        return set()
    result = await db.scalars(select(Ticket.ticket_number).where(Ticket.ticket_number.in_(numbers)))
    return set(result.all())


async def add_tickets(db: AsyncSession, tickets: list[Ticket]) -> list[Ticket]:
    db.add_all(tickets)
    await db.flush()
    return tickets


async def list_tickets_for_purchaser(
        db: AsyncSession,
        purchaser_id: str,
        page: int,
        page_size: int,
        *,
        event_id: int | None = None,
        status: TicketStatus | None = None,
) -> tuple[list[Ticket], int]:
    where = [Ticket.purchaser_id == purchaser_id]
    if event_id is not None:
        where.append(Ticket.event_id == event_id)
    if status is not None:
        where.append(Ticket.status == status)

    return await paginate(
        db,
        base_stmt=select(Ticket),
        page=page,
        page_size=page_size,
        where=where,
        order_by=[Ticket.created_at.desc(), Ticket.id.desc()],
    )
