from datetime import datetime
from decimal import Decimal
from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession
from boxoffice.core.pagination import paginate
from .models import Event


async def get_event_by_id(db: AsyncSession, event_id: int) -> Event | None:
    stmt = select(Event).where(Event.id == event_id)
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_inventory(db: AsyncSession, event_id: int) -> tuple[int, int] | None:
    result = await db.execute(
        select(Event.total_tickets, Event.available_tickets).where(Event.id == event_id)
    )
    row = result.first()
    return (row[0], row[1]) if row else None


async def list_events(
        db: AsyncSession,
        page: int,
        page_size: int,
        *,
        category: str | None = None,
        text: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        only_available: bool = False,
) -> tuple[list[Event], int]:
    where = []

    if category:
        where.append(Event.category == category)
    if text:
        pattern = f"%{text}%"
        where.append(or_(Event.name.ilike(pattern), Event.description.ilike(pattern)))
    if date_from is not None:
        where.append(Event.starts_at >= date_from)
    if date_to is not None:
        where.append(Event.starts_at <= date_to)
    if only_available:
        where.append(Event.available_tickets > 0)

    return await paginate(
        db,
        base_stmt=select(Event),
        page=page,
        page_size=page_size,
        where=where,
        order_by=[Event.starts_at.asc(), Event.id],
    )


async def create_event(db: AsyncSession, data: dict) -> Event:
    event = Event(**data, available_tickets=data["total_tickets"])
    db.add(event)
    return event


async def take_available_tickets(db: AsyncSession, event_id: int, quantity: int) -> tuple[int, Decimal] | None:
    """
    Decrement available_tickets by quantity in one conditional UPDATE.
    Returns (remaining, price) or None when the event is missing or has fewer than quantity tickets left.
    The row lock taken by the UPDATE serializes concurrent callers on the same event.
    """
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.available_tickets >= quantity)
        .values(available_tickets=Event.available_tickets - quantity)
        .returning(Event.available_tickets, Event.price)
    )
    row = result.first()
    return (row[0], row[1]) if row else None
