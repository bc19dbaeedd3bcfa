from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from boxoffice.core.auditing import AuditSpan
from boxoffice.core.pagination import PageDTO
from boxoffice.domain.events import crud
from boxoffice.domain.events.models import Event
from boxoffice.domain.events.schemas import EventCreateDTO, EventReadDTO, EventInventoryDTO, EventsQueryDTO
from boxoffice.domain.exceptions import NotFound, InvalidRequest, Conflict


def _validate_date_range(query: EventsQueryDTO) -> None:
    if query.date_from and query.date_to and query.date_to < query.date_from:
        raise InvalidRequest(
            "date_to must not be before date_from",
            ctx={"date_from": query.date_from, "date_to": query.date_to}
        )


async def get_event(db: AsyncSession, event_id: int) -> Event:
    event = await crud.get_event_by_id(db, event_id)
    if not event:
        raise NotFound("Event not found", ctx={"event_id": event_id})
    return event


async def get_inventory(db: AsyncSession, event_id: int) -> EventInventoryDTO:
    inventory = await crud.get_inventory(db, event_id)
    if inventory is None:
        raise NotFound("Event not found", ctx={"event_id": event_id})
    total, available = inventory
    return EventInventoryDTO(event_id=event_id, total_tickets=total, available_tickets=available)


async def list_events(db: AsyncSession, query: EventsQueryDTO) -> PageDTO[EventReadDTO]:
    _validate_date_range(query)

    events, total = await crud.list_events(
        db,
        page=query.page,
        page_size=query.page_size,
        category=query.category,
        text=query.q,
        date_from=query.date_from,
        date_to=query.date_to,
        only_available=query.only_available
    )

    items = [EventReadDTO.model_validate(event) for event in events]

    return PageDTO(
        items=items,
        total=total,
        page=query.page,
        page_size=query.page_size
    )


async def create_event(db: AsyncSession, schema: EventCreateDTO) -> Event:
    async with AuditSpan(
        scope="EVENTS",
        action="CREATE",
        object_type="event",
        meta={"total_tickets": schema.total_tickets}
    ) as span:
        data = schema.model_dump(exclude_none=True)
        event = await crud.create_event(db, data)
        try:
            await db.flush()
            await db.refresh(event)
        except IntegrityError as e:
            raise Conflict("Event violates inventory constraints", ctx={"name": schema.name}) from e

        span.object_id = event.id
        span.event_id = event.id
        return event
