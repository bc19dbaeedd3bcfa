from fastapi import APIRouter, status, Depends, Response
from typing import Annotated
from sqlalchemy.ext.asyncio import AsyncSession
from boxoffice.core.database import get_db
from boxoffice.core.dependencies.auth import get_current_purchaser
from boxoffice.core.pagination import PageDTO
from boxoffice.domain.events.schemas import EventCreateDTO, EventReadDTO, EventInventoryDTO, EventsQueryDTO
from boxoffice.services import event_service


router = APIRouter(tags=["events"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.get(
    "/events",
    status_code=status.HTTP_200_OK,
    response_model=PageDTO[EventReadDTO]
)
async def list_events(db: db_dependency, query: Annotated[EventsQueryDTO, Depends()]):
    return await event_service.list_events(db, query)


@router.get(
    "/events/{event_id}",
    status_code=status.HTTP_200_OK,
    response_model=EventReadDTO
)
async def get_event(event_id: int, db: db_dependency):
    return await event_service.get_event(db, event_id)


@router.get(
    "/events/{event_id}/inventory",
    status_code=status.HTTP_200_OK,
    response_model=EventInventoryDTO
)
async def get_event_inventory(event_id: int, db: db_dependency):
    return await event_service.get_inventory(db, event_id)


@router.post(
    "/events",
    status_code=status.HTTP_201_CREATED,
    response_model=EventReadDTO,
    dependencies=[Depends(get_current_purchaser("ADMIN", "ORGANIZER"))]
)
async def create_event(schema: EventCreateDTO, db: db_dependency, response: Response):
    event = await event_service.create_event(db, schema)
    response.headers["Location"] = f"/events/{event.id}"
    return event
