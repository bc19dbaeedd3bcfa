import asyncio
import pytest
import pytest_asyncio
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import select, func, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from boxoffice.core.database import Base
from boxoffice.domain.events.models import Event
from boxoffice.domain.events.schemas import EventCreateDTO, EventsQueryDTO
from boxoffice.domain.exceptions import InsufficientInventory, NotFound, StorageFailure
from boxoffice.domain.tickets.models import Ticket, TicketStatus
from boxoffice.domain.tickets.schemas import PurchaserTicketsQueryDTO
from boxoffice.services import event_service, reservation_service, tickets_service


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/boxoffice.db", connect_args={"timeout": 30})
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    await engine.dispose()


async def _create_event(session_factory, total_tickets: int, price: str = "25.00", **fields) -> int:
    data = {"name": "Jazz Night", "starts_at": datetime(2025, 6, 1, 20, 0, tzinfo=timezone.utc), **fields}
    schema = EventCreateDTO(**data, total_tickets=total_tickets, price=price)
    async with session_factory() as db:
        async with db.begin():
            event = await event_service.create_event(db, schema)
        return event.id


async def _inventory(session_factory, event_id: int) -> tuple[int, int]:
    async with session_factory() as db:
        inventory = await event_service.get_inventory(db, event_id)
    return inventory.total_tickets, inventory.available_tickets


async def _ticket_count(session_factory, event_id: int) -> int:
    async with session_factory() as db:
        return await db.scalar(select(func.count()).select_from(Ticket).where(Ticket.event_id == event_id))


@pytest.mark.asyncio
async def test_reservation_decrements_inventory_and_persists_tickets(session_factory):
    event_id = await _create_event(session_factory, 10)

    tickets = await reservation_service.reserve_tickets(session_factory, event_id, "42", 3)

    assert await _inventory(session_factory, event_id) == (10, 7)
    assert await _ticket_count(session_factory, event_id) == 3
    assert all(t.id is not None for t in tickets)
    assert all(t.price == Decimal("25.00") and t.status == TicketStatus.ACTIVE for t in tickets)


@pytest.mark.asyncio
async def test_concurrent_reservations_never_oversell(session_factory):
    event_id = await _create_event(session_factory, 5)

    results = await asyncio.gather(
        *(reservation_service.reserve_tickets(session_factory, event_id, f"buyer-{i}", 1) for i in range(10)),
        return_exceptions=True
    )

    succeeded = [r for r in results if isinstance(r, list)]
    rejected = [r for r in results if isinstance(r, InsufficientInventory)]
    assert len(succeeded) == 5
    assert len(rejected) == 5
    assert await _inventory(session_factory, event_id) == (5, 0)
    assert await _ticket_count(session_factory, event_id) == 5


@pytest.mark.asyncio
async def test_competing_reservations_for_last_tickets_only_one_wins(session_factory):
    event_id = await _create_event(session_factory, 2)

    results = await asyncio.gather(
        reservation_service.reserve_tickets(session_factory, event_id, "alice", 2),
        reservation_service.reserve_tickets(session_factory, event_id, "bob", 1),
        return_exceptions=True
    )

    succeeded = [r for r in results if isinstance(r, list)]
    assert len(succeeded) == 1
    assert sum(isinstance(r, InsufficientInventory) for r in results) == 1
    _, available = await _inventory(session_factory, event_id)
    assert available == 2 - len(succeeded[0])
    assert await _ticket_count(session_factory, event_id) == len(succeeded[0])


@pytest.mark.asyncio
async def test_insufficient_inventory_leaves_state_untouched(session_factory):
    event_id = await _create_event(session_factory, 2)

    with pytest.raises(InsufficientInventory) as e:
        await reservation_service.reserve_tickets(session_factory, event_id, "42", 3)

    assert e.value.ctx["available"] == 2
    assert await _inventory(session_factory, event_id) == (2, 2)
    assert await _ticket_count(session_factory, event_id) == 0


@pytest.mark.asyncio
async def test_unknown_event_raises_not_found(session_factory):
    with pytest.raises(NotFound):
        await reservation_service.reserve_tickets(session_factory, 12345, "42", 1)


@pytest.mark.asyncio
async def test_failed_ticket_insert_rolls_back_decrement(session_factory, mocker):
    event_id = await _create_event(session_factory, 4)
    mocker.patch(
        "boxoffice.domain.tickets.crud.add_tickets",
        new=mocker.AsyncMock(side_effect=OperationalError("INSERT INTO tickets", {}, Exception("disk I/O error")))
    )

    with pytest.raises(StorageFailure):
        await reservation_service.reserve_tickets(session_factory, event_id, "42", 2)

    assert await _inventory(session_factory, event_id) == (4, 4)
    assert await _ticket_count(session_factory, event_id) == 0


@pytest.mark.asyncio
async def test_ticket_numbers_are_unique_across_reservations(session_factory):
    event_id = await _create_event(session_factory, 30)

    batches = await asyncio.gather(
        *(reservation_service.reserve_tickets(session_factory, event_id, "42", 5) for _ in range(6))
    )

    numbers = [t.ticket_number for batch in batches for t in batch]
    assert len(numbers) == 30
    assert len(set(numbers)) == 30


@pytest.mark.asyncio
async def test_number_already_in_storage_is_regenerated(session_factory, mocker):
    event_id = await _create_event(session_factory, 5)
    mocker.patch(f"{reservation_service.__name__}.generate_ticket_number", return_value="AAAAAAAAAAAA")
    await reservation_service.reserve_tickets(session_factory, event_id, "42", 1)

    mocker.patch(
        f"{reservation_service.__name__}.generate_ticket_number",
        side_effect=["AAAAAAAAAAAA", "BBBBBBBBBBBB"]
    )
    tickets = await reservation_service.reserve_tickets(session_factory, event_id, "42", 1)

    assert [t.ticket_number for t in tickets] == ["BBBBBBBBBBBB"]
    assert await _inventory(session_factory, event_id) == (5, 3)


@pytest.mark.asyncio
async def test_inventory_reads_do_not_change_state(session_factory):
    event_id = await _create_event(session_factory, 8)
    await reservation_service.reserve_tickets(session_factory, event_id, "42", 3)

    first = await _inventory(session_factory, event_id)
    second = await _inventory(session_factory, event_id)

    assert first == second == (8, 5)


@pytest.mark.asyncio
async def test_purchaser_sees_only_own_tickets(session_factory):
    event_id = await _create_event(session_factory, 10)
    await reservation_service.reserve_tickets(session_factory, event_id, "alice", 2)
    await reservation_service.reserve_tickets(session_factory, event_id, "bob", 1)

    async with session_factory() as db:
        page = await tickets_service.list_purchaser_tickets(
            db, "alice", PurchaserTicketsQueryDTO(event_id=event_id)
        )

    assert page.total == 2
    assert all(t.event_id == event_id for t in page.items)


@pytest.mark.asyncio
@pytest.mark.parametrize("values", [
    {"available_tickets": -1},
    {"available_tickets": 11},
    {"total_tickets": 0},
    {"price": Decimal("-1.00")},
])
async def test_check_constraints_reject_invalid_event_state(session_factory, values):
    event_id = await _create_event(session_factory, 10)

    with pytest.raises(IntegrityError):
        async with session_factory() as db:
            async with db.begin():
                await db.execute(update(Event).where(Event.id == event_id).values(**values))

    assert await _inventory(session_factory, event_id) == (10, 10)


JUNE = datetime(2025, 6, 1, 20, 0, tzinfo=timezone.utc)
JULY = datetime(2025, 7, 10, 18, 0, tzinfo=timezone.utc)
AUGUST = datetime(2025, 8, 20, 19, 0, tzinfo=timezone.utc)


async def _seed_catalog(session_factory) -> dict[str, int]:
    ids = {
        "jazz": await _create_event(session_factory, 5, name="Jazz Night", category="Music", starts_at=JULY),
        "rock": await _create_event(
            session_factory, 2, name="Rock Fest", description="Loud and JAZZ-free", category="music", starts_at=JUNE
        ),
        "chess": await _create_event(session_factory, 3, name="Chess Open", category="Sport", starts_at=AUGUST),
        "blues": await _create_event(session_factory, 4, name="Blues Evening", category="music", starts_at=JULY),
    }
    await reservation_service.reserve_tickets(session_factory, ids["rock"], "42", 2)
    return ids


async def _list_names(session_factory, **params) -> list[str]:
    async with session_factory() as db:
        page = await event_service.list_events(db, EventsQueryDTO(**params))
    return [e.name for e in page.items]


@pytest.mark.asyncio
async def test_list_events_orders_by_start_then_id(session_factory):
    await _seed_catalog(session_factory)

    assert await _list_names(session_factory) == ["Rock Fest", "Jazz Night", "Blues Evening", "Chess Open"]


@pytest.mark.asyncio
async def test_list_events_category_is_case_insensitive(session_factory):
    await _seed_catalog(session_factory)

    assert await _list_names(session_factory, category=" MUSIC ") == ["Rock Fest", "Jazz Night", "Blues Evening"]


@pytest.mark.asyncio
async def test_list_events_text_search_covers_name_and_description(session_factory):
    await _seed_catalog(session_factory)

    assert await _list_names(session_factory, q="jazz") == ["Rock Fest", "Jazz Night"]


@pytest.mark.asyncio
async def test_list_events_date_range_is_inclusive(session_factory):
    await _seed_catalog(session_factory)

    names = await _list_names(session_factory, date_from=JULY, date_to=AUGUST)

    assert names == ["Jazz Night", "Blues Evening", "Chess Open"]
    assert await _list_names(session_factory, date_to=JUNE) == ["Rock Fest"]


@pytest.mark.asyncio
async def test_list_events_only_available_skips_sold_out(session_factory):
    await _seed_catalog(session_factory)

    assert await _list_names(session_factory, only_available=True) == ["Jazz Night", "Blues Evening", "Chess Open"]


@pytest.mark.asyncio
async def test_list_events_pages(session_factory):
    await _seed_catalog(session_factory)

    async with session_factory() as db:
        page = await event_service.list_events(db, EventsQueryDTO(page=2, page_size=3))

    assert page.total == 4
    assert page.pages == 2
    assert [e.name for e in page.items] == ["Chess Open"]


@pytest.mark.asyncio
async def test_purchaser_tickets_newest_first_with_status_filter(session_factory):
    event_id = await _create_event(session_factory, 10)
    first = await reservation_service.reserve_tickets(session_factory, event_id, "alice", 2)
    second = await reservation_service.reserve_tickets(session_factory, event_id, "alice", 2)
    async with session_factory() as db:
        async with db.begin():
            await db.execute(update(Ticket).where(Ticket.id == first[0].id).values(status=TicketStatus.USED))

    async with session_factory() as db:
        everything = await tickets_service.list_purchaser_tickets(db, "alice", PurchaserTicketsQueryDTO())
        used = await tickets_service.list_purchaser_tickets(
            db, "alice", PurchaserTicketsQueryDTO(status=TicketStatus.USED)
        )
        active = await tickets_service.list_purchaser_tickets(
            db, "alice", PurchaserTicketsQueryDTO(status="ACTIVE", page_size=2)
        )

    issued = sorted(t.id for t in first + second)
    assert [t.id for t in everything.items] == issued[::-1]
    assert {t.id for t in second} == {t.id for t in everything.items[:2]}
    assert [t.id for t in used.items] == [first[0].id]
    assert active.total == 3
    assert [t.id for t in active.items] == sorted((t.id for t in second), reverse=True)
