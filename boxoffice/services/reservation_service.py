import logging
import secrets
from sqlalchemy.exc import IntegrityError, DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from boxoffice.core.auditing import AuditSpan
from boxoffice.core.config import MAX_TICKETS_PER_RESERVATION, RESERVATION_MAX_ATTEMPTS, TICKET_NUMBER_LENGTH
from boxoffice.domain.events import crud as events_crud
from boxoffice.domain.tickets import crud as tickets_crud
from boxoffice.domain.tickets.models import Ticket, TicketStatus
from boxoffice.domain.exceptions import NotFound, InvalidRequest, InsufficientInventory, Conflict, StorageFailure

logger = logging.getLogger("boxoffice.reservations")

# No 0/O or 1/I
TICKET_NUMBER_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
TICKET_NUMBER_ROUNDS = 5
SERIALIZATION_FAILURES = {"40001", "40P01"}


def generate_ticket_number(length: int = TICKET_NUMBER_LENGTH) -> str:
    return "".join(secrets.choice(TICKET_NUMBER_ALPHABET) for _ in range(length))


def _validate_request(purchaser_id: str, quantity: int) -> None:
    if not purchaser_id or not str(purchaser_id).strip():
        raise InvalidRequest("Purchaser is required")
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidRequest("Quantity must be an integer", ctx={"quantity": quantity})
    if quantity <= 0:
        raise InvalidRequest("Quantity must be positive", ctx={"quantity": quantity})
    if quantity > MAX_TICKETS_PER_RESERVATION:
        raise InvalidRequest(
            "Quantity exceeds per-request limit",
            ctx={"quantity": quantity, "max_quantity": MAX_TICKETS_PER_RESERVATION}
        )


def _is_serialization_failure(exc: DBAPIError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code in SERIALIZATION_FAILURES


async def _raise_unavailable(db: AsyncSession, event_id: int, quantity: int) -> None:
    inventory = await events_crud.get_inventory(db, event_id)
    if inventory is None:
        raise NotFound("Event not found", ctx={"event_id": event_id})
    _, available = inventory
    raise InsufficientInventory(
        "Not enough tickets left",
        ctx={"event_id": event_id, "requested": quantity, "available": available}
    )


async def _allocate_ticket_numbers(db: AsyncSession, quantity: int) -> list[str]:
    numbers: set[str] = set()
    for _ in range(TICKET_NUMBER_ROUNDS):
        while len(numbers) < quantity:
            numbers.add(generate_ticket_number())
        taken = await tickets_crud.find_existing_numbers(db, numbers)
        if not taken:
            return sorted(numbers)
        logger.warning("Ticket number collision, regenerating %d number(s)", len(taken))
        numbers -= taken
    raise Conflict("Could not allocate unique ticket numbers", ctx={"quantity": quantity})


async def _reserve_in_transaction(
        db: AsyncSession,
        event_id: int,
        purchaser_id: str,
        quantity: int
) -> list[Ticket]:
    # Part 1 - check-and-decrement, serialized per event row
    taken = await events_crud.take_available_tickets(db, event_id, quantity)
    if taken is None:
        await _raise_unavailable(db, event_id, quantity)
    _, price = taken

    # Part 2 - issue tickets with a price snapshot
    numbers = await _allocate_ticket_numbers(db, quantity)
    tickets = [
        Ticket(
            event_id=event_id,
            purchaser_id=purchaser_id,
            ticket_number=number,
            status=TicketStatus.ACTIVE,
            price=price
        )
        for number in numbers
    ]
    return await tickets_crud.add_tickets(db, tickets)


async def _run_unit_of_work(
        session_factory: async_sessionmaker[AsyncSession],
        event_id: int,
        purchaser_id: str,
        quantity: int
) -> list[Ticket]:
    """One transaction: commits on clean exit, rolls back every write on any other exit path."""
    ctx = {"event_id": event_id, "quantity": quantity}
    try:
        async with session_factory() as db:
            async with db.begin():
                return await _reserve_in_transaction(db, event_id, purchaser_id, quantity)
    except IntegrityError as e:
        raise Conflict("Ticket number already issued", ctx=ctx) from e
    except DBAPIError as e:
        if _is_serialization_failure(e):
            raise Conflict("Concurrent update of event inventory", ctx=ctx) from e
        logger.exception("Reservation storage failure event_id=%s", event_id)
        raise StorageFailure("Reservation could not be stored", ctx=ctx) from e
    except SQLAlchemyError as e:
        logger.exception("Reservation storage failure event_id=%s", event_id)
        raise StorageFailure("Reservation could not be stored", ctx=ctx) from e


async def reserve_tickets(
        session_factory: async_sessionmaker[AsyncSession],
        event_id: int,
        purchaser_id: str,
        quantity: int
) -> list[Ticket]:
    """
    Atomically take `quantity` tickets of an event and issue them to the purchaser.
    - Fails with InvalidRequest, NotFound or InsufficientInventory without touching inventory
    - Prevents overselling with a conditional UPDATE on the event row (never lets available_tickets go below 0)
    - Retries the whole unit of work on Conflict, at most RESERVATION_MAX_ATTEMPTS times
    """
    _validate_request(purchaser_id, quantity)
    purchaser_id = str(purchaser_id).strip()

    async with AuditSpan(
        scope="RESERVATIONS",
        action="RESERVE",
        object_type="ticket",
        event_id=event_id,
        meta={"quantity": quantity}
    ) as span:
        max_attempts = max(1, RESERVATION_MAX_ATTEMPTS)
        last_conflict: Conflict | None = None
        for attempt in range(1, max_attempts + 1):
            try:
                tickets = await _run_unit_of_work(session_factory, event_id, purchaser_id, quantity)
            except Conflict as e:
                last_conflict = e
                logger.warning(
                    "Reservation conflict event_id=%s attempt=%d/%d: %s",
                    event_id, attempt, max_attempts, e
                )
                continue
            except (NotFound, InsufficientInventory) as e:
                logger.info("Reservation rejected event_id=%s quantity=%d: %s", event_id, quantity, e)
                raise

            span.object_id = tickets[0].id
            span.meta["attempts"] = attempt
            span.meta["ticket_numbers"] = [t.ticket_number for t in tickets]
            logger.info(
                "Reserved %d ticket(s) event_id=%s purchaser_id=%s attempt=%d",
                quantity, event_id, purchaser_id, attempt
            )
            return tickets

        span.meta["attempts"] = max_attempts
        raise last_conflict
