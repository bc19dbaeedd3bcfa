from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace


def session_factory_for(mocker, *sessions):
    """Mimics async_sessionmaker: `async with factory() as db, db.begin()` yields the given sessions in order."""
    def _session_cm(db):
        tx = mocker.MagicMock()
        tx.__aenter__ = mocker.AsyncMock(return_value=None)
        tx.__aexit__ = mocker.AsyncMock(return_value=False)
        db.begin = mocker.Mock(return_value=tx)

        cm = mocker.MagicMock()
        cm.__aenter__ = mocker.AsyncMock(return_value=db)
        cm.__aexit__ = mocker.AsyncMock(return_value=False)
        return cm

    return mocker.Mock(side_effect=[_session_cm(db) for db in sessions])


def make_event_row(**overrides):
    now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
    data = {
        "id": 1,
        "name": "Jazz Night",
        "description": "Live jazz",
        "category": "music",
        "venue": "Blue Room",
        "starts_at": datetime(2025, 6, 1, 20, 0, tzinfo=timezone.utc),
        "total_tickets": 100,
        "available_tickets": 100,
        "price": Decimal("10.00"),
        "created_at": now,
        "updated_at": now,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def make_ticket_row(**overrides):
    data = {
        "id": 1,
        "event_id": 1,
        "purchaser_id": "42",
        "ticket_number": "ABCDEFGHJKLM",
        "status": "ACTIVE",
        "price": Decimal("10.00"),
        "created_at": datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return SimpleNamespace(**data)
