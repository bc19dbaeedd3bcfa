from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict, field_validator
from boxoffice.core.utils.text_utils import strip_text, normalize_label


class EventCreateDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    name: str = Field(min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    category: str | None = Field(default=None, min_length=2, max_length=50)
    venue: str | None = Field(default=None, max_length=200)
    starts_at: datetime
    total_tickets: int = Field(gt=0)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)

    _strip_name = field_validator("name", mode="before")(strip_text)
    _strip_desc = field_validator("description", mode="before")(strip_text)
    _strip_venue = field_validator("venue", mode="before")(strip_text)
    _normalize_category = field_validator("category", mode="before")(normalize_label)


class EventReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: int
    name: str
    description: str | None
    category: str | None
    venue: str | None
    starts_at: datetime
    total_tickets: int
    available_tickets: int
    price: Decimal
    created_at: datetime
    updated_at: datetime


class EventInventoryDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    event_id: int
    total_tickets: int
    available_tickets: int


class EventsQueryDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=200)
    category: str | None = None
    q: str | None = Field(default=None, max_length=100)
    date_from: datetime | None = None
    date_to: datetime | None = None
    only_available: bool = False

    _strip_q = field_validator("q", mode="before")(strip_text)
    _normalize_category = field_validator("category", mode="before")(normalize_label)
