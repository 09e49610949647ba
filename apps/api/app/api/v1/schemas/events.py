from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SchemaBase(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class EventOrder(str, Enum):
    DESC = "desc"
    ASC = "asc"


class EventUpdate(SchemaBase):
    title: str | None = None
    description: str | None = None
    overview: str | None = None
    image: str | None = None
    venue: str | None = None
    location: str | None = None
    date: str | None = None
    time: str | None = None
    mode: str | None = None
    audience: str | None = None
    agenda: list[str] | None = None
    organizer: str | None = None
    tags: list[str] | None = None


class EventOut(SchemaBase):
    id: UUID
    title: str
    slug: str
    description: str
    overview: str
    image: str
    venue: str
    location: str
    date: str
    time: str
    mode: str
    audience: str
    agenda: list[str]
    organizer: str
    tags: list[str]
    created_at: datetime
    updated_at: datetime


class EventEnvelope(SchemaBase):
    message: str
    event: EventOut


class EventDetailEnvelope(EventEnvelope):
    bookings: int = Field(ge=0)


class EventListEnvelope(SchemaBase):
    message: str
    events: list[EventOut]
