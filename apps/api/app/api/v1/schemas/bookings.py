from __future__ import annotations

from datetime import datetime
from uuid import UUID

from app.api.v1.schemas.events import SchemaBase


class BookingCreate(SchemaBase):
    # Kept as plain strings; the bookings service owns id parsing and email rules.
    event_id: str
    email: str


class BookingOut(SchemaBase):
    id: UUID
    event_id: UUID
    email: str
    created_at: datetime
    updated_at: datetime


class BookingEnvelope(SchemaBase):
    message: str
    booking: BookingOut
