from app.api.v1.schemas.bookings import BookingCreate, BookingEnvelope, BookingOut
from app.api.v1.schemas.events import (
    EventDetailEnvelope,
    EventEnvelope,
    EventListEnvelope,
    EventOrder,
    EventOut,
    EventUpdate,
)

__all__ = [
    "EventOut",
    "EventUpdate",
    "EventOrder",
    "EventEnvelope",
    "EventDetailEnvelope",
    "EventListEnvelope",
    "BookingCreate",
    "BookingOut",
    "BookingEnvelope",
]
