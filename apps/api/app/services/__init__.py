from app.services.bookings_service import count_bookings, create_booking
from app.services.events_service import (
    create_event,
    find_by_slug,
    find_similar,
    list_events,
    update_event,
)

__all__ = [
    "create_event",
    "update_event",
    "find_by_slug",
    "list_events",
    "find_similar",
    "create_booking",
    "count_bookings",
]
