from app.models.base import Base
from app.models.booking import Booking
from app.models.event import Event

__all__ = ["Base", "Event", "Booking"]
