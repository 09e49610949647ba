from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import Booking, Event
from app.services import events_service
from app.services.error_codes import ErrorCode
from app.services.exceptions import (
    ReferentialIntegrityError,
    UniquenessError,
    ValidationError,
)
from app.services.normalizers import normalize_email

logger = structlog.get_logger()


def _resolve_event(db: Session, event_id: Any) -> Event:
    try:
        event = events_service.find_by_id(db, event_id)
    except ValidationError as exc:
        raise ReferentialIntegrityError("Referenced event does not exist") from exc
    if event is None:
        raise ReferentialIntegrityError("Referenced event does not exist")
    return event


def _already_booked() -> UniquenessError:
    return UniquenessError(
        "You have already booked this event",
        code=ErrorCode.BOOKING_ALREADY_EXISTS.value,
    )


def _booking_exists(db: Session, event_id: Any, email: str) -> bool:
    stmt = select(Booking.id).where(Booking.event_id == event_id, Booking.email == email)
    return db.scalar(stmt.limit(1)) is not None


def create_booking(db: Session, event_id: Any, email: str | None) -> Booking:
    normalized_email = normalize_email(email)
    event = _resolve_event(db, event_id)

    if _booking_exists(db, event.id, normalized_email):
        raise _already_booked()

    booking = Booking(event_id=event.id, email=normalized_email)
    db.add(booking)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # Either a concurrent booking won the unique constraint, or the event
        # vanished underneath us (foreign key).
        if events_service.find_by_id(db, event.id) is None:
            raise ReferentialIntegrityError("Referenced event does not exist") from exc
        raise _already_booked() from exc

    db.refresh(booking)
    logger.info("booking_created", booking_id=str(booking.id), event_id=str(event.id))
    return booking


def count_bookings(db: Session, event_id: Any) -> int:
    return int(
        db.scalar(
            select(func.count())
            .select_from(Booking)
            .where(Booking.event_id == events_service.parse_event_id(event_id))
        )
        or 0
    )
