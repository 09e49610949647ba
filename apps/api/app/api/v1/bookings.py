from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.errors import http_error_from_service
from app.api.v1.schemas.bookings import BookingCreate, BookingEnvelope, BookingOut
from app.db import get_db
from app.services import bookings_service
from app.services.exceptions import ServiceError

router = APIRouter(prefix="/bookings", tags=["bookings"])

DBSession = Annotated[Session, Depends(get_db)]


@router.post("", response_model=BookingEnvelope, status_code=201)
def create_booking(payload: BookingCreate, db: DBSession):
    try:
        booking = bookings_service.create_booking(db, payload.event_id, payload.email)
    except ServiceError as err:
        return http_error_from_service(err, failure_message="Booking failed")

    return BookingEnvelope(
        message="Booking created successfully",
        booking=BookingOut.model_validate(booking),
    )
