from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from app.api.errors import error_response, http_error_from_service
from app.api.forms import form_data_to_object
from app.api.v1.schemas.events import (
    EventDetailEnvelope,
    EventEnvelope,
    EventListEnvelope,
    EventOrder,
    EventOut,
    EventUpdate,
)
from app.db import get_db
from app.services import bookings_service, events_service, images
from app.services.error_codes import ErrorCode
from app.services.exceptions import NotFoundError, ServiceError, UnexpectedError
from app.storage.base import StorageAdapter
from app.storage.factory import get_storage

router = APIRouter(prefix="/events", tags=["events"])
logger = structlog.get_logger()

DBSession = Annotated[Session, Depends(get_db)]
Storage = Annotated[StorageAdapter, Depends(get_storage)]

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def _server_error(message: str, exc: Exception) -> JSONResponse:
    logger.exception("events_backend_error", message=message)
    return http_error_from_service(UnexpectedError(str(exc)), failure_message=message)


def _image_from(value: Any) -> UploadFile | None:
    if isinstance(value, list):
        value = value[0] if value else None
    return value if isinstance(value, UploadFile) else None


@router.get("", response_model=EventListEnvelope)
def list_events(
    db: DBSession,
    order: EventOrder = Query(default=EventOrder.DESC),
):
    try:
        events = events_service.list_events(db, newest_first=order == EventOrder.DESC)
    except SQLAlchemyError as exc:
        return _server_error("Event fetching failed", exc)

    return EventListEnvelope(
        message="Events fetched successfully",
        events=[EventOut.model_validate(e) for e in events],
    )


@router.post("", response_model=EventEnvelope, status_code=201)
async def create_event(request: Request, db: DBSession, storage: Storage):
    content_type = request.headers.get("content-type", "").lower()
    if not content_type.startswith(FORM_CONTENT_TYPES):
        return error_response(400, "Invalid form data format", ErrorCode.INVALID_FORM_DATA.value)

    try:
        form = await request.form()
    except (MultiPartException, StarletteHTTPException, ValueError):
        return error_response(400, "Invalid form data format", ErrorCode.INVALID_FORM_DATA.value)

    try:
        fields = form_data_to_object(form)
        image = _image_from(fields.pop("image", None))
        if image is None:
            return error_response(400, "Image file is required", ErrorCode.INVALID_IMAGE.value)

        def upload() -> str:
            return images.upload_image(
                storage,
                image.file,
                filename=image.filename,
                content_type=image.content_type,
            )

        images.check_image(image.filename, image.content_type)
        event = await run_in_threadpool(events_service.create_event, db, fields, upload)
    except ServiceError as err:
        return http_error_from_service(err, failure_message="Event Creation Failed")
    except SQLAlchemyError as exc:
        return _server_error("Event Creation Failed", exc)
    finally:
        await form.close()

    return EventEnvelope(
        message="Event created successfully",
        event=EventOut.model_validate(event),
    )


@router.get("/{slug}", response_model=EventDetailEnvelope)
def get_event(slug: str, db: DBSession):
    try:
        event = events_service.find_by_slug(db, slug)
        booked = bookings_service.count_bookings(db, event.id)
    except ServiceError as err:
        return http_error_from_service(err, failure_message="Failed to fetch events")
    except SQLAlchemyError as exc:
        return _server_error("Failed to fetch events", exc)

    return EventDetailEnvelope(
        message="Event fetched successfully",
        event=EventOut.model_validate(event),
        bookings=booked,
    )


@router.get("/{slug}/similar", response_model=EventListEnvelope)
def list_similar_events(slug: str, db: DBSession):
    similar = events_service.find_similar(db, slug)
    return EventListEnvelope(
        message="Similar events fetched successfully",
        events=[EventOut.model_validate(e) for e in similar],
    )


@router.patch("/{event_id}", response_model=EventEnvelope)
def update_event(event_id: str, payload: EventUpdate, db: DBSession):
    try:
        event = events_service.update_event(
            db, event_id, payload.model_dump(exclude_unset=True)
        )
    except NotFoundError as err:
        return http_error_from_service(err, status=404)
    except ServiceError as err:
        return http_error_from_service(err, failure_message="Event update failed")
    except SQLAlchemyError as exc:
        return _server_error("Event update failed", exc)

    return EventEnvelope(
        message="Event updated successfully",
        event=EventOut.model_validate(event),
    )
