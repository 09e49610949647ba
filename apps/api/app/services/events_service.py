from __future__ import annotations

import json
import uuid
from collections.abc import Callable, Mapping
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import Event
from app.services.error_codes import ErrorCode
from app.services.exceptions import NotFoundError, UniquenessError, ValidationError
from app.services.normalizers import normalize_date, normalize_slug, normalize_time

logger = structlog.get_logger()

TEXT_FIELDS = (
    "title",
    "description",
    "overview",
    "image",
    "venue",
    "location",
    "date",
    "time",
    "mode",
    "audience",
    "organizer",
)
LIST_FIELDS = ("agenda", "tags")
EDITABLE_FIELDS = TEXT_FIELDS + LIST_FIELDS

LIST_FIELD_MESSAGES = {
    "agenda": "Agenda must contain at least one item",
    "tags": "At least one tag is required",
}


def _require_text(field: str, value: Any) -> str:
    message = f"{field.capitalize()} is required"
    if value is None or not isinstance(value, (str, int, float)):
        raise ValidationError(message)
    text = str(value).strip()
    if not text:
        raise ValidationError(message)
    return text


def _coerce_items(field: str, value: Any) -> list[str]:
    """Accept a list, a single string, or a JSON array string (as sent by form clients)."""
    if value is None:
        return []
    if isinstance(value, str):
        raw = value.strip()
        if raw.startswith("["):
            try:
                value = json.loads(raw)
            except ValueError as exc:
                raise ValidationError(f"{field.capitalize()} must be a list of strings") from exc
            if not isinstance(value, list):
                raise ValidationError(f"{field.capitalize()} must be a list of strings")
        else:
            value = [raw]
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{field.capitalize()} must be a list of strings")
    if any(not isinstance(item, (str, int, float)) for item in value):
        raise ValidationError(f"{field.capitalize()} must be a list of strings")
    return [str(item).strip() for item in value]


def _normalize_items(field: str, value: Any) -> list[str]:
    items = [item for item in _coerce_items(field, value) if item]

    if field == "tags":
        # set-like: drop case-insensitive repeats, keep first spelling and order
        deduped: list[str] = []
        seen: set[str] = set()
        for item in items:
            key = item.casefold()
            if key in seen:
                continue
            seen.add(key)
            deduped.append(item)
        items = deduped

    if not items:
        raise ValidationError(LIST_FIELD_MESSAGES[field])
    return items


def _max_length(field: str) -> int | None:
    column = Event.__table__.c.get(field)
    return getattr(column.type, "length", None) if column is not None else None


def normalize_event_fields(
    fields: Mapping[str, Any],
    *,
    partial: bool = False,
    exclude: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Validate and normalize event fields.

    With ``partial=False`` every editable field except those in ``exclude`` is
    required. With ``partial=True`` only the supplied fields are processed, so
    slug/date/time normalization runs only for what the write actually sets.
    Unknown keys are ignored.
    """
    data: dict[str, Any] = {}
    for field in EDITABLE_FIELDS:
        if field in exclude:
            continue
        if partial and field not in fields:
            continue

        value = fields.get(field)
        if field in LIST_FIELDS:
            data[field] = _normalize_items(field, value)
        else:
            data[field] = _require_text(field, value)

    if "title" in data:
        slug = normalize_slug(data["title"])
        if not slug:
            raise ValidationError("Title must contain at least one letter or digit")
        data["slug"] = slug
    if "date" in data:
        data["date"] = normalize_date(data["date"])
    if "time" in data:
        data["time"] = normalize_time(data["time"])

    for field, value in data.items():
        limit = _max_length(field)
        if limit is not None and len(value) > limit:
            raise ValidationError(f"{field.capitalize()} must be at most {limit} characters")
    return data


def parse_event_id(event_id: Any) -> uuid.UUID:
    if isinstance(event_id, uuid.UUID):
        return event_id
    try:
        return uuid.UUID(str(event_id).strip())
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            "Invalid event ID format", code=ErrorCode.INVALID_EVENT_ID.value
        ) from exc


def find_by_id(db: Session, event_id: Any) -> Event | None:
    return db.get(Event, parse_event_id(event_id))


def exists(db: Session, event_id: Any) -> bool:
    try:
        return find_by_id(db, event_id) is not None
    except ValidationError:
        return False


def _slug_taken(db: Session, slug: str, exclude_id: uuid.UUID | None = None) -> bool:
    stmt = select(Event.id).where(Event.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(Event.id != exclude_id)
    return db.scalar(stmt.limit(1)) is not None


def _slug_conflict(slug: str) -> UniquenessError:
    return UniquenessError(
        f"An event with slug '{slug}' already exists",
        code=ErrorCode.EVENT_SLUG_TAKEN.value,
    )


def create_event(
    db: Session,
    fields: Mapping[str, Any],
    upload_image: Callable[[], str] | None = None,
) -> Event:
    """Create an event from raw ``fields``.

    ``upload_image`` supplies the image URL when the caller holds an image
    file instead of a URL; it is only invoked once every other field has
    passed validation and the slug is known to be free.
    """
    data = normalize_event_fields(
        fields, exclude=("image",) if upload_image is not None else ()
    )

    # Fast path only; the unique constraint decides under concurrency.
    if _slug_taken(db, data["slug"]):
        raise _slug_conflict(data["slug"])

    if upload_image is not None:
        data["image"] = upload_image()

    event = Event(**data)
    db.add(event)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise _slug_conflict(data["slug"]) from exc

    db.refresh(event)
    logger.info("event_created", event_id=str(event.id), slug=event.slug)
    return event


def update_event(db: Session, event_id: Any, fields: Mapping[str, Any]) -> Event:
    event = find_by_id(db, event_id)
    if not event:
        raise NotFoundError("Event not found")

    data = normalize_event_fields(fields, partial=True)
    if not data:
        raise ValidationError("at least one editable field must be provided")

    slug = data.get("slug")
    if slug is not None and slug != event.slug and _slug_taken(db, slug, exclude_id=event.id):
        raise _slug_conflict(slug)

    for key, value in data.items():
        setattr(event, key, value)

    db.add(event)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise _slug_conflict(slug or event.slug) from exc

    db.refresh(event)
    logger.info("event_updated", event_id=str(event.id), fields=sorted(data))
    return event


def find_by_slug(db: Session, slug: str | None) -> Event:
    sanitized = (slug or "").strip().lower()
    if not sanitized:
        raise ValidationError(
            "Invalid or missing slug parameter", code=ErrorCode.INVALID_SLUG.value
        )

    event = db.scalar(select(Event).where(Event.slug == sanitized))
    if not event:
        raise NotFoundError(f"Event with slug '{sanitized}' not found")
    return event


def list_events(db: Session, newest_first: bool = True) -> list[Event]:
    order = Event.created_at.desc() if newest_first else Event.created_at.asc()
    return list(db.scalars(select(Event).order_by(order)))


def find_similar(db: Session, slug: str | None) -> list[Event]:
    """Return other events sharing at least one tag with the event at ``slug``.

    An unknown slug gives ``[]``. Lookup failures are logged and also give
    ``[]``, so an empty result does not prove there are no similar events.
    """
    try:
        event = find_by_slug(db, slug)
        tags = {tag.casefold() for tag in event.tags}
        candidates = db.scalars(
            select(Event).where(Event.id != event.id).order_by(Event.created_at.desc())
        )
        return [
            other
            for other in candidates
            if tags.intersection(tag.casefold() for tag in other.tags)
        ]
    except (NotFoundError, ValidationError):
        return []
    except Exception:
        logger.exception("similar_events_lookup_failed", slug=slug)
        return []
