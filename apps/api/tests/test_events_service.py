from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.models import Event
from app.services import events_service
from app.services.exceptions import (
    InvalidDateError,
    InvalidTimeError,
    NotFoundError,
    UniquenessError,
    ValidationError,
)


def test_create_event_normalizes_fields(db_session, event_fields):
    event = events_service.create_event(
        db_session,
        event_fields(
            title="  Tech Summit 2025!  ",
            date="Nov 15, 2025",
            time="9:5",
            description="  padded  ",
            agenda=[" Keynote ", "", "Workshops"],
            tags=["Web", "web", " AI ", ""],
        ),
    )

    assert event.id is not None
    assert event.title == "Tech Summit 2025!"
    assert event.slug == "tech-summit-2025"
    assert event.date == "2025-11-15"
    assert event.time == "09:05"
    assert event.description == "padded"
    assert event.agenda == ["Keynote", "Workshops"]
    assert event.tags == ["Web", "AI"]
    assert event.created_at is not None
    assert event.updated_at is not None


def test_create_event_ignores_client_supplied_slug(db_session, event_fields):
    event = events_service.create_event(db_session, event_fields(slug="hijacked"))

    assert event.slug == "tech-summit"


def test_create_event_accepts_json_array_strings(db_session, event_fields):
    event = events_service.create_event(
        db_session,
        event_fields(agenda='["Intro", "Q&A"]', tags="devops"),
    )

    assert event.agenda == ["Intro", "Q&A"]
    assert event.tags == ["devops"]


@pytest.mark.parametrize(
    "field",
    [
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
    ],
)
def test_create_event_requires_text_fields(db_session, event_fields, field):
    fields = event_fields()
    fields[field] = "   "

    with pytest.raises(ValidationError) as excinfo:
        events_service.create_event(db_session, fields)
    assert field.lower() in excinfo.value.message.lower()


@pytest.mark.parametrize(
    "field,value,message",
    [
        ("agenda", [], "Agenda must contain at least one item"),
        ("agenda", "[]", "Agenda must contain at least one item"),
        ("agenda", ["", "  "], "Agenda must contain at least one item"),
        ("tags", [], "At least one tag is required"),
        ("tags", None, "At least one tag is required"),
    ],
)
def test_create_event_requires_list_items(db_session, event_fields, field, value, message):
    with pytest.raises(ValidationError) as excinfo:
        events_service.create_event(db_session, event_fields(**{field: value}))
    assert excinfo.value.message == message


def test_create_event_rejects_malformed_list(db_session, event_fields):
    with pytest.raises(ValidationError):
        events_service.create_event(db_session, event_fields(agenda='["unterminated'))
    with pytest.raises(ValidationError):
        events_service.create_event(db_session, event_fields(tags={"web": True}))


def test_create_event_propagates_date_and_time_errors(db_session, event_fields):
    with pytest.raises(InvalidDateError):
        events_service.create_event(db_session, event_fields(date="2025-13-01"))
    with pytest.raises(InvalidTimeError):
        events_service.create_event(db_session, event_fields(time="25:00"))

    assert db_session.scalar(select(func.count()).select_from(Event)) == 0


def test_create_event_rejects_title_without_slug(db_session, event_fields):
    with pytest.raises(ValidationError):
        events_service.create_event(db_session, event_fields(title="!!!"))


@pytest.mark.parametrize(
    "field,limit",
    [("title", 200), ("venue", 200), ("location", 300), ("mode", 50), ("audience", 200), ("image", 500)],
)
def test_create_event_enforces_column_lengths(db_session, event_fields, field, limit):
    with pytest.raises(ValidationError) as excinfo:
        events_service.create_event(db_session, event_fields(**{field: "x" * (limit + 1)}))

    assert f"at most {limit} characters" in excinfo.value.message
    assert db_session.scalar(select(func.count()).select_from(Event)) == 0

    # Exactly at the limit is fine
    event = events_service.create_event(db_session, event_fields(**{field: "x" * limit}))
    assert len(getattr(event, field)) == limit


def test_update_event_enforces_column_lengths(db_session, make_event):
    event = make_event()

    with pytest.raises(ValidationError):
        events_service.update_event(db_session, event.id, {"title": "T" * 201})

    db_session.refresh(event)
    assert event.title == "Tech Summit"


def test_duplicate_slug_is_rejected_and_first_event_unchanged(db_session, make_event, event_fields):
    first = make_event(title="Tech Summit", venue="Expo Center")

    with pytest.raises(UniquenessError):
        events_service.create_event(
            db_session, event_fields(title="tech   SUMMIT!", venue="Somewhere else")
        )

    stored = events_service.find_by_slug(db_session, "tech-summit")
    assert stored.id == first.id
    assert stored.title == "Tech Summit"
    assert stored.venue == "Expo Center"
    assert db_session.scalar(select(func.count()).select_from(Event)) == 1


def test_unique_constraint_is_authoritative(db_session, make_event, event_fields, monkeypatch):
    make_event(title="Tech Summit")
    # Simulate a concurrent writer slipping past the fast-path check
    monkeypatch.setattr(events_service, "_slug_taken", lambda *args, **kwargs: False)

    with pytest.raises(UniquenessError):
        events_service.create_event(db_session, event_fields(title="Tech Summit"))

    assert db_session.scalar(select(func.count()).select_from(Event)) == 1


def test_upload_runs_only_after_validation(db_session, event_fields):
    calls = []

    def upload() -> str:
        calls.append(1)
        return "https://cdn.example.com/events/cover.png"

    fields = event_fields(agenda=[])
    fields.pop("image")
    with pytest.raises(ValidationError):
        events_service.create_event(db_session, fields, upload_image=upload)
    assert calls == []

    fields = event_fields()
    fields.pop("image")
    event = events_service.create_event(db_session, fields, upload_image=upload)
    assert calls == [1]
    assert event.image == "https://cdn.example.com/events/cover.png"


def test_update_event_rederives_slug_only_when_title_supplied(db_session, make_event):
    event = make_event(title="Tech Summit", date="2025-11-15")

    updated = events_service.update_event(db_session, event.id, {"venue": "New Hall"})
    assert updated.slug == "tech-summit"
    assert updated.venue == "New Hall"
    assert updated.date == "2025-11-15"

    updated = events_service.update_event(
        db_session, str(event.id), {"title": "Tech Summit Reloaded", "time": "18:5"}
    )
    assert updated.slug == "tech-summit-reloaded"
    assert updated.time == "18:05"


def test_update_event_validates_supplied_fields(db_session, make_event):
    event = make_event()

    with pytest.raises(InvalidDateError):
        events_service.update_event(db_session, event.id, {"date": "2025-13-01"})
    with pytest.raises(ValidationError):
        events_service.update_event(db_session, event.id, {"tags": []})
    with pytest.raises(ValidationError):
        events_service.update_event(db_session, event.id, {"unknown": "value"})


def test_update_event_slug_collision(db_session, make_event):
    make_event(title="Tech Summit")
    other = make_event(title="DevOps Meetup")

    with pytest.raises(UniquenessError):
        events_service.update_event(db_session, other.id, {"title": "Tech Summit"})


def test_update_event_keeping_own_slug_is_allowed(db_session, make_event):
    event = make_event(title="Tech Summit")

    updated = events_service.update_event(db_session, event.id, {"title": "Tech  Summit"})

    assert updated.slug == "tech-summit"
    assert updated.title == "Tech  Summit"


def test_update_unknown_event(db_session):
    with pytest.raises(NotFoundError):
        events_service.update_event(db_session, uuid.uuid4(), {"venue": "Nowhere"})


@pytest.mark.parametrize("slug", ["tech-summit", "  Tech-Summit  ", "TECH-SUMMIT"])
def test_find_by_slug_is_case_and_whitespace_insensitive(db_session, make_event, slug):
    event = make_event(title="Tech Summit")

    assert events_service.find_by_slug(db_session, slug).id == event.id


def test_find_by_slug_errors(db_session):
    with pytest.raises(ValidationError):
        events_service.find_by_slug(db_session, "   ")
    with pytest.raises(NotFoundError) as excinfo:
        events_service.find_by_slug(db_session, " Missing ")
    assert excinfo.value.message == "Event with slug 'missing' not found"


def test_find_by_id_and_exists(db_session, make_event):
    event = make_event()

    assert events_service.find_by_id(db_session, str(event.id)).id == event.id
    assert events_service.find_by_id(db_session, uuid.uuid4()) is None
    assert events_service.exists(db_session, event.id)
    assert not events_service.exists(db_session, uuid.uuid4())
    assert not events_service.exists(db_session, "not-a-uuid")
    with pytest.raises(ValidationError):
        events_service.find_by_id(db_session, "not-a-uuid")


def test_list_events_newest_first(db_session, make_event):
    first = make_event(title="First")
    second = make_event(title="Second")
    third = make_event(title="Third")

    newest = [e.id for e in events_service.list_events(db_session)]
    oldest = [e.id for e in events_service.list_events(db_session, newest_first=False)]

    assert newest == [third.id, second.id, first.id]
    assert oldest == [first.id, second.id, third.id]


def test_find_similar_shares_a_tag(db_session, make_event):
    source = make_event(title="React Conf", tags=["react", "javascript"])
    js = make_event(title="JS Fest", tags=["JavaScript"])
    make_event(title="Cloud Day", tags=["cloud"])
    react = make_event(title="React Native Day", tags=["react", "mobile"])

    similar = events_service.find_similar(db_session, "react-conf")

    assert [e.id for e in similar] == [react.id, js.id]
    assert source.id not in {e.id for e in similar}


def test_find_similar_unknown_slug_is_empty(db_session, make_event):
    make_event()

    assert events_service.find_similar(db_session, "nope") == []
    assert events_service.find_similar(db_session, "  ") == []


def test_find_similar_swallows_backend_failures(db_session, make_event, monkeypatch):
    make_event(title="React Conf", tags=["react"])
    make_event(title="React Day", tags=["react"])

    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(db_session, "scalars", broken)

    assert events_service.find_similar(db_session, "react-conf") == []
