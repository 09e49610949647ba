from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

# Configure the app before it is imported
_TMP_DIR = Path(tempfile.mkdtemp(prefix="devevent-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = str(_TMP_DIR / "media")
os.environ["PUBLIC_MEDIA_BASE_URL"] = "http://testserver/media"
os.environ.setdefault("ENV", "local")
os.environ["RATE_LIMIT_ENABLED"] = "false"

from app.db import SessionLocal  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Booking, Event  # noqa: E402
from app.services import events_service  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clean_db():
    # Ensure a clean slate for each test
    db = SessionLocal()
    try:
        db.execute(delete(Booking))
        db.execute(delete(Event))
        db.commit()
    finally:
        db.close()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def event_fields():
    def _build(**overrides) -> dict:
        fields = {
            "title": "Tech Summit",
            "description": "A day of talks about the web platform.",
            "overview": "Talks, workshops and networking.",
            "image": "http://testserver/media/events/cover.png",
            "venue": "Expo Center",
            "location": "São Paulo, SP",
            "date": "2025-11-15",
            "time": "09:00",
            "mode": "offline",
            "audience": "Developers",
            "agenda": ["Opening keynote", "Workshops"],
            "organizer": "DevEvent team",
            "tags": ["web", "javascript"],
        }
        fields.update(overrides)
        return fields

    return _build


@pytest.fixture
def make_event(db_session, event_fields):
    def _make(**overrides) -> Event:
        return events_service.create_event(db_session, event_fields(**overrides))

    return _make


@pytest.fixture
def form_payload(event_fields):
    """Multipart form fields the way a browser form submits them."""

    def _build(**overrides) -> dict:
        fields = event_fields(**overrides)
        fields.pop("image")
        data: dict = {}
        for key, value in fields.items():
            if isinstance(value, list):
                data[f"{key}[]"] = value
            else:
                data[key] = value
        return data

    return _build


@pytest.fixture
def image_file():
    return {"image": ("cover.png", PNG_BYTES, "image/png")}
