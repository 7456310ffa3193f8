# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

from typing import Generator
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from core.config import settings
from core.payment_providers import PlaceholderProvider
from core.rate_limiter import limiter
from core.storage import SupabaseStorage
from dependencies.auth import get_auth_client
from main import create_app
from models.session import CurrentUser
from services.attachments import UploadedFile
from services.request_lifecycle import RequestLifecycle
from tests.fakes import FakeSupabase


RESIDENT_ID = "resident-1"
OTHER_RESIDENT_ID = "resident-2"
ENCODER_ID = "encoder-1"
CAPTAIN_ID = "captain-1"
ADMIN_ID = "admin-1"

CLEARANCE_ID = "doctype-clearance"
INDIGENCY_ID = "doctype-indigency"

TOKENS = {
    RESIDENT_ID: "resident-token",
    OTHER_RESIDENT_ID: "resident2-token",
    ENCODER_ID: "encoder-token",
    CAPTAIN_ID: "captain-token",
    ADMIN_ID: "admin-token",
}

MB = 1024 * 1024


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {TOKENS[user_id]}"}


def jpeg(size: int = 2 * MB, name: str = "id.jpg") -> UploadedFile:
    return UploadedFile(filename=name, content_type="image/jpeg", data=b"\xff\xd8\xff" + b"\0" * (size - 3))


def pdf(size: int = 1 * MB, name: str = "document.pdf") -> UploadedFile:
    return UploadedFile(filename=name, content_type="application/pdf", data=b"%PDF" + b"\0" * (size - 4))


def as_user(user_id: str, role: str) -> CurrentUser:
    return CurrentUser(id=user_id, email=f"{user_id}@example.com", role=role)


@pytest.fixture(autouse=True)
def public_urls_forbidden(monkeypatch):
    """Storage objects are private: every public URL answers 403."""
    monkeypatch.setattr("core.storage.requests.get", Mock(return_value=Mock(status_code=403, content=b"")))


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.clear()
    yield
    limiter.clear()


@pytest.fixture
def fake_db() -> FakeSupabase:
    db = FakeSupabase()

    people = [
        (RESIDENT_ID, "resident@example.com", "Juan Dela Cruz", "resident"),
        (OTHER_RESIDENT_ID, "maria@example.com", "Maria Santos", "resident"),
        (ENCODER_ID, "encoder@example.com", "Front Desk", "encoder"),
        (CAPTAIN_ID, "captain@example.com", "Kapitan Reyes", "captain"),
        (ADMIN_ID, "admin@example.com", "Barangay Admin", "admin"),
    ]
    for user_id, email, name, role in people:
        db.seed("profiles", {"id": user_id, "email": email, "full_name": name, "role": role})
        db.auth.add_user(TOKENS[user_id], user_id, email, password="correct-horse")

    db.seed(
        "document_types",
        {
            "id": CLEARANCE_ID,
            "name": "Barangay Clearance",
            "description": "General purpose clearance",
            "price": "50.00",
            "requirements": "Valid ID",
            "processing_days": 3,
            "is_active": True,
        },
        {
            "id": INDIGENCY_ID,
            "name": "Certificate of Indigency",
            "price": "0.00",
            "processing_days": 1,
            "is_active": False,
        },
    )
    return db


@pytest.fixture
def storage(fake_db) -> SupabaseStorage:
    return SupabaseStorage(fake_db, try_public_url=True)


@pytest.fixture
def lifecycle(fake_db, storage) -> RequestLifecycle:
    return RequestLifecycle(fake_db, storage, settings)


@pytest.fixture
def seed_request(fake_db):
    """Insert a request row directly; returns the stored row."""
    counter = {"n": 0}

    def _seed(user_id=RESIDENT_ID, status="pending", created_at=None, **fields):
        counter["n"] += 1
        row = {
            "user_id": user_id,
            "document_type_id": CLEARANCE_ID,
            "tracking_number": f"BRGY-20240101-{counter['n']:08X}",
            "status": status,
            "purpose": "Employment",
            "id_image_url": f"{user_id}/seed/id-front/front.jpg",
            "id_image_back_url": f"{user_id}/seed/id-back/back.jpg",
            **fields,
        }
        if created_at is not None:
            row["created_at"] = created_at
        return fake_db.seed("requests", row)[0]

    return _seed


@pytest.fixture(scope="function")
def app(fake_db, storage):
    """Create a test FastAPI application instance wired to the in-memory backend."""
    application = create_app(
        supabase_client=fake_db,
        storage=storage,
        payment_provider=PlaceholderProvider(),
    )
    application.dependency_overrides[get_auth_client] = lambda: fake_db
    return application


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client
