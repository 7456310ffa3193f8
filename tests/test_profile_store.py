# tests/test_profile_store.py

"""
Tests for profile creation, self-edit and e-mail synchronisation.
"""

from unittest.mock import Mock

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from services.profile_store import ProfileStore, seed_from_identity
from tests.conftest import ENCODER_ID, OTHER_RESIDENT_ID, RESIDENT_ID, auth_headers


@pytest.fixture
def store(fake_db) -> ProfileStore:
    return ProfileStore(fake_db)


def test_seed_from_identity_falls_back_to_email():
    seed = seed_from_identity("ana.reyes@example.com", {"phone": "09171234567"})

    assert seed["full_name"] == "ana.reyes"
    assert seed["mobile"] == "09171234567"


def test_create_profile_is_idempotent(fake_db, store):
    seed = seed_from_identity("new@example.com", {"full_name": "  Ana Reyes "})

    first = store.create_profile_if_absent("new-user", seed)
    second = store.create_profile_if_absent("new-user", seed)

    assert first["id"] == second["id"] == "new-user"
    assert first["full_name"] == "Ana Reyes"
    assert first["role"] == "resident"
    assert len(fake_db.rows("profiles", id="new-user")) == 1


def test_create_profile_race_returns_existing_row(fake_db, store):
    """The losing insert reads back the row the winner wrote."""
    winner = {"id": "new-user", "email": "new@example.com", "full_name": "Winner", "role": "resident"}
    store.get_profile = Mock(side_effect=[None, winner])
    fake_db.fail_on("profiles", "insert", message='duplicate key value violates unique constraint "profiles_pkey"', code="23505")

    assert store.create_profile_if_absent("new-user", {"email": "new@example.com"}) == winner


def test_update_profile_mobile_keeps_leading_zero(store):
    updated = store.update_profile(RESIDENT_ID, {"mobile": " 09171234567 "})
    assert updated["mobile"] == "09171234567"


def test_update_profile_email_synchronised(fake_db, store):
    store.update_profile(RESIDENT_ID, {"email": "juan.new@example.com"})

    assert fake_db.rows("profiles", id=RESIDENT_ID)[0]["email"] == "juan.new@example.com"
    assert fake_db.auth.admin.updates == [(RESIDENT_ID, {"email": "juan.new@example.com"})]


def test_update_profile_email_rejected_restores_row(fake_db, store):
    """Identity provider refuses the new address: row restored, 400 returned."""
    fake_db.auth.admin.fail_update = "A user with this email address has already been registered"

    with pytest.raises(HTTPException) as exc:
        store.update_profile(RESIDENT_ID, {"email": "maria@example.com", "full_name": "Juan D. Cruz"})

    assert exc.value.status_code == 400
    assert exc.value.detail.startswith("Failed to update email:")
    row = fake_db.rows("profiles", id=RESIDENT_ID)[0]
    assert row["email"] == "resident@example.com"
    assert row["full_name"] == "Juan Dela Cruz"


def test_unchanged_email_skips_identity_update(fake_db, store):
    store.update_profile(RESIDENT_ID, {"email": "resident@example.com", "address": "Purok 3"})
    assert fake_db.auth.admin.updates == []


def test_empty_full_name_rejected(store):
    with pytest.raises(HTTPException) as exc:
        store.update_profile(RESIDENT_ID, {"full_name": "   "})
    assert exc.value.status_code == 400


def test_role_is_not_editable(fake_db, store):
    store.update_profile(RESIDENT_ID, {"role": "admin", "address": "Purok 1"})
    assert fake_db.rows("profiles", id=RESIDENT_ID)[0]["role"] == "resident"


# ============================================================
# HTTP surface
# ============================================================
def test_read_own_profile(client: TestClient):
    response = client.get("/profiles/me", headers=auth_headers(RESIDENT_ID))
    assert response.status_code == 200
    assert response.json()["full_name"] == "Juan Dela Cruz"


def test_patch_own_profile(client: TestClient, fake_db):
    response = client.patch(
        "/profiles/me",
        json={"address": "Purok 5, Barangay San Isidro"},
        headers=auth_headers(RESIDENT_ID),
    )
    assert response.status_code == 200
    assert fake_db.rows("profiles", id=RESIDENT_ID)[0]["address"] == "Purok 5, Barangay San Isidro"


def test_resident_cannot_read_other_profile(client: TestClient):
    response = client.get(f"/profiles/{OTHER_RESIDENT_ID}", headers=auth_headers(RESIDENT_ID))
    assert response.status_code == 403


def test_staff_reads_any_profile(client: TestClient):
    response = client.get(f"/profiles/{RESIDENT_ID}", headers=auth_headers(ENCODER_ID))
    assert response.status_code == 200
    assert response.json()["email"] == "resident@example.com"
