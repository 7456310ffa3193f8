# tests/test_permissions.py

"""
Tests for role permissions and the route guards built on them.
"""

import pytest
from fastapi.testclient import TestClient

from core.roles import ROLE_PERMISSIONS, ROLES, has_permission, is_admin_tier, is_staff
from tests.conftest import ADMIN_ID, CAPTAIN_ID, ENCODER_ID, RESIDENT_ID, auth_headers


def test_every_role_has_a_permission_list():
    assert set(ROLE_PERMISSIONS) == set(ROLES)


@pytest.mark.parametrize(
    "role, permission, allowed",
    [
        ("resident", "requests:create", True),
        ("resident", "requests:read_all", False),
        ("resident", "attachments:signed", False),
        ("encoder", "requests:update_status", True),
        ("encoder", "requests:create", False),
        ("encoder", "analytics:read", False),
        ("encoder", "document_types:write", False),
        ("captain", "analytics:read", True),
        ("admin", "document_types:write", True),
        ("admin", "profile:edit", False),
        (None, "requests:create", False),
        ("treasurer", "requests:read_all", False),
    ],
)
def test_has_permission(role, permission, allowed):
    assert has_permission(role, permission) is allowed


def test_role_tiers():
    assert not is_staff("resident")
    assert all(is_staff(r) for r in ("encoder", "captain", "admin"))
    assert is_admin_tier("captain") and is_admin_tier("admin")
    assert not is_admin_tier("encoder")
    assert not is_staff(None)


@pytest.mark.parametrize(
    "method, path, user_id",
    [
        ("get", "/requests", RESIDENT_ID),
        ("get", "/admin/dashboard", RESIDENT_ID),
        ("get", "/document-types/all", RESIDENT_ID),
        ("get", "/analytics/stats", ENCODER_ID),
        ("get", "/analytics/export", ENCODER_ID),
    ],
)
def test_guarded_routes_forbidden(client: TestClient, method, path, user_id):
    response = getattr(client, method)(path, headers=auth_headers(user_id))
    assert response.status_code == 403


@pytest.mark.parametrize("user_id", [ENCODER_ID, CAPTAIN_ID, ADMIN_ID])
def test_staff_list_requests(client: TestClient, user_id):
    response = client.get("/requests", headers=auth_headers(user_id))
    assert response.status_code == 200


def test_staff_cannot_cancel_for_resident(client: TestClient, seed_request):
    request = seed_request(status="pending")
    response = client.post(f"/requests/{request['id']}/cancel", headers=auth_headers(ADMIN_ID))
    assert response.status_code == 403


def test_staff_cannot_edit_own_profile_through_resident_route(client: TestClient):
    response = client.patch("/profiles/me", json={"address": "Hall"}, headers=auth_headers(ENCODER_ID))
    assert response.status_code == 403


def test_anonymous_requests_refused(client: TestClient):
    for path in ("/requests", "/requests/mine", "/admin/dashboard", "/analytics/stats", "/document-types"):
        assert client.get(path).status_code == 401
