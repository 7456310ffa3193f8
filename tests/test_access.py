# tests/test_access.py

"""
Tests for UI route gating.
"""

import pytest

from core.access import ALLOW, RedirectTo, classify_audience, normalize_path, resolve_access, Audience


@pytest.mark.parametrize(
    "path,session,role,expected",
    [
        # public auth pages
        ("/login", False, None, ALLOW),
        ("/login", True, "resident", RedirectTo("/dashboard")),
        ("/register", True, "encoder", RedirectTo("/admin")),
        ("/forgot-password", True, "admin", RedirectTo("/admin")),
        # resident app
        ("/dashboard", False, None, RedirectTo("/login")),
        ("/new-request", True, "resident", ALLOW),
        ("/history", True, "encoder", RedirectTo("/admin")),
        ("/dashboard", True, "captain", RedirectTo("/admin")),
        # admin dashboard / requests
        ("/admin", False, None, RedirectTo("/login")),
        ("/admin/requests", True, "resident", RedirectTo("/dashboard")),
        ("/admin/requests", True, "encoder", ALLOW),
        ("/admin", True, "captain", ALLOW),
        # admin-tier only
        ("/admin/analytics", True, "resident", RedirectTo("/dashboard")),
        ("/admin/analytics", True, "encoder", RedirectTo("/admin")),
        ("/admin/settings", True, "captain", ALLOW),
        ("/admin/settings", True, "admin", ALLOW),
        ("/admin/settings", False, None, RedirectTo("/login")),
        # profile
        ("/profile", False, None, RedirectTo("/login")),
        ("/profile", True, "encoder", ALLOW),
        ("/edit-profile", True, "resident", ALLOW),
        ("/edit-profile", True, "admin", RedirectTo("/profile")),
        # checkout
        ("/checkout", False, None, RedirectTo("/login")),
        ("/checkout", True, "resident", ALLOW),
        ("/checkout", True, "captain", ALLOW),
    ],
)
def test_access_table(path, session, role, expected):
    """Each route class answers per audience."""
    assert resolve_access(path, session, role) == expected


def test_session_without_profile_is_anonymous():
    """A session whose profile could not be loaded gets the most restrictive treatment."""
    assert classify_audience(True, None) == Audience.anonymous
    assert resolve_access("/dashboard", True, None) == RedirectTo("/login")
    assert resolve_access("/login", True, None) == ALLOW


def test_unknown_role_is_anonymous():
    assert resolve_access("/admin", True, "superuser") == RedirectTo("/login")


def test_root_lands_by_role():
    assert resolve_access("/", False, None) == RedirectTo("/login")
    assert resolve_access("/", True, "resident") == RedirectTo("/dashboard")
    assert resolve_access("/", True, "encoder") == RedirectTo("/admin")


def test_unknown_path_treated_as_root():
    assert resolve_access("/no-such-page", True, "resident") == RedirectTo("/dashboard")


def test_open_routes_ignore_session():
    for role in (None, "resident", "encoder", "admin"):
        assert resolve_access("/reset-password", role is not None, role) == ALLOW
        assert resolve_access("/auth/callback", role is not None, role) == ALLOW


def test_normalize_path():
    assert normalize_path("/admin/requests/") == "/admin/requests"
    assert normalize_path("admin?tab=1#top") == "/admin"
    assert normalize_path("") == "/"
