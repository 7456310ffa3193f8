# core/access.py

"""
Route accessibility for the portal's UI paths.

Accessibility is computed, never stored: ``resolve_access`` is a pure function of
the requested path, whether a session exists and the profile role. The frontend
router asks ``GET /session/access`` before rendering a page and either renders it
or performs a silent redirect.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from core.roles import ADMIN_TIER_ROLES, RESIDENT, STAFF_ROLES


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class RedirectTo:
    path: str


AccessDecision = Union[Allow, RedirectTo]

ALLOW = Allow()
TO_LOGIN = RedirectTo("/login")
TO_DASHBOARD = RedirectTo("/dashboard")
TO_ADMIN = RedirectTo("/admin")
TO_PROFILE = RedirectTo("/profile")


class RouteClass(str, Enum):
    public_auth = "public_auth"
    open = "open"
    root = "root"
    resident_app = "resident_app"
    admin = "admin"
    admin_tier = "admin_tier"
    profile_view = "profile_view"
    profile_edit = "profile_edit"
    checkout = "checkout"


class Audience(str, Enum):
    anonymous = "anonymous"
    resident = "resident"
    staff = "staff"
    admin_tier = "admin_tier"


ROUTES: Dict[str, RouteClass] = {
    "/login": RouteClass.public_auth,
    "/register": RouteClass.public_auth,
    "/forgot-password": RouteClass.public_auth,
    "/reset-password": RouteClass.open,
    "/auth/callback": RouteClass.open,
    "/": RouteClass.root,
    "/dashboard": RouteClass.resident_app,
    "/new-request": RouteClass.resident_app,
    "/history": RouteClass.resident_app,
    "/admin": RouteClass.admin,
    "/admin/requests": RouteClass.admin,
    "/admin/analytics": RouteClass.admin_tier,
    "/admin/settings": RouteClass.admin_tier,
    "/profile": RouteClass.profile_view,
    "/edit-profile": RouteClass.profile_edit,
    "/checkout": RouteClass.checkout,
}


ACCESS_TABLE: Dict[Tuple[RouteClass, Audience], AccessDecision] = {
    # Public auth pages
    (RouteClass.public_auth, Audience.anonymous): ALLOW,
    (RouteClass.public_auth, Audience.resident): TO_DASHBOARD,
    (RouteClass.public_auth, Audience.staff): TO_ADMIN,
    (RouteClass.public_auth, Audience.admin_tier): TO_ADMIN,

    # Password reset + auth callback must work with or without a session
    (RouteClass.open, Audience.anonymous): ALLOW,
    (RouteClass.open, Audience.resident): ALLOW,
    (RouteClass.open, Audience.staff): ALLOW,
    (RouteClass.open, Audience.admin_tier): ALLOW,

    # "/" always lands somewhere role-appropriate
    (RouteClass.root, Audience.anonymous): TO_LOGIN,
    (RouteClass.root, Audience.resident): TO_DASHBOARD,
    (RouteClass.root, Audience.staff): TO_ADMIN,
    (RouteClass.root, Audience.admin_tier): TO_ADMIN,

    # Resident app
    (RouteClass.resident_app, Audience.anonymous): TO_LOGIN,
    (RouteClass.resident_app, Audience.resident): ALLOW,
    (RouteClass.resident_app, Audience.staff): TO_ADMIN,
    (RouteClass.resident_app, Audience.admin_tier): TO_ADMIN,

    # Admin dashboard / requests
    (RouteClass.admin, Audience.anonymous): TO_LOGIN,
    (RouteClass.admin, Audience.resident): TO_DASHBOARD,
    (RouteClass.admin, Audience.staff): ALLOW,
    (RouteClass.admin, Audience.admin_tier): ALLOW,

    # Admin analytics / settings
    (RouteClass.admin_tier, Audience.anonymous): TO_LOGIN,
    (RouteClass.admin_tier, Audience.resident): TO_DASHBOARD,
    (RouteClass.admin_tier, Audience.staff): TO_ADMIN,
    (RouteClass.admin_tier, Audience.admin_tier): ALLOW,

    # Profile
    (RouteClass.profile_view, Audience.anonymous): TO_LOGIN,
    (RouteClass.profile_view, Audience.resident): ALLOW,
    (RouteClass.profile_view, Audience.staff): ALLOW,
    (RouteClass.profile_view, Audience.admin_tier): ALLOW,

    (RouteClass.profile_edit, Audience.anonymous): TO_LOGIN,
    (RouteClass.profile_edit, Audience.resident): ALLOW,
    (RouteClass.profile_edit, Audience.staff): TO_PROFILE,
    (RouteClass.profile_edit, Audience.admin_tier): TO_PROFILE,

    # Checkout
    (RouteClass.checkout, Audience.anonymous): TO_LOGIN,
    (RouteClass.checkout, Audience.resident): ALLOW,
    (RouteClass.checkout, Audience.staff): ALLOW,
    (RouteClass.checkout, Audience.admin_tier): ALLOW,
}


def classify_audience(session_present: bool, role: Optional[str]) -> Audience:
    """
    A session without a usable role (profile missing or unknown role) is
    treated as anonymous, the most restrictive audience.
    """
    if not session_present:
        return Audience.anonymous
    if role in ADMIN_TIER_ROLES:
        return Audience.admin_tier
    if role in STAFF_ROLES:
        return Audience.staff
    if role == RESIDENT:
        return Audience.resident
    return Audience.anonymous


def normalize_path(path: str) -> str:
    path = (path or "/").split("?", 1)[0].split("#", 1)[0].strip()
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/")
    return path


def resolve_access(path: str, session_present: bool, role: Optional[str]) -> AccessDecision:
    route_class = ROUTES.get(normalize_path(path))
    if route_class is None:
        # Unknown paths fall back to the role-appropriate landing page
        route_class = RouteClass.root

    return ACCESS_TABLE[(route_class, classify_audience(session_present, role))]
