# core/roles.py

from typing import Optional


RESIDENT = "resident"
ENCODER = "encoder"
CAPTAIN = "captain"
ADMIN = "admin"

ROLES = (RESIDENT, ENCODER, CAPTAIN, ADMIN)

STAFF_ROLES = frozenset({ADMIN, ENCODER, CAPTAIN})
ADMIN_TIER_ROLES = frozenset({ADMIN, CAPTAIN})


# ============================================
# CENTRALIZED ROLE → PERMISSIONS MAP
# ============================================
ROLE_PERMISSIONS = {

    # =====================================================
    # RESIDENT: own requests only
    # =====================================================
    RESIDENT: [
        "requests:create",
        "requests:cancel",
        "profile:edit",
        "attachments:additional",
        "payments:create",
    ],

    # =====================================================
    # ENCODER: front-desk staff
    # =====================================================
    ENCODER: [
        "requests:read_all",
        "requests:update_status",
        "profiles:read_any",
        "attachments:additional",
        "attachments:signed",
        "document_types:read_all",
        "payments:create",
    ],

    # =====================================================
    # CAPTAIN: barangay captain, same reach as admin
    # =====================================================
    CAPTAIN: [
        "requests:read_all",
        "requests:update_status",
        "profiles:read_any",
        "attachments:additional",
        "attachments:signed",
        "document_types:read_all",
        "document_types:write",
        "analytics:read",
        "payments:create",
    ],

    # =====================================================
    # ADMIN
    # =====================================================
    ADMIN: [
        "requests:read_all",
        "requests:update_status",
        "profiles:read_any",
        "attachments:additional",
        "attachments:signed",
        "document_types:read_all",
        "document_types:write",
        "analytics:read",
        "payments:create",
    ],
}


def is_staff(role: Optional[str]) -> bool:
    return role in STAFF_ROLES


def is_admin_tier(role: Optional[str]) -> bool:
    return role in ADMIN_TIER_ROLES


def has_permission(role: Optional[str], permission: str) -> bool:
    if role is None:
        return False
    return permission in ROLE_PERMISSIONS.get(role, [])
