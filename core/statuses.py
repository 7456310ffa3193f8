# core/statuses.py

from typing import Optional


PENDING = "pending"
PROCESSING = "processing"
READY_FOR_PICKUP = "ready_for_pickup"
COMPLETED = "completed"
REJECTED = "rejected"
CANCELLED = "cancelled"

ALL_STATUSES = (PENDING, PROCESSING, READY_FOR_PICKUP, COMPLETED, REJECTED, CANCELLED)

TERMINAL_STATUSES = frozenset({COMPLETED, REJECTED, CANCELLED})

# Staff may set any of these; cancellation belongs to the resident.
STAFF_SETTABLE_STATUSES = frozenset({PENDING, PROCESSING, READY_FOR_PICKUP, COMPLETED, REJECTED})

CANCELLABLE_STATUSES = frozenset({PENDING, PROCESSING})

CANCELLATION_NOTE = "Request cancelled by resident"

# Values written by older clients
LEGACY_STATUS_MAP = {
    "declined": REJECTED,
    "readyforpickup": READY_FOR_PICKUP,
    "ready": READY_FOR_PICKUP,
    "canceled": CANCELLED,
}


def normalize_status(status: Optional[str]) -> str:
    """
    'Ready for Pickup' -> 'ready_for_pickup', 'Declined' -> 'rejected'.
    A missing status reads as the initial state.
    """
    if not status or not str(status).strip():
        return PENDING

    normalized = "_".join(str(status).strip().lower().replace("-", " ").split())
    return LEGACY_STATUS_MAP.get(normalized, normalized)


def format_status(status: Optional[str]) -> str:
    """Presentation only: 'ready_for_pickup' -> 'Ready For Pickup'."""
    if not status:
        return ""
    words = str(status).lower().replace("_", " ").split()
    return " ".join(word.capitalize() for word in words)


def is_known_status(status: Optional[str]) -> bool:
    return normalize_status(status) in ALL_STATUSES


def is_terminal(status: Optional[str]) -> bool:
    return normalize_status(status) in TERMINAL_STATUSES
