# tests/test_statuses.py

"""
Tests for status normalisation and display formatting.
"""

import pytest

from core.statuses import (
    ALL_STATUSES,
    format_status,
    is_known_status,
    is_terminal,
    normalize_status,
)
from models.enums import RequestStatus


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Pending", "pending"),
        ("PROCESSING", "processing"),
        ("Ready for Pickup", "ready_for_pickup"),
        ("ready-for-pickup", "ready_for_pickup"),
        ("ReadyForPickup", "ready_for_pickup"),
        ("Declined", "rejected"),
        ("Canceled", "cancelled"),
        ("  completed ", "completed"),
        ("", "pending"),
        (None, "pending"),
    ],
)
def test_normalize_legacy_values(raw, expected):
    assert normalize_status(raw) == expected


def test_format_status():
    assert format_status("ready_for_pickup") == "Ready For Pickup"
    assert format_status("pending") == "Pending"
    assert format_status(None) == ""


@pytest.mark.parametrize(
    "raw",
    ["Ready for Pickup", "declined", "PROCESSING", "ready_for_pickup", "Weird Custom State", "", "a-b_c  d"],
)
def test_normalize_format_round_trip_is_stable(raw):
    """format(normalize(x)) is a fixed point of format(normalize(.))."""
    once = format_status(normalize_status(raw))
    twice = format_status(normalize_status(once))
    assert once == twice


def test_status_vocabulary_matches_enum():
    assert set(ALL_STATUSES) == set(RequestStatus.list())


def test_terminal_statuses():
    assert is_terminal("Completed")
    assert is_terminal("Declined")
    assert is_terminal("cancelled")
    assert not is_terminal("processing")
    assert not is_terminal("Ready for Pickup")


def test_unknown_status_not_known():
    assert is_known_status("Ready for Pickup")
    assert not is_known_status("archived")
