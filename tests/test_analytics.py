# tests/test_analytics.py

"""
Tests for request statistics, dashboard counts and CSV export.

All timestamps are UTC; calendar boundaries are taken in Asia/Manila (UTC+8).
"""

import csv
import io
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from core.config import settings
from core.utils import parse_timestamp
from models.enums import StatsPeriod
from services.analytics import AnalyticsService, compute_stats, count_by_status, shift_months
from tests.conftest import CAPTAIN_ID, ENCODER_ID, OTHER_RESIDENT_ID, RESIDENT_ID, auth_headers


# 2024-10-19 12:00 in Manila
NOW = datetime(2024, 10, 19, 4, 0, tzinfo=timezone.utc)


@pytest.fixture
def history(seed_request):
    rows = [
        ("2024-10-19T01:00:00+00:00", "pending"),     # today, 09:00 local
        ("2024-10-18T20:00:00+00:00", "processing"),  # today, 04:00 local
        ("2024-10-18T15:00:00+00:00", "completed"),   # yesterday, 23:00 local
        ("2024-10-05T03:00:00+00:00", "cancelled"),
        ("2024-09-20T03:00:00+00:00", "Declined"),
        ("2024-09-21T03:00:00+00:00", "pending"),
        ("2024-04-10T03:00:00+00:00", "completed"),
        ("2023-06-01T03:00:00+00:00", "cancelled"),
    ]
    return [seed_request(status=status, created_at=created) for created, status in rows]


@pytest.fixture
def analytics(fake_db) -> AnalyticsService:
    return AnalyticsService(fake_db, settings, now=lambda: NOW)


@pytest.mark.parametrize(
    "period, expected_total",
    [
        (StatsPeriod.day, 2),
        (StatsPeriod.week, 3),
        (StatsPeriod.month, 4),
        (StatsPeriod.year, 7),
    ],
)
def test_period_totals(analytics, history, period, expected_total):
    assert analytics.stats(period)["total"] == expected_total


def test_month_total_matches_current_month_count(analytics, history):
    stats = analytics.stats(StatsPeriod.month)

    assert stats["total"] == stats["month_comparison"]["this_month"] == 4
    assert stats["by_status"] == {
        "pending": 1,
        "processing": 1,
        "ready_for_pickup": 0,
        "completed": 1,
        "rejected": 0,
        "cancelled": 1,
    }
    assert stats["by_document_type"] == {"Barangay Clearance": 4}


def test_month_comparison_and_cancellations(analytics, history):
    stats = analytics.stats(StatsPeriod.week)

    assert stats["month_comparison"] == {"this_month": 4, "last_month": 2, "change_percent": 100.0}
    assert stats["cancellations"] == {"total": 2, "this_month": 1}


def test_series_shapes(analytics, history):
    stats = analytics.stats(StatsPeriod.day)

    assert [p["label"] for p in stats["daily"]] == [
        "Oct 13", "Oct 14", "Oct 15", "Oct 16", "Oct 17", "Oct 18", "Oct 19",
    ]
    assert [p["count"] for p in stats["daily"]] == [0, 0, 0, 0, 0, 1, 2]

    assert [p["label"] for p in stats["monthly"]] == [
        "May 2024", "Jun 2024", "Jul 2024", "Aug 2024", "Sep 2024", "Oct 2024",
    ]
    assert [p["count"] for p in stats["monthly"]] == [0, 0, 0, 0, 2, 4]


def test_repeated_calls_are_identical(analytics, history):
    assert analytics.stats(StatsPeriod.month) == analytics.stats(StatsPeriod.month)


def test_empty_table():
    stats = compute_stats([], StatsPeriod.month, NOW, "Asia/Manila")

    assert stats["total"] == 0
    assert stats["month_comparison"]["change_percent"] == 0.0
    assert len(stats["daily"]) == 7
    assert len(stats["monthly"]) == 6


def test_shift_months_crosses_year():
    january = datetime(2024, 1, 1)
    assert shift_months(january, -1) == datetime(2023, 12, 1)
    assert shift_months(january, -13) == datetime(2022, 12, 1)
    assert shift_months(datetime(2024, 11, 1), 2) == datetime(2025, 1, 1)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2025-03-01T10:00:00.12345+00:00", datetime(2025, 3, 1, 10, 0, 0, 123450, tzinfo=timezone.utc)),
        ("2025-03-01T10:00:00.1+00:00", datetime(2025, 3, 1, 10, 0, 0, 100000, tzinfo=timezone.utc)),
        ("2025-03-01T10:00:00Z", datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)),
        ("2025-03-01T18:00:00+08:00", datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)),
        ("2025-03-01T10:00:00", datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)),
    ],
)
def test_parse_timestamp_accepts_postgres_fractions(raw, expected):
    parsed = parse_timestamp(raw)

    assert parsed.tzinfo is not None
    assert parsed == expected


def test_stats_with_trimmed_fraction_timestamp(analytics, history, seed_request):
    seed_request(status="pending", created_at="2024-10-19T02:30:00.12345+00:00")

    assert analytics.stats(StatsPeriod.day)["total"] == 3
    assert analytics.admin_dashboard()["today"] == 3


def test_count_by_status_normalises_legacy_values():
    counts = count_by_status([{"status": "Ready for Pickup"}, {"status": "declined"}, {"status": None}])

    assert counts["ready_for_pickup"] == 1
    assert counts["rejected"] == 1
    assert counts["pending"] == 1
    assert counts["total"] == 3


def test_admin_dashboard_counts_today_in_local_time(analytics, history):
    dashboard = analytics.admin_dashboard()

    assert dashboard["total"] == 8
    assert dashboard["today"] == 2
    assert len(dashboard["recent"]) == 5
    assert dashboard["recent"][0]["id"] == history[0]["id"]


def test_resident_summary_only_counts_own(analytics, history, seed_request):
    seed_request(user_id=OTHER_RESIDENT_ID, status="pending")

    summary = analytics.resident_summary(RESIDENT_ID)
    assert summary["total"] == 8
    assert summary["pending"] == 2


def test_export_csv(analytics, history):
    text = analytics.export_csv(StatsPeriod.month)
    rows = list(csv.DictReader(io.StringIO(text)))

    assert len(rows) == 4
    assert {r["status"] for r in rows} == {"Pending", "Processing", "Completed", "Cancelled"}
    assert rows[0]["tracking_number"].startswith("BRGY-")
    assert rows[0]["resident_name"] == "Juan Dela Cruz"


# ============================================================
# HTTP surface
# ============================================================
def test_stats_admin_tier_only(client: TestClient, history):
    assert client.get("/analytics/stats", headers=auth_headers(ENCODER_ID)).status_code == 403
    assert client.get("/analytics/stats", headers=auth_headers(RESIDENT_ID)).status_code == 403

    response = client.get("/analytics/stats", params={"period": "year"}, headers=auth_headers(CAPTAIN_ID))
    assert response.status_code == 200
    assert response.json()["period"] == "year"
    assert len(response.json()["monthly"]) == 6


def test_invalid_period_rejected(client: TestClient):
    response = client.get("/analytics/stats", params={"period": "decade"}, headers=auth_headers(CAPTAIN_ID))
    assert response.status_code == 422


def test_export_endpoint(client: TestClient, history):
    response = client.get("/analytics/export", params={"period": "year"}, headers=auth_headers(CAPTAIN_ID))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "requests-year.csv" in response.headers["content-disposition"]


def test_resident_summary_endpoint(client: TestClient, seed_request):
    seed_request(status="processing")
    seed_request(status="completed")

    response = client.get("/requests/mine/summary", headers=auth_headers(RESIDENT_ID))
    assert response.status_code == 200
    assert response.json()["total"] == 2
    assert response.json()["processing"] == 1


def test_admin_dashboard_endpoint(client: TestClient, seed_request):
    seed_request()
    response = client.get("/admin/dashboard", headers=auth_headers(ENCODER_ID))
    assert response.status_code == 200
    assert response.json()["total"] == 1
    assert client.get("/admin/dashboard", headers=auth_headers(RESIDENT_ID)).status_code == 403
