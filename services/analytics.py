# services/analytics.py

"""
Read-side aggregations over the requests table.

Every figure is recomputed from stored rows on each call; nothing is cached.
Calendar boundaries (today, this month, the 7-day and 6-month series) are
taken in ``settings.TIMEZONE``.
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

import pandas as pd
import pytz
from supabase import Client

from core.config import Settings
from core.errors import supabase_error
from core.statuses import ALL_STATUSES, CANCELLED, format_status, normalize_status
from core.utils import parse_timestamp, utcnow
from models.enums import StatsPeriod
from services.request_lifecycle import enrich_requests


RECENT_LIMIT = 5
DAILY_POINTS = 7
MONTHLY_POINTS = 6

EXPORT_COLUMNS = [
    "tracking_number",
    "resident_name",
    "resident_email",
    "document_type_name",
    "document_price",
    "status",
    "purpose",
    "payment_status",
    "created_at",
    "updated_at",
]


# -----------------------------------------------------
# Calendar helpers
# -----------------------------------------------------
def start_of_day(local: datetime) -> datetime:
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(local: datetime) -> datetime:
    return start_of_day(local).replace(day=1)


def shift_months(month_start: datetime, months: int) -> datetime:
    """First day of the month ``months`` away (negative goes back)."""
    index = month_start.year * 12 + (month_start.month - 1) + months
    return month_start.replace(year=index // 12, month=index % 12 + 1, day=1)


def window_start(period: StatsPeriod, now_local: datetime, tz) -> datetime:
    """
    day: since local midnight; week: the last 7 days;
    month: the current calendar month; year: the last 12 months.
    """
    if period == StatsPeriod.day:
        return tz.localize(start_of_day(now_local).replace(tzinfo=None))
    if period == StatsPeriod.week:
        return now_local - timedelta(days=7)
    if period == StatsPeriod.year:
        return now_local - timedelta(days=365)
    return tz.localize(start_of_month(now_local).replace(tzinfo=None))


def in_window(rows: List[dict], since: datetime, until: datetime, tz) -> List[dict]:
    selected = []
    for r in rows:
        created = _created(r, tz)
        if created and since <= created <= until:
            selected.append(r)
    return selected


def _created(row: dict, tz) -> Optional[datetime]:
    created = parse_timestamp(row.get("created_at"))
    return created.astimezone(tz) if created else None


# -----------------------------------------------------
# Pure aggregation
# -----------------------------------------------------
def compute_stats(rows: List[dict], period: StatsPeriod, now: datetime, tz_name: str) -> dict:
    """
    ``rows`` are enriched request rows (``document_type_name`` present).
    Window-dependent figures use ``period``; the month comparison,
    cancellations and both series always span the whole table.
    """
    tz = pytz.timezone(tz_name)
    now_local = now.astimezone(tz)
    windowed = in_window(rows, window_start(period, now_local, tz), now_local, tz)
    dated = [(r, _created(r, tz)) for r in rows]

    by_status = count_by_status(windowed)
    by_status.pop("total")

    by_type = Counter(r.get("document_type_name") or "Unknown" for r in windowed)

    this_month_start = start_of_month(now_local)
    last_month_start = shift_months(this_month_start, -1)

    def month_key(created: datetime):
        return (created.year, created.month)

    this_key = month_key(this_month_start)
    last_key = month_key(last_month_start)
    month_counts = Counter(month_key(created) for _, created in dated if created)
    this_month = month_counts.get(this_key, 0)
    last_month = month_counts.get(last_key, 0)

    if last_month:
        change = round((this_month - last_month) / last_month * 100, 1)
    else:
        change = 100.0 if this_month else 0.0

    cancelled = [(r, c) for r, c in dated if normalize_status(r.get("status")) == CANCELLED]
    cancelled_this_month = sum(1 for _, c in cancelled if c and month_key(c) == this_key)

    day_counts = Counter(c.date() for _, c in dated if c)
    daily = []
    for offset in range(DAILY_POINTS - 1, -1, -1):
        day = (now_local - timedelta(days=offset)).date()
        daily.append({"label": f"{day:%b} {day.day}", "count": day_counts.get(day, 0)})

    monthly = []
    for offset in range(MONTHLY_POINTS - 1, -1, -1):
        month = shift_months(this_month_start, -offset)
        monthly.append({"label": f"{month:%b %Y}", "count": month_counts.get(month_key(month), 0)})

    return {
        "period": str(period),
        "total": len(windowed),
        "by_status": by_status,
        "by_document_type": dict(by_type),
        "month_comparison": {
            "this_month": this_month,
            "last_month": last_month,
            "change_percent": change,
        },
        "cancellations": {"total": len(cancelled), "this_month": cancelled_this_month},
        "daily": daily,
        "monthly": monthly,
    }


def count_by_status(rows: List[dict]) -> Dict[str, int]:
    counts = {status: 0 for status in ALL_STATUSES}
    for r in rows:
        status = normalize_status(r.get("status"))
        counts[status] = counts.get(status, 0) + 1
    counts["total"] = len(rows)
    return counts


def requests_to_csv(rows: List[dict]) -> str:
    frame = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    if not frame.empty:
        frame["status"] = frame["status"].map(lambda s: format_status(normalize_status(s)))
    return frame.to_csv(index=False)


# -----------------------------------------------------
# Service
# -----------------------------------------------------
class AnalyticsService:
    def __init__(self, client: Client, settings: Settings, now: Callable[[], datetime] = utcnow):
        self.client = client
        self.settings = settings
        self.now = now

    def _all_requests(self, user_id: Optional[str] = None) -> List[dict]:
        try:
            query = self.client.table("requests").select("*")
            if user_id:
                query = query.eq("user_id", user_id)
            res = query.order("created_at", desc=True).execute()
        except Exception as e:
            supabase_error(e, "Failed to load requests")
        return res.data or []

    def stats(self, period: StatsPeriod) -> dict:
        rows = enrich_requests(self.client, self._all_requests())
        return compute_stats(rows, period, self.now(), self.settings.TIMEZONE)

    def resident_summary(self, user_id: str) -> dict:
        return count_by_status(self._all_requests(user_id))

    def admin_dashboard(self) -> dict:
        rows = self._all_requests()
        tz = pytz.timezone(self.settings.TIMEZONE)
        today = self.now().astimezone(tz).date()

        summary = count_by_status(rows)
        created = [_created(r, tz) for r in rows]
        summary["today"] = sum(1 for c in created if c and c.date() == today)
        summary["recent"] = enrich_requests(self.client, rows[:RECENT_LIMIT])
        return summary

    def export_csv(self, period: StatsPeriod) -> str:
        tz = pytz.timezone(self.settings.TIMEZONE)
        now_local = self.now().astimezone(tz)

        rows = enrich_requests(self.client, self._all_requests())
        return requests_to_csv(in_window(rows, window_start(period, now_local, tz), now_local, tz))
