# models/analytics.py

from typing import Dict, List
from pydantic import BaseModel


class SeriesPoint(BaseModel):
    label: str
    count: int


class MonthComparison(BaseModel):
    this_month: int
    last_month: int
    change_percent: float


class CancellationStats(BaseModel):
    total: int
    this_month: int


class AnalyticsStats(BaseModel):
    period: str
    total: int
    by_status: Dict[str, int]
    by_document_type: Dict[str, int]
    month_comparison: MonthComparison
    cancellations: CancellationStats
    daily: List[SeriesPoint]
    monthly: List[SeriesPoint]
