from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from dependencies.auth import requires_permission
from dependencies.services import get_analytics_service
from models.analytics import AnalyticsStats
from models.enums import StatsPeriod
from models.session import CurrentUser
from services.analytics import AnalyticsService


router = APIRouter(
    prefix="/analytics",
    tags=["Analytics"],
)


@router.get("/stats", response_model=AnalyticsStats, summary="Request statistics (admin-tier)")
def request_stats(
    period: StatsPeriod = Query(StatsPeriod.month),
    current_user: CurrentUser = Depends(requires_permission("analytics:read")),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    return analytics.stats(period)


@router.get("/export", summary="Requests in the period as CSV (admin-tier)")
def export_requests(
    period: StatsPeriod = Query(StatsPeriod.month),
    current_user: CurrentUser = Depends(requires_permission("analytics:read")),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    return Response(
        content=analytics.export_csv(period),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="requests-{period}.csv"'},
    )
