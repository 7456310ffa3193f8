from fastapi import APIRouter, Depends

from dependencies.auth import requires_permission
from dependencies.services import get_analytics_service
from models.request import AdminDashboard
from models.session import CurrentUser
from services.analytics import AnalyticsService


router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
)


@router.get("/dashboard", response_model=AdminDashboard, summary="Staff dashboard counts")
def admin_dashboard(
    current_user: CurrentUser = Depends(requires_permission("requests:read_all")),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    """Counts by status, today's submissions and the five most recent requests."""
    return analytics.admin_dashboard()
