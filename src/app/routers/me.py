from __future__ import annotations

from fastapi import APIRouter, Depends

from src.app.deps import get_analytics, get_current_user
from src.app.domain.models import UserIdentity
from src.app.schemas.recipes import DashboardResponse
from src.app.services.analytics import AnalyticsService

router = APIRouter(prefix="/me", tags=["me"])


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    user: UserIdentity = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return DashboardResponse.from_domain(analytics.dashboard(user.uid))
