import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..core.config import settings
from ..core.security import require_capability
from ..repositories import admins as admins_repo
from ..repositories import leads as leads_repo
from ..repositories import targets as targets_repo
from ..schemas.analytics import AnalyticsResponse, TargetReport
from ..schemas.crm import Lead
from ..schemas.settings import Admin, AdminTarget
from ..services import analytics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


async def _load_leads():
    try:
        return [Lead(**row) for row in await leads_repo.list_leads()]
    except Exception:
        logger.exception("Failed to fetch leads for analytics")
        return []


@router.get("", response_model=AnalyticsResponse)
async def get_analytics(current_user=Depends(require_capability("analytics"))):
    leads = await _load_leads()
    try:
        admins = [Admin(**row) for row in await admins_repo.list_admins()]
    except Exception:
        logger.exception("Failed to fetch admins for analytics")
        admins = []

    return AnalyticsResponse(
        stats=analytics.summarize(leads),
        product_stats=analytics.group_by_product(leads),
        source_stats=analytics.group_by_source(leads),
        admin_stats=analytics.admin_performance(leads, admins),
        monthly_trend=analytics.monthly_trend(leads, datetime.now(timezone.utc), settings.business_timezone),
    )


@router.get("/targets", response_model=TargetReport)
async def get_target_progress(
    month: Optional[int] = Query(default=None, ge=1, le=12),
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    current_user=Depends(require_capability("analytics")),
):
    now = datetime.now(settings.business_timezone)
    month = month or now.month
    year = year or now.year

    leads = await _load_leads()
    try:
        targets = [AdminTarget(**row) for row in await targets_repo.list_targets(month, year)]
    except Exception:
        logger.exception("Failed to fetch targets for %s/%s", month, year)
        targets = []

    return TargetReport(
        month=month,
        year=year,
        targets=analytics.target_progress(targets, leads, month, year, settings.business_timezone),
    )
