import logging

from fastapi import APIRouter, Depends

from ..core.security import require_capability
from ..repositories import admins as admins_repo
from ..repositories import leads as leads_repo
from ..schemas.analytics import DashboardResponse
from ..schemas.crm import Lead
from ..schemas.settings import Admin
from ..services import analytics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

RECENT_LEADS = 10
TOP_ADMINS = 5


@router.get("", response_model=DashboardResponse)
async def get_dashboard(current_user=Depends(require_capability("dashboard"))):
    """
    Summary stats, the newest leads and the best performers.
    Any read failure degrades to empty data rather than an error.
    """
    try:
        leads = [Lead(**row) for row in await leads_repo.list_leads()]
    except Exception:
        logger.exception("Failed to fetch leads for dashboard")
        leads = []

    try:
        admins = [Admin(**row) for row in await admins_repo.list_admins(active_only=True)]
    except Exception:
        logger.exception("Failed to fetch admins for dashboard")
        admins = []

    return DashboardResponse(
        stats=analytics.summarize(leads),
        recent_leads=leads[:RECENT_LEADS],
        top_admins=analytics.admin_performance(leads, admins)[:TOP_ADMINS],
    )
