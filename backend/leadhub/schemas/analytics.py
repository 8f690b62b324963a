from typing import List, Optional

from pydantic import BaseModel

from .crm import Lead


class LeadStats(BaseModel):
    total_leads: int = 0
    total_closings: int = 0
    total_revenue: float = 0
    conversion_rate: float = 0


class GroupStats(BaseModel):
    key: str
    label: str
    leads: int = 0
    closings: int = 0
    revenue: float = 0
    conversion_rate: float = 0


class AdminPerformance(BaseModel):
    admin_id: int
    name: str
    leads: int = 0
    closings: int = 0
    revenue: float = 0
    conversion_rate: float = 0


class MonthBucket(BaseModel):
    key: str  # YYYY-MM
    month: str  # display label, e.g. "Okt 2026"
    leads: int = 0
    closings: int = 0
    revenue: float = 0


class TargetProgress(BaseModel):
    target_id: int
    admin_id: int
    admin_name: Optional[str] = None
    month: int
    year: int
    monthly_target: int
    daily_target: int = 0
    actual_closings: int = 0
    progress: float = 0


class TotalsCorrection(BaseModel):
    admin_id: int
    name: str
    total_leads: int
    total_closings: int
    total_revenue: float
    previous_total_leads: int
    previous_total_closings: int
    previous_total_revenue: float


class DashboardResponse(BaseModel):
    stats: LeadStats
    recent_leads: List[Lead]
    top_admins: List[AdminPerformance]


class AnalyticsResponse(BaseModel):
    stats: LeadStats
    product_stats: List[GroupStats]
    source_stats: List[GroupStats]
    admin_stats: List[AdminPerformance]
    monthly_trend: List[MonthBucket]


class TargetReport(BaseModel):
    month: int
    year: int
    targets: List[TargetProgress]


class ReconcileReport(BaseModel):
    checked: int
    corrections: List[TotalsCorrection]
