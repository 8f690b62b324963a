"""
Dashboard and analytics aggregations.

Everything here works on lead lists that were already fetched; nothing touches
the database. Grouped results keep the order in which keys are first seen.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.config import settings
from ..schemas.analytics import (
    AdminPerformance,
    GroupStats,
    LeadStats,
    MonthBucket,
    TargetProgress,
    TotalsCorrection,
)
from ..schemas.crm import CLOSING, Lead
from ..schemas.settings import Admin, AdminTarget

TREND_MONTHS = 6
MONTH_ABBR_ID = ["Jan", "Feb", "Mar", "Apr", "Mei", "Jun", "Jul", "Agu", "Sep", "Okt", "Nov", "Des"]
UNKNOWN = "Unknown"


def is_closed(lead: Lead) -> bool:
    return lead.stage == CLOSING


def revenue_of(lead: Lead) -> float:
    """Agreed price of a won deal; a price kept on a lost or open lead is not revenue."""
    if not is_closed(lead):
        return 0.0
    return float(lead.final_price or 0)


def percentage(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return part / whole * 100


def summarize(leads: Sequence[Lead]) -> LeadStats:
    total = len(leads)
    closed = sum(1 for lead in leads if is_closed(lead))
    revenue = sum(revenue_of(lead) for lead in leads)
    return LeadStats(
        total_leads=total,
        total_closings=closed,
        total_revenue=revenue,
        conversion_rate=percentage(closed, total),
    )


def _group(
    leads: Iterable[Lead],
    key_fn: Callable[[Lead], str],
    label_fn: Callable[[Lead], str],
) -> List[GroupStats]:
    groups: Dict[str, GroupStats] = {}
    for lead in leads:
        key = key_fn(lead)
        group = groups.get(key)
        if group is None:
            group = groups[key] = GroupStats(key=key, label=label_fn(lead))
        group.leads += 1
        if is_closed(lead):
            group.closings += 1
        group.revenue += revenue_of(lead)
    for group in groups.values():
        group.conversion_rate = percentage(group.closings, group.leads)
    return list(groups.values())


def group_by_product(leads: Iterable[Lead]) -> List[GroupStats]:
    """Breakdown per (product, package) pair."""
    def key(lead: Lead) -> str:
        return f"{lead.product_id or ''}:{lead.sub_product_id or ''}"

    def label(lead: Lead) -> str:
        product = lead.product_name or UNKNOWN
        return f"{product} - {lead.sub_product_name}" if lead.sub_product_name else product

    return _group(leads, key, label)


def group_by_source(leads: Iterable[Lead]) -> List[GroupStats]:
    return _group(leads, lambda lead: lead.source or UNKNOWN, lambda lead: lead.source or UNKNOWN)


def admin_performance(leads: Iterable[Lead], admins: Sequence[Admin]) -> List[AdminPerformance]:
    """Per-admin results computed from the leads themselves, best revenue first."""
    rows: Dict[int, AdminPerformance] = {
        admin.id: AdminPerformance(admin_id=admin.id, name=admin.name) for admin in admins
    }
    for lead in leads:
        if lead.assigned_admin_id is None:
            continue
        row = rows.get(lead.assigned_admin_id)
        if row is None:
            row = rows[lead.assigned_admin_id] = AdminPerformance(
                admin_id=lead.assigned_admin_id,
                name=lead.assigned_admin_name or UNKNOWN,
            )
        row.leads += 1
        if is_closed(lead):
            row.closings += 1
        row.revenue += revenue_of(lead)
    for row in rows.values():
        row.conversion_rate = percentage(row.closings, row.leads)
    return sorted(rows.values(), key=lambda r: r.revenue, reverse=True)


def _local(moment: datetime, tz=None) -> datetime:
    """Wall-clock time in the business timezone; naive values are taken as already local."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(tz or settings.business_timezone)


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_label(year: int, month: int) -> str:
    return f"{MONTH_ABBR_ID[month - 1]} {year}"


def trailing_months(now: datetime, count: int = TREND_MONTHS, tz=None) -> List[Tuple[int, int]]:
    """(year, month) pairs for the current month and the count-1 before it, oldest first."""
    now = _local(now, tz)
    months = []
    for offset in range(count - 1, -1, -1):
        index = now.year * 12 + (now.month - 1) - offset
        months.append((index // 12, index % 12 + 1))
    return months


def monthly_trend(leads: Iterable[Lead], now: Optional[datetime] = None, tz=None) -> List[MonthBucket]:
    now = now or datetime.now(timezone.utc)
    buckets: Dict[str, MonthBucket] = {}
    for year, month in trailing_months(now, tz=tz):
        key = month_key(year, month)
        buckets[key] = MonthBucket(key=key, month=month_label(year, month))

    for lead in leads:
        created = _local(lead.created_at, tz)
        bucket = buckets.get(month_key(created.year, created.month))
        if bucket is None:
            continue
        bucket.leads += 1
        if is_closed(lead):
            bucket.closings += 1
        bucket.revenue += revenue_of(lead)
    return list(buckets.values())


def progress_percentage(actual: int, target: int, cap: float = 100.0) -> float:
    if target <= 0:
        return 0.0
    return min(actual / target * 100, cap)


def target_progress(
    targets: Iterable[AdminTarget], leads: Sequence[Lead], month: int, year: int, tz=None
) -> List[TargetProgress]:
    in_period = []
    for lead in leads:
        created = _local(lead.created_at, tz)
        if created.month == month and created.year == year:
            in_period.append(lead)
    report = []
    for target in targets:
        if target.month != month or target.year != year:
            continue
        actual = sum(
            1 for lead in in_period
            if lead.assigned_admin_id == target.admin_id and is_closed(lead)
        )
        report.append(TargetProgress(
            target_id=target.id,
            admin_id=target.admin_id,
            admin_name=target.admin_name,
            month=target.month,
            year=target.year,
            monthly_target=target.monthly_target,
            daily_target=target.daily_target,
            actual_closings=actual,
            progress=progress_percentage(actual, target.monthly_target),
        ))
    return report


def reconcile_admin_totals(admins: Sequence[Admin], leads: Iterable[Lead]) -> List[TotalsCorrection]:
    """Return the admins whose cached totals disagree with their leads."""
    actual = {row.admin_id: row for row in admin_performance(leads, admins)}
    corrections = []
    for admin in admins:
        row = actual[admin.id]
        if (
            admin.total_leads == row.leads
            and admin.total_closings == row.closings
            and abs(float(admin.total_revenue) - row.revenue) < 0.005
        ):
            continue
        corrections.append(TotalsCorrection(
            admin_id=admin.id,
            name=admin.name,
            total_leads=row.leads,
            total_closings=row.closings,
            total_revenue=row.revenue,
            previous_total_leads=admin.total_leads,
            previous_total_closings=admin.total_closings,
            previous_total_revenue=float(admin.total_revenue),
        ))
    return corrections
