"""
Metrics Service Module

Reduces snapshots of governance items, risks, audits and assets into the
dashboard statistics and the cross-domain activity feed.

Everything here is pure computation over records the caller has already
fetched. The reference instant ``now`` is passed in once and every window
and day count in a pass is computed from it.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from governance_dashboard.config import Settings
from governance_dashboard.models import (
    ActivityEntry,
    Asset,
    AssetCategory,
    AssetStats,
    AssetStatus,
    Audit,
    AuditStats,
    AuditStatus,
    ComplianceStats,
    DashboardReport,
    DashboardSnapshots,
    DashboardStats,
    GovernanceItem,
    GovernanceStats,
    GovernanceStatus,
    Record,
    Risk,
    RiskStats,
    UserStats,
)
from governance_dashboard.services.risk_service import dashboard_bucket

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

# Status -> dashboard bucket. None means the status is not shown on the dashboard.
GOVERNANCE_BUCKETS: Dict[GovernanceStatus, Optional[str]] = {
    GovernanceStatus.IN_PROGRESS: "active",
    GovernanceStatus.NOT_STARTED: "draft",
    GovernanceStatus.COMPLETED: "archived",
    GovernanceStatus.BLOCKED: None,
    GovernanceStatus.AT_RISK: None,
    GovernanceStatus.DEFERRED: None,
}

AUDIT_BUCKETS: Dict[AuditStatus, Optional[str]] = {
    AuditStatus.COMPLETED: "completed",
    AuditStatus.IN_PROGRESS: "in_progress",
    AuditStatus.PLANNED: "planned",
    AuditStatus.FIELD_WORK: None,
    AuditStatus.REPORTING: None,
    AuditStatus.CANCELLED: None,
}

ASSET_STATUS_BUCKETS: Dict[AssetStatus, Optional[str]] = {
    AssetStatus.AVAILABLE: "available",
    AssetStatus.IN_USE: "in_use",
    AssetStatus.MAINTENANCE: "maintenance",
    AssetStatus.RETIRED: None,
    AssetStatus.LOST: None,
    AssetStatus.DAMAGED: None,
}

ASSET_CATEGORY_BUCKETS: Dict[AssetCategory, Optional[str]] = {
    AssetCategory.COMPUTER: "computers",
    AssetCategory.LAPTOP: "computers",
    AssetCategory.MONITOR: "computers",
    AssetCategory.SOFTWARE_LICENSE: "software",
    AssetCategory.PRINTER: None,
    AssetCategory.SCANNER: None,
    AssetCategory.NETWORKING: None,
    AssetCategory.PERIPHERAL: None,
    AssetCategory.ACCESSORY: None,
    AssetCategory.MOBILE_DEVICE: None,
    AssetCategory.SERVER: None,
    AssetCategory.STORAGE: None,
    AssetCategory.CONSUMABLE: None,
    AssetCategory.OTHER: None,
}


def _check_exhaustive(mapping: Mapping, enum_type: type) -> None:
    missing = set(enum_type) - set(mapping)
    if missing:
        names = ", ".join(sorted(member.name for member in missing))
        raise RuntimeError(f"{enum_type.__name__} has no bucket for: {names}")


for _mapping, _enum in (
    (GOVERNANCE_BUCKETS, GovernanceStatus),
    (AUDIT_BUCKETS, AuditStatus),
    (ASSET_STATUS_BUCKETS, AssetStatus),
    (ASSET_CATEGORY_BUCKETS, AssetCategory),
):
    _check_exhaustive(_mapping, _enum)


# ============================================================
# TIME WINDOWS
# ============================================================


def localize(value: datetime, tz: tzinfo) -> datetime:
    """Express ``value`` in ``tz``; naive values are taken to be in ``tz`` already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def to_instant(value: datetime, tz: tzinfo) -> datetime:
    """The UTC instant of ``value``; naive values are read in ``tz``."""
    return localize(value, tz).astimezone(timezone.utc)


@dataclass(frozen=True)
class PeriodWindow:
    """
    This month is [this_month_start, now), last month is
    [last_month_start, this_month_start).

    Month starts are wall-clock midnights in the zone of ``now``; membership
    is decided on UTC instants.
    """

    now: datetime
    this_month_start: datetime
    last_month_start: datetime

    @classmethod
    def at(cls, now: datetime) -> "PeriodWindow":
        this_month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        last_month_start = (this_month_start - timedelta(days=1)).replace(day=1)
        return cls(now=now, this_month_start=this_month_start, last_month_start=last_month_start)

    def in_this_month(self, moment: datetime) -> bool:
        instant = moment.astimezone(timezone.utc)
        return (
            self.this_month_start.astimezone(timezone.utc)
            <= instant
            < self.now.astimezone(timezone.utc)
        )

    def in_last_month(self, moment: datetime) -> bool:
        instant = moment.astimezone(timezone.utc)
        return (
            self.last_month_start.astimezone(timezone.utc)
            <= instant
            < self.this_month_start.astimezone(timezone.utc)
        )


def round_half_up(value: float) -> int:
    """Round halves towards positive infinity."""
    return int(math.floor(value + 0.5))


def trend_percent(this_month: int, last_month: int) -> int:
    """
    Percentage change in records created this month versus last month.

    A zero baseline with new activity reports 100; no activity in either
    month reports 0.
    """
    if last_month > 0:
        return round_half_up(((this_month - last_month) / last_month) * 100)
    if this_month > 0:
        return 100
    return 0


def days_until(moment: datetime, now: datetime) -> int:
    """Whole days from ``now`` to ``moment``, rounded up."""
    elapsed = moment.astimezone(timezone.utc) - now.astimezone(timezone.utc)
    return math.ceil(elapsed.total_seconds() / SECONDS_PER_DAY)


def is_upcoming(start_date: datetime, now: datetime, window_days: int = 30) -> bool:
    """True when the start is strictly in the future and at most ``window_days`` away."""
    return 0 < days_until(start_date, now) <= window_days


# ============================================================
# DOMAIN STATISTICS
# ============================================================


@dataclass(frozen=True)
class PeriodCounts:
    this_month: int
    last_month: int

    @property
    def trend(self) -> int:
        return trend_percent(self.this_month, self.last_month)


def period_counts(records: Iterable[Record], window: PeriodWindow, tz: tzinfo) -> PeriodCounts:
    this_month = 0
    last_month = 0
    for record in records:
        created_at = localize(record.created_at, tz)
        if window.in_this_month(created_at):
            this_month += 1
        elif window.in_last_month(created_at):
            last_month += 1
    return PeriodCounts(this_month=this_month, last_month=last_month)


def count_buckets(
    records: Iterable[Record],
    key: Callable[[Record], Enum],
    buckets: Mapping[Enum, Optional[str]],
) -> Counter:
    """Tally records by the bucket their key maps to; keys mapped to None are skipped."""
    counts: Counter = Counter()
    for record in records:
        bucket = buckets[key(record)]
        if bucket is not None:
            counts[bucket] += 1
    return counts


def governance_stats(
    items: Sequence[GovernanceItem], window: PeriodWindow, tz: tzinfo
) -> GovernanceStats:
    buckets = count_buckets(items, lambda item: item.status, GOVERNANCE_BUCKETS)
    periods = period_counts(items, window, tz)
    return GovernanceStats(
        total=len(items),
        active=buckets["active"],
        draft=buckets["draft"],
        archived=buckets["archived"],
        this_month=periods.this_month,
        trend=periods.trend,
    )


def risk_stats(risks: Sequence[Risk], window: PeriodWindow, tz: tzinfo) -> RiskStats:
    buckets = Counter(dashboard_bucket(risk.band) for risk in risks)
    periods = period_counts(risks, window, tz)
    return RiskStats(
        total=len(risks),
        critical=buckets["critical"],
        high=buckets["high"],
        medium=buckets["medium"],
        low=buckets["low"],
        this_month=periods.this_month,
        trend=periods.trend,
    )


def audit_stats(
    audits: Sequence[Audit],
    window: PeriodWindow,
    tz: tzinfo,
    upcoming_days: int = 30,
) -> AuditStats:
    buckets = count_buckets(audits, lambda audit: audit.status, AUDIT_BUCKETS)
    periods = period_counts(audits, window, tz)
    upcoming = sum(
        1
        for audit in audits
        if is_upcoming(localize(audit.start_date, tz), window.now, upcoming_days)
    )
    return AuditStats(
        total=len(audits),
        completed=buckets["completed"],
        in_progress=buckets["in_progress"],
        planned=buckets["planned"],
        upcoming=upcoming,
        this_month=periods.this_month,
        trend=periods.trend,
    )


def asset_stats(assets: Sequence[Asset], window: PeriodWindow, tz: tzinfo) -> AssetStats:
    statuses = count_buckets(assets, lambda asset: asset.status, ASSET_STATUS_BUCKETS)
    categories = count_buckets(assets, lambda asset: asset.category, ASSET_CATEGORY_BUCKETS)
    periods = period_counts(assets, window, tz)
    return AssetStats(
        total=len(assets),
        available=statuses["available"],
        in_use=statuses["in_use"],
        maintenance=statuses["maintenance"],
        computers=categories["computers"],
        software=categories["software"],
        this_month=periods.this_month,
        trend=periods.trend,
    )


def compliance_stats(
    controls_count: int,
    policies_count: int,
    assessments_count: int,
    trend: int = 5,
) -> ComplianceStats:
    """
    Compliance block built from collection sizes alone.

    Controls count as compliant, assessments as non-compliant and policies
    as pending. ``trend`` is reported as given.
    """
    total = controls_count + policies_count + assessments_count
    percentage = round_half_up(controls_count / total * 100) if total > 0 else 0
    return ComplianceStats(
        total=total,
        compliant=controls_count,
        non_compliant=assessments_count,
        pending=policies_count,
        percentage=percentage,
        trend=trend,
    )


def user_stats(users_count: int, departments_count: int) -> UserStats:
    return UserStats(total=users_count, active=users_count, departments=departments_count)


# ============================================================
# ACTIVITY FEED
# ============================================================


def most_recent(records: Sequence[Record], limit: int, tz: tzinfo) -> List[Record]:
    """The ``limit`` newest records; equal timestamps keep their input order."""
    return sorted(
        records, key=lambda record: to_instant(record.created_at, tz), reverse=True
    )[:limit]


def build_activity_feed(
    snapshots: DashboardSnapshots,
    tz: tzinfo,
    settings: Optional[Settings] = None,
) -> List[ActivityEntry]:
    """
    Merge the newest records of every domain into one feed, newest first.

    Domains are concatenated governance, audits, risks, assets before the
    stable sort, so that is the order of entries sharing a timestamp.
    """
    settings = settings or Settings()
    entries: List[ActivityEntry] = []

    for item in most_recent(snapshots.governance, settings.governance_activity_limit, tz):
        entries.append(ActivityEntry(
            id=item.id,
            domain="governance",
            title=item.title,
            status=item.status.value,
            timestamp=localize(item.created_at, tz),
        ))
    for audit in most_recent(snapshots.audits, settings.audit_activity_limit, tz):
        entries.append(ActivityEntry(
            id=audit.id,
            domain="audit",
            title=audit.title,
            status=audit.status.value,
            timestamp=localize(audit.created_at, tz),
        ))
    for risk in most_recent(snapshots.risks, settings.risk_activity_limit, tz):
        entries.append(ActivityEntry(
            id=risk.id,
            domain="risk",
            title=risk.title,
            status=risk.band.label.upper(),
            timestamp=localize(risk.created_at, tz),
        ))
    for asset in most_recent(snapshots.assets, settings.asset_activity_limit, tz):
        entries.append(ActivityEntry(
            id=asset.id,
            domain="asset",
            title=asset.name,
            status=asset.status.value,
            timestamp=localize(asset.created_at, tz),
        ))

    entries.sort(key=lambda entry: entry.timestamp.astimezone(timezone.utc), reverse=True)
    return entries[:settings.activity_limit]


# ============================================================
# ENTRY POINT
# ============================================================


def aggregate(
    snapshots: DashboardSnapshots,
    now: datetime,
    settings: Optional[Settings] = None,
) -> DashboardReport:
    """
    Build the dashboard report for one set of snapshots.

    Args:
        snapshots: Collections and counts fetched by the caller.
        now: Reference instant for the month windows and upcoming audits.
        settings: Limits and timezone; defaults when omitted.

    Returns:
        DashboardReport with the per-domain stats and the activity feed.
    """
    settings = settings or Settings()
    tz = settings.tzinfo
    window = PeriodWindow.at(localize(now, tz))

    stats = DashboardStats(
        governance=governance_stats(snapshots.governance, window, tz),
        compliance=compliance_stats(
            snapshots.controls_count,
            snapshots.policies_count,
            snapshots.assessments_count,
            trend=settings.compliance_trend,
        ),
        risk=risk_stats(snapshots.risks, window, tz),
        audit=audit_stats(snapshots.audits, window, tz, settings.upcoming_audit_days),
        assets=asset_stats(snapshots.assets, window, tz),
        users=user_stats(snapshots.users_count, snapshots.departments_count),
    )
    activities = build_activity_feed(snapshots, tz, settings)

    logger.debug(
        "Aggregated dashboard at %s: %d governance, %d risks, %d audits, %d assets, %d activities",
        window.now.isoformat(),
        stats.governance.total,
        stats.risk.total,
        stats.audit.total,
        stats.assets.total,
        len(activities),
    )
    return DashboardReport(stats=stats, recent_activities=activities)
