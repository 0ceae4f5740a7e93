"""
Tests for the cross-domain recent activity feed.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from governance_dashboard.config import Settings
from governance_dashboard.models import (
    AssetCategory,
    AssetStatus,
    AuditStatus,
    DashboardSnapshots,
    GovernanceStatus,
)
from governance_dashboard.services.metrics_service import aggregate, build_activity_feed


def _hours_ago(now, hours):
    return now - timedelta(hours=hours)


def test_feed_takes_per_domain_limits(now, make_governance, make_audit):
    governance = [make_governance(created_at=_hours_ago(now, h)) for h in (1, 3, 5, 7, 9)]
    audits = [make_audit(created_at=_hours_ago(now, 2))]

    feed = aggregate(DashboardSnapshots(governance=governance, audits=audits), now).recent_activities

    assert len(feed) == 4
    assert [entry.domain for entry in feed] == ["governance", "audit", "governance", "governance"]
    timestamps = [entry.timestamp for entry in feed]
    assert all(a > b for a, b in zip(timestamps, timestamps[1:]))


def test_feed_is_capped_at_ten_most_recent(now, make_governance, make_audit, make_risk, make_asset):
    # Every domain has more records than it contributes; hours interleave across domains
    governance = [make_governance(created_at=_hours_ago(now, h)) for h in range(0, 40, 4)]
    audits = [make_audit(created_at=_hours_ago(now, h)) for h in range(1, 40, 4)]
    risks = [make_risk(created_at=_hours_ago(now, h)) for h in range(2, 40, 4)]
    assets = [make_asset(created_at=_hours_ago(now, h)) for h in range(3, 40, 4)]
    snapshots = DashboardSnapshots(governance=governance, audits=audits, risks=risks, assets=assets)

    feed = aggregate(snapshots, now).recent_activities

    assert len(feed) == 10
    counts = {domain: sum(1 for e in feed if e.domain == domain) for domain in ("governance", "audit", "risk", "asset")}
    assert counts == {"governance": 3, "audit": 3, "risk": 2, "asset": 2}
    timestamps = [entry.timestamp for entry in feed]
    assert timestamps == sorted(timestamps, reverse=True)


def test_feed_truncation_keeps_newest_across_domains(now, make_governance, make_audit):
    governance = [make_governance(created_at=_hours_ago(now, h)) for h in (1, 2, 3, 10, 11)]
    audits = [make_audit(created_at=_hours_ago(now, h)) for h in (4, 5, 12)]
    settings = Settings(governance_activity_limit=5, audit_activity_limit=3, activity_limit=6)

    feed = build_activity_feed(
        DashboardSnapshots(governance=governance, audits=audits), settings.tzinfo, settings
    )

    assert len(feed) == 6
    hours = [round((now - entry.timestamp).total_seconds() / 3600) for entry in feed]
    assert hours == [1, 2, 3, 4, 5, 10]


def test_feed_picks_newest_even_from_unsorted_input(now, make_governance):
    governance = [make_governance(created_at=_hours_ago(now, h), title=f"item {h}") for h in (9, 1, 5, 3)]

    feed = aggregate(DashboardSnapshots(governance=governance), now).recent_activities

    assert [entry.title for entry in feed] == ["item 1", "item 3", "item 5"]


def test_feed_entry_fields(now, make_governance, make_audit, make_risk, make_asset):
    snapshots = DashboardSnapshots(
        governance=[make_governance(GovernanceStatus.AT_RISK, _hours_ago(now, 1), title="Board charter")],
        audits=[make_audit(AuditStatus.REPORTING, _hours_ago(now, 2), title="SOC 2")],
        risks=[
            make_risk(5, 4, _hours_ago(now, 3), title="Ransomware"),
            make_risk(1, 1, _hours_ago(now, 4), title="Printer jam"),
        ],
        assets=[make_asset(AssetCategory.MONITOR, AssetStatus.MAINTENANCE, _hours_ago(now, 5), name="Dell U2720Q")],
    )

    feed = aggregate(snapshots, now).recent_activities

    assert [(e.domain, e.title, e.status) for e in feed] == [
        ("governance", "Board charter", "AT_RISK"),
        ("audit", "SOC 2", "REPORTING"),
        ("risk", "Ransomware", "CRITICAL"),
        ("risk", "Printer jam", "VERY LOW"),
        ("asset", "Dell U2720Q", "MAINTENANCE"),
    ]


def test_feed_ties_keep_domain_order(now, make_governance, make_audit, make_risk, make_asset):
    moment = _hours_ago(now, 1)
    snapshots = DashboardSnapshots(
        assets=[make_asset(created_at=moment)],
        risks=[make_risk(created_at=moment)],
        audits=[make_audit(created_at=moment)],
        governance=[make_governance(created_at=moment)],
    )

    feed = aggregate(snapshots, now).recent_activities

    assert [entry.domain for entry in feed] == ["governance", "audit", "risk", "asset"]


def test_feed_serialises_type_and_date(now, make_risk):
    report = aggregate(DashboardSnapshots(risks=[make_risk(4, 5, _hours_ago(now, 1))]), now)

    entry = report.to_json_dict()["recentActivities"][0]

    assert entry["type"] == "risk"
    assert entry["status"] == "CRITICAL"
    assert entry["date"].startswith("2024-06-15T11:00:00")


def test_risk_status_is_upper_cased_band_label(now, make_risk):
    feed = aggregate(DashboardSnapshots(risks=[make_risk(2, 2, _hours_ago(now, 1))]), now).recent_activities
    assert feed[0].status == "VERY LOW"


def test_feed_orders_by_instant_across_repeated_hour(make_governance):
    # Berlin leaves summer time at 01:00 UTC on 2024-10-27: 00:30 UTC reads
    # 02:30 CEST and 01:10 UTC reads 02:10 CET.
    now = datetime(2024, 10, 27, 12, 0, tzinfo=timezone.utc)
    governance = [
        make_governance(created_at=datetime(2024, 10, 27, 0, 30, tzinfo=timezone.utc), title="earlier"),
        make_governance(created_at=datetime(2024, 10, 27, 1, 10, tzinfo=timezone.utc), title="later"),
    ]

    feed = aggregate(
        DashboardSnapshots(governance=governance), now, Settings(timezone="Europe/Berlin")
    ).recent_activities

    assert [entry.title for entry in feed] == ["later", "earlier"]
