"""
Pytest fixtures for the governance dashboard tests.

Every test that touches time uses the fixed ``now`` below, a mid-month
instant so both month windows are well inside the data.
"""

from __future__ import annotations

from datetime import datetime, timezone
from itertools import count

import pytest

from governance_dashboard.models import (
    Asset,
    AssetCategory,
    AssetStatus,
    Audit,
    AuditStatus,
    GovernanceItem,
    GovernanceStatus,
    Risk,
)

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def ids():
    return count(1)


@pytest.fixture
def make_governance(ids, now):
    def _make(status=GovernanceStatus.IN_PROGRESS, created_at=None, title="Policy review"):
        return GovernanceItem(id=next(ids), status=status, created_at=created_at or now, title=title)
    return _make


@pytest.fixture
def make_risk(ids, now):
    def _make(impact=3, likelihood=3, created_at=None, title="Vendor outage"):
        return Risk(
            id=next(ids),
            impact=impact,
            likelihood=likelihood,
            created_at=created_at or now,
            title=title,
        )
    return _make


@pytest.fixture
def make_audit(ids, now):
    def _make(status=AuditStatus.PLANNED, created_at=None, start_date=None, title="ISO 27001 audit"):
        return Audit(
            id=next(ids),
            status=status,
            created_at=created_at or now,
            start_date=start_date or now,
            title=title,
        )
    return _make


@pytest.fixture
def make_asset(ids, now):
    def _make(category=AssetCategory.LAPTOP, status=AssetStatus.IN_USE, created_at=None, name="ThinkPad T14"):
        return Asset(
            id=next(ids),
            category=category,
            status=status,
            created_at=created_at or now,
            name=name,
        )
    return _make
