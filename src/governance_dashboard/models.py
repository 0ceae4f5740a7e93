"""
models.py

Data models for the governance dashboard.

Record models mirror the rows kept by the record store (camelCase column
names, snake_case attributes). They are frozen: a snapshot handed to the
aggregator is never modified. Report models describe the dashboard output
and serialise with camelCase keys.
"""

from datetime import datetime
from enum import Enum
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from governance_dashboard.services.risk_service import SeverityBand, classify, rate


class GovernanceStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    AT_RISK = "AT_RISK"
    COMPLETED = "COMPLETED"
    DEFERRED = "DEFERRED"


class RiskStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    AT_RISK = "AT_RISK"
    COMPLETED = "COMPLETED"
    DEFERRED = "DEFERRED"


class AuditStatus(str, Enum):
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    FIELD_WORK = "FIELD_WORK"
    REPORTING = "REPORTING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class AssetCategory(str, Enum):
    COMPUTER = "COMPUTER"
    LAPTOP = "LAPTOP"
    MONITOR = "MONITOR"
    PRINTER = "PRINTER"
    SCANNER = "SCANNER"
    NETWORKING = "NETWORKING"
    PERIPHERAL = "PERIPHERAL"
    ACCESSORY = "ACCESSORY"
    MOBILE_DEVICE = "MOBILE_DEVICE"
    SERVER = "SERVER"
    STORAGE = "STORAGE"
    SOFTWARE_LICENSE = "SOFTWARE_LICENSE"
    CONSUMABLE = "CONSUMABLE"
    OTHER = "OTHER"


class AssetStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    IN_USE = "IN_USE"
    MAINTENANCE = "MAINTENANCE"
    RETIRED = "RETIRED"
    LOST = "LOST"
    DAMAGED = "DAMAGED"


# ============================================================
# RECORDS
# ============================================================


class Record(BaseModel):
    """Fields every stored record carries."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    id: int
    created_at: datetime


class GovernanceItem(Record):
    title: str = ""
    status: GovernanceStatus


class Risk(Record):
    """
    A risk scored on impact and likelihood.

    The rating is derived from the two factors on every read and is
    never stored on the model.
    """

    title: str = ""
    impact: int = Field(ge=1, le=5)
    likelihood: int = Field(ge=1, le=5)
    status: RiskStatus = RiskStatus.IN_PROGRESS

    @property
    def rating(self) -> int:
        return rate(self.impact, self.likelihood)

    @property
    def band(self) -> SeverityBand:
        return classify(self.rating)


class Audit(Record):
    title: str = ""
    status: AuditStatus
    start_date: datetime


class Asset(Record):
    name: str = ""
    category: AssetCategory
    status: AssetStatus


class DashboardSnapshots(BaseModel):
    """Everything one aggregation pass reads, fetched up front by the caller."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    governance: Tuple[GovernanceItem, ...] = ()
    risks: Tuple[Risk, ...] = ()
    audits: Tuple[Audit, ...] = ()
    assets: Tuple[Asset, ...] = ()
    controls_count: int = Field(default=0, ge=0)
    policies_count: int = Field(default=0, ge=0)
    assessments_count: int = Field(default=0, ge=0)
    users_count: int = Field(default=0, ge=0)
    departments_count: int = Field(default=0, ge=0)


# ============================================================
# REPORT
# ============================================================


class ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GovernanceStats(ReportModel):
    total: int
    active: int
    draft: int
    archived: int
    this_month: int
    trend: int


class ComplianceStats(ReportModel):
    total: int
    compliant: int
    non_compliant: int
    pending: int
    percentage: int
    trend: int


class RiskStats(ReportModel):
    total: int
    critical: int
    high: int
    medium: int
    low: int
    this_month: int
    trend: int


class AuditStats(ReportModel):
    total: int
    completed: int
    in_progress: int
    planned: int
    upcoming: int
    this_month: int
    trend: int


class AssetStats(ReportModel):
    total: int
    available: int
    in_use: int
    maintenance: int
    computers: int
    software: int
    this_month: int
    trend: int


class UserStats(ReportModel):
    total: int
    active: int
    departments: int


class DashboardStats(ReportModel):
    governance: GovernanceStats
    compliance: ComplianceStats
    risk: RiskStats
    audit: AuditStats
    assets: AssetStats
    users: UserStats


class ActivityEntry(ReportModel):
    """One line of the cross-domain activity feed."""

    id: int
    domain: str = Field(alias="type")
    title: str
    status: str
    timestamp: datetime = Field(alias="date")


class DashboardReport(ReportModel):
    stats: DashboardStats
    recent_activities: List[ActivityEntry]

    def to_json_dict(self) -> dict:
        """Plain JSON-ready dict with the API's camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
