"""
Configuration for the governance dashboard.

Values come from the environment (a local ``.env`` file is honoured) and fall
back to the defaults below. Settings are immutable once built.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class Settings:
    """Dashboard settings."""

    data_dir: str = "data"
    timezone: str = "UTC"

    # Audits starting within this many days count as upcoming
    upcoming_audit_days: int = 30

    # Activity feed: per-domain take and overall cap
    governance_activity_limit: int = 3
    audit_activity_limit: int = 3
    risk_activity_limit: int = 2
    asset_activity_limit: int = 2
    activity_limit: int = 10

    # Fixed value reported as the compliance trend
    compliance_trend: int = 5

    log_level: str = "INFO"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Build settings from ``GRC_*`` environment variables."""
        load_dotenv(env_file)
        defaults = cls()
        return cls(
            data_dir=os.getenv("GRC_DATA_DIR", defaults.data_dir),
            timezone=os.getenv("GRC_TIMEZONE", defaults.timezone),
            upcoming_audit_days=int(
                os.getenv("GRC_UPCOMING_AUDIT_DAYS", defaults.upcoming_audit_days)
            ),
            activity_limit=int(os.getenv("GRC_ACTIVITY_LIMIT", defaults.activity_limit)),
            compliance_trend=int(
                os.getenv("GRC_COMPLIANCE_TREND", defaults.compliance_trend)
            ),
            log_level=os.getenv("GRC_LOG_LEVEL", defaults.log_level).upper(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data_dir": self.data_dir,
            "timezone": self.timezone,
            "upcoming_audit_days": self.upcoming_audit_days,
            "governance_activity_limit": self.governance_activity_limit,
            "audit_activity_limit": self.audit_activity_limit,
            "risk_activity_limit": self.risk_activity_limit,
            "asset_activity_limit": self.asset_activity_limit,
            "activity_limit": self.activity_limit,
            "compliance_trend": self.compliance_trend,
            "log_level": self.log_level,
        }


def configure_logging(level: str = "INFO") -> None:
    """Install a basic root handler; later calls only adjust the level."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
