"""
API routes for the governance dashboard.

The dashboard endpoint reads every collection it needs from the record
store, aggregates and returns the report. Any failure along the way is
logged and answered with a single generic 500.

Handlers are coroutines so every store call runs on the event loop, one
request at a time; the CSV reads and writes block it while they run. The
record store is not thread-safe, so handlers must not become plain ``def``
functions without a lock around the store.

Serve with ``uvicorn --factory governance_dashboard.api.routes:create_app``.
"""

import logging
from datetime import datetime
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from governance_dashboard.config import Settings, configure_logging
from governance_dashboard.db import RecordStore, fetch_dashboard_snapshots
from governance_dashboard.models import Risk, RiskStatus
from governance_dashboard.services.metrics_service import aggregate
from governance_dashboard.services.risk_service import (
    SeverityBand,
    band_counts,
    build_matrix,
    severity_grid,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def _default_store(data_dir: str) -> RecordStore:
    return RecordStore(data_dir)


def get_store(settings: Settings = Depends(get_settings)) -> RecordStore:
    return _default_store(settings.data_dir)


def get_now(settings: Settings = Depends(get_settings)) -> datetime:
    return datetime.now(settings.tzinfo)


class RiskCreate(BaseModel):
    """Body of POST /risks."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(min_length=1)
    impact: int = Field(ge=1, le=5)
    likelihood: int = Field(ge=1, le=5)
    status: RiskStatus = RiskStatus.IN_PROGRESS
    notes: Optional[str] = None


def _risk_payload(row: dict) -> dict:
    risk = Risk.model_validate(row)
    return {**row, "rating": risk.rating, "level": risk.band.label}


@router.get("/dashboard")
async def get_dashboard(
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_now),
):
    """Dashboard statistics and the recent activity feed."""
    try:
        snapshots = fetch_dashboard_snapshots(store)
        report = aggregate(snapshots, now, settings)
    except Exception:
        logger.exception("Error fetching dashboard data")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch dashboard data"})
    return report.to_json_dict()


@router.get("/risks")
async def get_risks(
    status: Optional[RiskStatus] = None,
    min_rating: Optional[int] = Query(default=None, alias="minRating"),
    max_rating: Optional[int] = Query(default=None, alias="maxRating"),
    search: Optional[str] = None,
    store: RecordStore = Depends(get_store),
):
    """List risks, highest rating first."""
    where = {"status": status.value} if status else None
    risks = [_risk_payload(row) for row in store.find("risks", where=where)]
    if min_rating is not None:
        risks = [risk for risk in risks if risk["rating"] >= min_rating]
    if max_rating is not None:
        risks = [risk for risk in risks if risk["rating"] <= max_rating]
    if search:
        term = search.lower()
        risks = [
            risk for risk in risks
            if term in (risk.get("title") or "").lower() or term in (risk.get("notes") or "").lower()
        ]
    risks.sort(key=lambda risk: risk["rating"], reverse=True)
    return {"risks": risks}


@router.post("/risks", status_code=201)
async def create_risk(risk_data: RiskCreate, store: RecordStore = Depends(get_store)):
    """Store a new risk; the rating is computed, never accepted from the client."""
    row = store.create("risks", risk_data.model_dump(mode="json", by_alias=True))
    logger.info("Created risk %s with impact %d, likelihood %d", row["id"], risk_data.impact, risk_data.likelihood)
    return {"risk": _risk_payload(row)}


@router.get("/risks/matrix")
async def get_risk_matrix(store: RecordStore = Depends(get_store)):
    """Impact x likelihood matrix with per-band totals."""
    risks = [Risk.model_validate(row) for row in store.find("risks")]
    counts = band_counts(risks)
    return {
        "matrix": build_matrix(risks).tolist(),
        "ratings": severity_grid().tolist(),
        "bands": {band.label: counts[band] for band in SeverityBand},
    }


def create_app() -> FastAPI:
    """FastAPI application with the dashboard routes mounted."""
    configure_logging(get_settings().log_level)
    app = FastAPI(title="Governance Dashboard")
    app.include_router(router)
    return app
