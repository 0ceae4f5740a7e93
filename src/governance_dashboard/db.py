"""
Record store for the governance dashboard.

Each collection is a pandas DataFrame. When the store is given a data
directory, a collection is loaded from ``<data_dir>/<collection>.csv`` on
first use and written back after every change; otherwise everything stays
in memory.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pandas as pd

from governance_dashboard.exceptions import RecordNotFoundError, UnknownCollectionError
from governance_dashboard.models import Asset, Audit, DashboardSnapshots, GovernanceItem, Risk

logger = logging.getLogger(__name__)

COLLECTIONS: Dict[str, List[str]] = {
    "governance_items": ["id", "title", "status", "createdAt"],
    "risks": ["id", "title", "impact", "likelihood", "status", "notes", "createdAt"],
    "audits": ["id", "title", "status", "startDate", "createdAt"],
    "assets": ["id", "name", "category", "status", "createdAt"],
    "controls": ["id", "title", "createdAt"],
    "policies": ["id", "title", "createdAt"],
    "assessments": ["id", "title", "createdAt"],
    "users": ["id", "name", "email", "createdAt"],
    "departments": ["id", "name", "code", "createdAt"],
}

DATE_COLUMNS = {"createdAt", "updatedAt", "startDate", "endDate"}


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _sort_key(column: pd.Series) -> pd.Series:
    if column.name in DATE_COLUMNS:
        return pd.to_datetime(column, utc=True, format="ISO8601")
    return column


class RecordStore:
    """Typed collections exposing find, count, create, update and delete."""

    def __init__(self, data_dir: Optional[str] = None):
        self.data_dir = data_dir
        self._frames: Dict[str, pd.DataFrame] = {}

    def _path(self, collection: str) -> str:
        return os.path.join(self.data_dir, f"{collection}.csv")

    def load_df(self, collection: str) -> pd.DataFrame:
        """Return the collection's frame, reading the CSV if there is one."""
        if collection not in COLLECTIONS:
            raise UnknownCollectionError(collection)
        if collection not in self._frames:
            if self.data_dir and os.path.exists(self._path(collection)):
                df = pd.read_csv(self._path(collection))
                logger.debug("Loaded %d rows from %s", len(df), self._path(collection))
            else:
                df = pd.DataFrame(columns=COLLECTIONS[collection])
            self._frames[collection] = df
        return self._frames[collection]

    def _save(self, collection: str, df: pd.DataFrame) -> None:
        self._frames[collection] = df
        if self.data_dir:
            os.makedirs(self.data_dir, exist_ok=True)
            df.to_csv(self._path(collection), index=False)
            logger.debug("Wrote %d rows to %s", len(df), self._path(collection))

    @staticmethod
    def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
        # Round-trip through JSON so NaN becomes None and numpy scalars become Python ones
        return json.loads(df.to_json(orient="records", date_format="iso"))

    def find(
        self,
        collection: str,
        where: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Rows matching every ``where`` equality, optionally ordered and limited."""
        df = self.load_df(collection)
        for column, value in (where or {}).items():
            df = df[df[column] == value]
        if order_by is not None and not df.empty:
            df = df.sort_values(order_by, ascending=not descending, kind="stable", key=_sort_key)
        if limit is not None:
            df = df.head(limit)
        return self._records(df)

    def count(self, collection: str) -> int:
        return len(self.load_df(collection))

    def create(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Append a record, assigning the next id and a creation time if missing."""
        df = self.load_df(collection)
        row = {key: _serialize(value) for key, value in record.items()}
        if row.get("id") is None:
            row["id"] = int(df["id"].max()) + 1 if not df.empty else 1
        row.setdefault("createdAt", datetime.now(timezone.utc).isoformat())
        new_df = pd.DataFrame([row])
        df = new_df if df.empty else pd.concat([df, new_df], ignore_index=True)
        self._save(collection, df)
        return self._records(df[df["id"] == row["id"]])[0]

    def update(self, collection: str, record_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        df = self.load_df(collection).copy()
        mask = df["id"] == record_id
        if not mask.any():
            raise RecordNotFoundError(collection, record_id)
        for column, value in data.items():
            if column == "id":
                continue
            if column not in df.columns:
                df[column] = None
            df[column] = df[column].astype(object)
            df.loc[mask, column] = _serialize(value)
        self._save(collection, df)
        return self._records(df[mask])[0]

    def delete(self, collection: str, record_id: int) -> None:
        df = self.load_df(collection)
        mask = df["id"] == record_id
        if not mask.any():
            raise RecordNotFoundError(collection, record_id)
        self._save(collection, df[~mask].reset_index(drop=True))


def fetch_dashboard_snapshots(store: RecordStore) -> DashboardSnapshots:
    """Read everything the dashboard aggregates, newest records first."""
    def newest(collection: str) -> List[Dict[str, Any]]:
        return store.find(collection, order_by="createdAt", descending=True)

    return DashboardSnapshots(
        governance=[GovernanceItem.model_validate(row) for row in newest("governance_items")],
        risks=[Risk.model_validate(row) for row in newest("risks")],
        audits=[Audit.model_validate(row) for row in newest("audits")],
        assets=[Asset.model_validate(row) for row in newest("assets")],
        controls_count=store.count("controls"),
        policies_count=store.count("policies"),
        assessments_count=store.count("assessments"),
        users_count=store.count("users"),
        departments_count=store.count("departments"),
    )
