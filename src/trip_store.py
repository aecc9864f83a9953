# src/trip_store.py

from __future__ import annotations

import json
import logging
import os
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pandas as pd

from core.formatting import default_trip_name
from core.models import FlightRecord, SearchParams, StoredFlightLeg, StoredTrip, VacationPlan

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = os.path.join("data", "trips.sqlite")

# Columns a caller may change through update_trip
_UPDATABLE = {"trip_name", "status"}


class TripNotFoundError(LookupError):
    pass


def _ensure_parent_dir(path: str) -> None:
    parent = os.path.dirname(path)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _str_to_dt(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


class SqliteTripStore:
    """
    SQLite-backed store for a user's saved flight legs and vacation plans.

    Every flight leg is its own row; nothing links an outbound leg to its
    return. Pairing happens after a flat fetch (see core.pairing).
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or os.getenv("TRIP_DB_PATH", DEFAULT_DB_PATH)
        _ensure_parent_dir(self.db_path)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS trips (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    record_id TEXT NOT NULL UNIQUE,
                    user_id TEXT NOT NULL,
                    trip_type TEXT NOT NULL,       -- 'flight' | 'vacation'
                    trip_name TEXT,
                    status TEXT,
                    total_cost REAL,
                    payload TEXT NOT NULL,         -- JSON document
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_trips_user ON trips(user_id, trip_type);"
            )

    def _insert(
        self,
        *,
        user_id: str,
        trip_type: str,
        trip_name: Optional[str],
        status: str,
        total_cost: float,
        payload: Dict[str, Any],
        created_at: datetime,
    ) -> str:
        record_id = uuid.uuid4().hex
        ts = created_at.isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO trips (
                    record_id, user_id, trip_type, trip_name, status,
                    total_cost, payload, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (record_id, user_id, trip_type, trip_name, status,
                 float(total_cost), json.dumps(payload), ts, ts),
            )
        return record_id

    # ── flights ─────────────────────────────────────────────

    def save_flight(
        self,
        user_id: str,
        record: FlightRecord,
        search_params: Optional[SearchParams] = None,
    ) -> StoredFlightLeg:
        passengers = search_params.passengers if search_params else 1
        total_cost = record.price * passengers
        trip_name = default_trip_name(record)
        created_at = _now()

        payload = {
            "flight": record.to_dict(),
            "searchParams": search_params.to_dict() if search_params else None,
            "passengers": passengers,
        }
        record_id = self._insert(
            user_id=user_id,
            trip_type="flight",
            trip_name=trip_name,
            status="saved",
            total_cost=total_cost,
            payload=payload,
            created_at=created_at,
        )
        logger.info("Saved %s flight %s for user %s as %s",
                    record.direction, record.id, user_id, record_id)

        return StoredFlightLeg(
            record_id=record_id,
            user_id=user_id,
            flight=record,
            search_params=search_params,
            trip_name=trip_name,
            total_cost=total_cost,
            passengers=passengers,
            status="saved",
            created_at=created_at,
        )

    # ── vacations ───────────────────────────────────────────

    def create_vacation(
        self,
        user_id: str,
        trip_name: str,
        destination: str = "",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        passengers: int = 1,
        budget: float = 0.0,
        notes: str = "",
        activities: Optional[List[str]] = None,
        accommodation: str = "",
    ) -> VacationPlan:
        if not user_id:
            raise ValueError("User not authenticated - cannot create vacation")
        if not trip_name or not trip_name.strip():
            raise ValueError("Vacation needs a trip name")

        created_at = _now()
        payload = {
            "destination": destination,
            "startDate": start_date,
            "endDate": end_date,
            "passengers": passengers or 1,
            "budget": budget or 0.0,
            "notes": notes or "",
            "activities": list(activities or []),
            "accommodation": accommodation or "",
            "flights": [],
        }
        record_id = self._insert(
            user_id=user_id,
            trip_type="vacation",
            trip_name=trip_name.strip(),
            status="planning",
            total_cost=budget or 0.0,
            payload=payload,
            created_at=created_at,
        )
        logger.info("Created vacation %s for user %s", record_id, user_id)
        return self._get(record_id)  # type: ignore[return-value]

    def add_flight_to_vacation(self, vacation_id: str, record: FlightRecord) -> Dict[str, Any]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT payload FROM trips WHERE record_id = ? AND trip_type = 'vacation';",
                (vacation_id,),
            ).fetchone()
            if row is None:
                raise TripNotFoundError(f"Vacation {vacation_id} not found")

            payload = json.loads(row[0])
            flight = dict(record.to_dict(), addedAt=_now().isoformat())
            payload["flights"] = list(payload.get("flights") or []) + [flight]

            conn.execute(
                "UPDATE trips SET payload = ?, updated_at = ? WHERE record_id = ?;",
                (json.dumps(payload), _now().isoformat(), vacation_id),
            )
        return flight

    # ── reads / updates ─────────────────────────────────────

    def _row_to_trip(self, row: sqlite3.Row) -> StoredTrip:
        payload = json.loads(row["payload"])
        created_at = _str_to_dt(row["created_at"])

        if row["trip_type"] == "flight":
            params_raw = payload.get("searchParams")
            return StoredFlightLeg(
                record_id=row["record_id"],
                user_id=row["user_id"],
                flight=FlightRecord.from_dict(payload.get("flight") or {}),
                search_params=SearchParams.from_dict(params_raw) if params_raw else None,
                trip_name=row["trip_name"],
                total_cost=float(row["total_cost"] or 0.0),
                passengers=int(payload.get("passengers") or 1),
                status=row["status"],
                created_at=created_at,
            )

        return VacationPlan(
            record_id=row["record_id"],
            user_id=row["user_id"],
            trip_name=row["trip_name"] or "",
            destination=payload.get("destination") or "",
            start_date=payload.get("startDate"),
            end_date=payload.get("endDate"),
            passengers=int(payload.get("passengers") or 1),
            budget=float(payload.get("budget") or 0.0),
            notes=payload.get("notes") or "",
            status=row["status"] or "planning",
            activities=list(payload.get("activities") or []),
            accommodation=payload.get("accommodation") or "",
            flights=list(payload.get("flights") or []),
            created_at=created_at,
            trip_type=row["trip_type"],
        )

    def _query(self, sql: str, params: tuple) -> List[StoredTrip]:
        with self._connect() as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(sql, params).fetchall()
        return [self._row_to_trip(r) for r in rows]

    def _get(self, record_id: str) -> Optional[StoredTrip]:
        found = self._query("SELECT * FROM trips WHERE record_id = ?;", (record_id,))
        return found[0] if found else None

    def get_user_trips(self, user_id: str) -> List[StoredTrip]:
        """All of a user's flight legs and vacation plans, in save order."""
        if not user_id:
            logger.warning("No user_id provided")
            return []
        return self._query("SELECT * FROM trips WHERE user_id = ? ORDER BY seq ASC;", (user_id,))

    def get_user_vacations(self, user_id: str) -> List[VacationPlan]:
        if not user_id:
            logger.warning("No user_id provided for vacations")
            return []
        return self._query(  # type: ignore[return-value]
            "SELECT * FROM trips WHERE user_id = ? AND trip_type = 'vacation' ORDER BY seq ASC;",
            (user_id,),
        )

    def update_trip(self, record_id: str, **updates: Any) -> None:
        unknown = set(updates) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        if not updates:
            return

        cols = ", ".join(f"{k} = ?" for k in updates)
        with self._connect() as conn:
            cur = conn.execute(
                f"UPDATE trips SET {cols}, updated_at = ? WHERE record_id = ?;",
                (*updates.values(), _now().isoformat(), record_id),
            )
            if cur.rowcount == 0:
                raise TripNotFoundError(f"Trip {record_id} not found")

    def delete_trip(self, record_id: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM trips WHERE record_id = ?;", (record_id,))

    def trips_dataframe(self, user_id: str) -> pd.DataFrame:
        """
        Flat summary of a user's stored trips for dashboard tables.
        """
        with self._connect() as conn:
            df = pd.read_sql_query(
                """
                SELECT
                    record_id,
                    trip_type,
                    trip_name,
                    status,
                    total_cost,
                    created_at
                FROM trips
                WHERE user_id = ?
                ORDER BY seq ASC;
                """,
                conn,
                params=(user_id,),
            )
        return df
