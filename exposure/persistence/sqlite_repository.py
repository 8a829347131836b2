"""SQLite implementation of the exposure store."""

from __future__ import annotations

import datetime as dt
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from exposure.domain.enums import LifecycleState, SyncState
from exposure.domain.models import ExposurePlan, ExposureTarget, Journey, PathPoint, WriteResult, utc_now
from exposure.infrastructure.logging import get_logger

_ACTIVE = LifecycleState.ACTIVE.value
_DELETED = LifecycleState.DELETED.value
_PENDING = SyncState.PENDING_PUSH.value


def _ts(value: Optional[dt.datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc).isoformat()


def _parse_ts(raw: Optional[str]) -> Optional[dt.datetime]:
    return dt.datetime.fromisoformat(raw) if raw else None


def _plan_from_row(row: sqlite3.Row) -> ExposurePlan:
    return ExposurePlan(
        id=row["id"],
        name=row["name"],
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
        lifecycle=LifecycleState(row["lifecycle"]),
        sync_state=SyncState(row["sync_state"]),
        last_synced_at=_parse_ts(row["last_synced_at"]),
    )


def _target_from_row(row: sqlite3.Row) -> ExposureTarget:
    return ExposureTarget(
        id=row["id"],
        plan_id=row["plan_id"],
        name=row["name"],
        lat=row["lat"],
        lon=row["lon"],
        wait_time_seconds=row["wait_time_seconds"],
        order_index=row["order_index"],
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
        lifecycle=LifecycleState(row["lifecycle"]),
        sync_state=SyncState(row["sync_state"]),
    )


def _journey_from_row(row: sqlite3.Row) -> Journey:
    return Journey(
        id=row["id"],
        plan_id=row["plan_id"],
        started_at=_parse_ts(row["started_at"]),
        ended_at=_parse_ts(row["ended_at"]),
        is_current=bool(row["is_current"]),
        is_completed=bool(row["is_completed"]),
        lifecycle=LifecycleState(row["lifecycle"]),
        sync_state=SyncState(row["sync_state"]),
    )


_UPSERT_PLAN = """
    INSERT INTO plans (
        id, name, created_at, updated_at, lifecycle, sync_state, last_synced_at
    ) VALUES (?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(id) DO UPDATE SET
        name=excluded.name,
        updated_at=excluded.updated_at,
        lifecycle=excluded.lifecycle,
        sync_state=excluded.sync_state,
        last_synced_at=excluded.last_synced_at
"""

_UPSERT_TARGET = """
    INSERT INTO targets (
        id, plan_id, name, lat, lon, wait_time_seconds, order_index,
        created_at, updated_at, lifecycle, sync_state
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(id) DO UPDATE SET
        name=excluded.name,
        lat=excluded.lat,
        lon=excluded.lon,
        wait_time_seconds=excluded.wait_time_seconds,
        order_index=excluded.order_index,
        updated_at=excluded.updated_at,
        lifecycle=excluded.lifecycle,
        sync_state=excluded.sync_state
"""


def _plan_params(plan: ExposurePlan) -> tuple[Any, ...]:
    return (
        plan.id,
        plan.name,
        _ts(plan.created_at),
        _ts(plan.updated_at),
        plan.lifecycle.value,
        plan.sync_state.value,
        _ts(plan.last_synced_at),
    )


def _target_params(target: ExposureTarget) -> tuple[Any, ...]:
    return (
        target.id,
        target.plan_id,
        target.name,
        target.lat,
        target.lon,
        target.wait_time_seconds,
        target.order_index,
        _ts(target.created_at),
        _ts(target.updated_at),
        target.lifecycle.value,
        target.sync_state.value,
    )


class SQLiteExposureRepository:
    backend = "sqlite"

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._logger = get_logger()
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=5.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA foreign_keys=ON;")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            conn = self._connect()
            try:
                with conn:
                    yield conn
            finally:
                conn.close()

    def _write(self, operation: str, fn: Callable[[sqlite3.Connection], int]) -> WriteResult:
        try:
            with self._transaction() as conn:
                affected = fn(conn)
        except sqlite3.Error as exc:
            self._logger.error("persistence", f"{operation} failed: {exc}", backend=self.backend)
            return WriteResult.failure(f"{operation}: {exc}")
        return WriteResult.success(affected)

    def _init_schema(self) -> None:
        with self._transaction() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS plans (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    lifecycle TEXT NOT NULL,
                    sync_state TEXT NOT NULL,
                    last_synced_at TEXT
                );

                CREATE TABLE IF NOT EXISTS targets (
                    id TEXT PRIMARY KEY,
                    plan_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    lat REAL NOT NULL,
                    lon REAL NOT NULL,
                    wait_time_seconds INTEGER NOT NULL CHECK (wait_time_seconds >= 0),
                    order_index INTEGER NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    lifecycle TEXT NOT NULL,
                    sync_state TEXT NOT NULL,
                    FOREIGN KEY(plan_id) REFERENCES plans(id)
                );

                CREATE TABLE IF NOT EXISTS journeys (
                    id TEXT PRIMARY KEY,
                    plan_id TEXT,
                    started_at TEXT NOT NULL,
                    ended_at TEXT,
                    is_current INTEGER NOT NULL,
                    is_completed INTEGER NOT NULL,
                    lifecycle TEXT NOT NULL,
                    sync_state TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS path_points (
                    point_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    journey_id TEXT NOT NULL,
                    lat REAL NOT NULL,
                    lon REAL NOT NULL,
                    recorded_at TEXT NOT NULL,
                    FOREIGN KEY(journey_id) REFERENCES journeys(id)
                );

                CREATE INDEX IF NOT EXISTS idx_targets_plan_id ON targets(plan_id);
                CREATE INDEX IF NOT EXISTS idx_journeys_plan_id ON journeys(plan_id);
                CREATE INDEX IF NOT EXISTS idx_path_points_journey_id ON path_points(journey_id);
                """
            )

    # plans

    def save_plan(self, plan: ExposurePlan) -> WriteResult:
        return self._write("save_plan", lambda conn: conn.execute(_UPSERT_PLAN, _plan_params(plan)).rowcount)

    def get_plan(self, plan_id: str) -> Optional[ExposurePlan]:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM plans WHERE id = ? AND lifecycle = ?",
                (plan_id, _ACTIVE),
            ).fetchone()
        return _plan_from_row(row) if row else None

    def list_plans(self) -> list[ExposurePlan]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM plans WHERE lifecycle = ? ORDER BY updated_at DESC",
                (_ACTIVE,),
            ).fetchall()
        return [_plan_from_row(row) for row in rows]

    def delete_plan(self, plan_id: str) -> WriteResult:
        now = _ts(utc_now())

        def _delete(conn: sqlite3.Connection) -> int:
            affected = conn.execute(
                "UPDATE plans SET lifecycle = ?, sync_state = ?, updated_at = ? WHERE id = ? AND lifecycle = ?",
                (_DELETED, _PENDING, now, plan_id, _ACTIVE),
            ).rowcount
            conn.execute(
                "UPDATE targets SET lifecycle = ?, sync_state = ?, updated_at = ? WHERE plan_id = ? AND lifecycle = ?",
                (_DELETED, _PENDING, now, plan_id, _ACTIVE),
            )
            return affected

        return self._write("delete_plan", _delete)

    def list_pending_sync_plans(self) -> list[ExposurePlan]:
        # deleted plans are included so the deletion itself gets pushed
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM plans WHERE sync_state = ? ORDER BY updated_at ASC",
                (_PENDING,),
            ).fetchall()
        return [_plan_from_row(row) for row in rows]

    def mark_plan_synced(self, plan_id: str) -> WriteResult:
        now = _ts(utc_now())
        clean = SyncState.CLEAN.value

        def _mark(conn: sqlite3.Connection) -> int:
            affected = conn.execute(
                "UPDATE plans SET sync_state = ?, last_synced_at = ? WHERE id = ?",
                (clean, now, plan_id),
            ).rowcount
            conn.execute("UPDATE targets SET sync_state = ? WHERE plan_id = ?", (clean, plan_id))
            return affected

        return self._write("mark_plan_synced", _mark)

    # targets

    def get_target(self, target_id: str) -> Optional[ExposureTarget]:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM targets WHERE id = ? AND lifecycle = ?",
                (target_id, _ACTIVE),
            ).fetchone()
        return _target_from_row(row) if row else None

    def list_active_targets(self, plan_id: str) -> list[ExposureTarget]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM targets WHERE plan_id = ? AND lifecycle = ? ORDER BY order_index ASC, rowid ASC",
                (plan_id, _ACTIVE),
            ).fetchall()
        return [_target_from_row(row) for row in rows]

    def list_all_targets(self, plan_id: str) -> list[ExposureTarget]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM targets WHERE plan_id = ? ORDER BY rowid ASC",
                (plan_id,),
            ).fetchall()
        return [_target_from_row(row) for row in rows]

    def save_targets(self, targets: list[ExposureTarget]) -> WriteResult:
        def _save(conn: sqlite3.Connection) -> int:
            conn.executemany(_UPSERT_TARGET, [_target_params(t) for t in targets])
            return len(targets)

        return self._write("save_targets", _save)

    def replace_targets(self, plan: ExposurePlan, targets: list[ExposureTarget]) -> WriteResult:
        if any(t.plan_id != plan.id for t in targets):
            return WriteResult.failure("replace_targets: target belongs to a different plan")
        now = _ts(utc_now())

        def _replace(conn: sqlite3.Connection) -> int:
            conn.execute(_UPSERT_PLAN, _plan_params(plan))
            conn.execute(
                "UPDATE targets SET lifecycle = ?, sync_state = ?, updated_at = ? WHERE plan_id = ? AND lifecycle = ?",
                (_DELETED, _PENDING, now, plan.id, _ACTIVE),
            )
            conn.executemany(_UPSERT_TARGET, [_target_params(t) for t in targets])
            return len(targets)

        return self._write("replace_targets", _replace)

    # journeys

    def save_journey(self, journey: Journey) -> WriteResult:
        def _save(conn: sqlite3.Connection) -> int:
            return conn.execute(
                """
                INSERT INTO journeys (
                    id, plan_id, started_at, ended_at, is_current, is_completed, lifecycle, sync_state
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    plan_id=excluded.plan_id,
                    ended_at=excluded.ended_at,
                    is_current=excluded.is_current,
                    is_completed=excluded.is_completed,
                    lifecycle=excluded.lifecycle,
                    sync_state=excluded.sync_state
                """,
                (
                    journey.id,
                    journey.plan_id,
                    _ts(journey.started_at),
                    _ts(journey.ended_at),
                    int(journey.is_current),
                    int(journey.is_completed),
                    journey.lifecycle.value,
                    journey.sync_state.value,
                ),
            ).rowcount

        return self._write("save_journey", _save)

    def get_journey(self, journey_id: str) -> Optional[Journey]:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM journeys WHERE id = ? AND lifecycle = ?",
                (journey_id, _ACTIVE),
            ).fetchone()
        return _journey_from_row(row) if row else None

    def list_plan_journeys(self, plan_id: str) -> list[Journey]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM journeys WHERE plan_id = ? AND lifecycle = ? ORDER BY started_at DESC",
                (plan_id, _ACTIVE),
            ).fetchall()
        return [_journey_from_row(row) for row in rows]

    def list_current_journeys(self) -> list[Journey]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM journeys WHERE is_current = 1 AND lifecycle = ?",
                (_ACTIVE,),
            ).fetchall()
        return [_journey_from_row(row) for row in rows]

    def append_path_point(self, journey_id: str, point: PathPoint) -> WriteResult:
        return self._write(
            "append_path_point",
            lambda conn: conn.execute(
                "INSERT INTO path_points (journey_id, lat, lon, recorded_at) VALUES (?, ?, ?, ?)",
                (journey_id, point.lat, point.lon, _ts(point.recorded_at)),
            ).rowcount,
        )

    def get_path_trace(self, journey_id: str) -> Optional[list[PathPoint]]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT lat, lon, recorded_at FROM path_points WHERE journey_id = ? ORDER BY point_id ASC",
                (journey_id,),
            ).fetchall()
        if not rows:
            return None
        return [PathPoint(lat=row["lat"], lon=row["lon"], recorded_at=_parse_ts(row["recorded_at"])) for row in rows]


__all__ = ["SQLiteExposureRepository"]
