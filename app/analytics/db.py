from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Sequence

from app.core.config import settings

if TYPE_CHECKING:
    from app.ai.orchestrator import ProviderAttempt


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _get_db_path() -> Path:
    return Path(settings.analytics_db_path)


def init_db() -> None:
    if not settings.analytics_enabled:
        return
    db_path = _get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS optimization_runs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                created_at TEXT NOT NULL,
                run_id TEXT NOT NULL,
                provider TEXT NOT NULL,
                status TEXT NOT NULL,
                retries INTEGER NOT NULL,
                error_code TEXT,
                latency_ms INTEGER
            )
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_optimization_runs_created_at
            ON optimization_runs (created_at)
            """
        )
        conn.commit()


def log_optimization_run(*, run_id: str, attempts: Sequence["ProviderAttempt"]) -> None:
    if not settings.analytics_enabled or not attempts:
        return
    db_path = _get_db_path()
    created_at = _utc_now()
    with sqlite3.connect(db_path) as conn:
        conn.executemany(
            """
            INSERT INTO optimization_runs (
                created_at, run_id, provider, status, retries, error_code, latency_ms
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    created_at,
                    run_id,
                    attempt.provider,
                    attempt.status,
                    attempt.retries,
                    attempt.error_code,
                    attempt.latency_ms,
                )
                for attempt in attempts
            ],
        )
        conn.commit()


def purge_old_records() -> dict[str, int]:
    if not settings.analytics_enabled:
        return {"optimization_runs": 0}

    retention = max(1, int(settings.analytics_retention_days))
    with sqlite3.connect(_get_db_path()) as conn:
        cur = conn.execute(
            "DELETE FROM optimization_runs WHERE created_at < datetime('now', ?)",
            (f"-{retention} days",),
        )
        conn.commit()
    return {"optimization_runs": int(cur.rowcount or 0)}


def _row_to_dict(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def get_summary() -> dict[str, Any]:
    if not settings.analytics_enabled:
        return {"enabled": False}
    with sqlite3.connect(_get_db_path()) as conn:
        cur = conn.execute("SELECT COUNT(DISTINCT run_id) FROM optimization_runs")
        total_runs = cur.fetchone()[0]
        cur = conn.execute(
            """
            SELECT provider,
                   SUM(CASE WHEN status = 'success' THEN 1 ELSE 0 END) AS successes,
                   SUM(CASE WHEN status = 'failed' THEN 1 ELSE 0 END) AS failures,
                   SUM(retries) AS retries
            FROM optimization_runs
            WHERE status != 'skipped'
            GROUP BY provider
            ORDER BY provider
            """
        )
        providers = [_row_to_dict(cur, row) for row in cur.fetchall()]
    return {"enabled": True, "total_runs": total_runs, "providers": providers}


def get_latest(limit: int = 20) -> list[dict[str, Any]]:
    if not settings.analytics_enabled:
        return []
    with sqlite3.connect(_get_db_path()) as conn:
        cur = conn.execute(
            """
            SELECT created_at, run_id, provider, status, retries, error_code, latency_ms
            FROM optimization_runs
            ORDER BY id DESC
            LIMIT ?
            """,
            (limit,),
        )
        rows = cur.fetchall()
        return [_row_to_dict(cur, row) for row in rows]
