import os
import sqlite3
import sys
import tempfile
import unittest
from dataclasses import replace
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("ANALYTICS_ENABLED", "0")

from app.ai.orchestrator import ProviderAttempt  # noqa: E402
from app.analytics import db as analytics_db  # noqa: E402

ATTEMPTS = [
    ProviderAttempt(provider="HuggingFace", status="skipped", error_code="credential_missing"),
    ProviderAttempt(provider="Gemini", status="failed", retries=2, error_code="provider_rate_limited", latency_ms=10),
    ProviderAttempt(provider="OpenRouter", status="success", retries=0, latency_ms=800),
]


class AnalyticsDbTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db_path = Path(self.tmp.name) / "nested" / "analytics.db"
        enabled = replace(analytics_db.settings, analytics_enabled=True, analytics_db_path=str(self.db_path))
        self.patcher = patch.object(analytics_db, "settings", enabled)
        self.patcher.start()
        analytics_db.init_db()

    def tearDown(self):
        self.patcher.stop()
        self.tmp.cleanup()

    def test_runs_are_logged_and_summarised(self):
        analytics_db.log_optimization_run(run_id="run-1", attempts=ATTEMPTS)
        analytics_db.log_optimization_run(run_id="run-2", attempts=ATTEMPTS[2:])

        summary = analytics_db.get_summary()
        self.assertTrue(summary["enabled"])
        self.assertEqual(summary["total_runs"], 2)
        by_provider = {row["provider"]: row for row in summary["providers"]}
        self.assertNotIn("HuggingFace", by_provider)
        self.assertEqual(by_provider["Gemini"]["failures"], 1)
        self.assertEqual(by_provider["Gemini"]["retries"], 2)
        self.assertEqual(by_provider["OpenRouter"]["successes"], 2)

    def test_latest_is_newest_first(self):
        analytics_db.log_optimization_run(run_id="run-1", attempts=ATTEMPTS)
        latest = analytics_db.get_latest(limit=2)
        self.assertEqual([row["provider"] for row in latest], ["OpenRouter", "Gemini"])
        self.assertEqual(latest[1]["error_code"], "provider_rate_limited")

    def test_purge_drops_expired_rows(self):
        analytics_db.log_optimization_run(run_id="fresh", attempts=ATTEMPTS[2:])
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "INSERT INTO optimization_runs (created_at, run_id, provider, status, retries) VALUES (?, ?, ?, ?, ?)",
                ("2000-01-01T00:00:00+00:00", "stale", "Groq", "failed", 0),
            )
            conn.commit()
        self.assertEqual(analytics_db.purge_old_records(), {"optimization_runs": 1})
        self.assertEqual([row["run_id"] for row in analytics_db.get_latest()], ["fresh"])


class AnalyticsDisabledTests(unittest.TestCase):
    def test_disabled_analytics_is_a_no_op(self):
        disabled = replace(analytics_db.settings, analytics_enabled=False)
        with patch.object(analytics_db, "settings", disabled):
            analytics_db.log_optimization_run(run_id="x", attempts=ATTEMPTS)
            self.assertEqual(analytics_db.get_summary(), {"enabled": False})
            self.assertEqual(analytics_db.get_latest(), [])
            self.assertEqual(analytics_db.purge_old_records(), {"optimization_runs": 0})


if __name__ == "__main__":
    unittest.main()
