"""Tests for app.core.event_log: structured event logging and activity report."""
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

from app.core.event_log import (
    generate_activity_report,
    log_nudge_rejected,
    log_nudge_sent,
    log_prediction_batch_saved,
    log_prediction_rejected,
    log_prediction_saved,
    log_ranking_cache_hit,
    log_ranking_cache_invalidated,
    log_ranking_cache_miss,
    log_reminders_run,
    set_log_path,
)


class TestLogEvents:
    def test_nothing_written_without_path(self, tmp_path):
        set_log_path(None)
        log_prediction_saved(1, 2, 3)
        assert list(tmp_path.iterdir()) == []

    def test_prediction_saved(self, log_file):
        log_prediction_saved(1, 2, 3)
        lines = log_file.read_text().strip().split("\n")
        assert len(lines) == 1
        entry = json.loads(lines[0])
        assert entry["event"] == "prediction_saved"
        assert entry["fixture_id"] == 3
        assert "ts" in entry

    def test_reminders_run(self, log_file):
        log_reminders_run(duration_seconds=1.234, reminders_created=4, groups_processed=2, dry_run=False)
        entry = json.loads(log_file.read_text().strip())
        assert entry["duration_seconds"] == 1.23
        assert entry["reminders_created"] == 4


class TestActivityReport:
    def test_missing_file(self, tmp_path):
        report = generate_activity_report(tmp_path / "nope.jsonl")
        assert report["error"] == "Log file not found"

    def test_per_group_counts(self, log_file):
        log_prediction_saved(1, 2, 10)
        log_prediction_batch_saved(1, 2, saved=3, rejected=1)
        log_prediction_rejected(1, 2, 12, reason="match_started")
        log_nudge_sent(1, 1, 2, 10)
        log_nudge_rejected(2, 5, reason="Already nudged")
        log_ranking_cache_miss(1)
        log_ranking_cache_hit(1)
        log_ranking_cache_hit(1)
        log_ranking_cache_invalidated([1, 2])
        log_reminders_run(duration_seconds=0.5, reminders_created=6, groups_processed=2, dry_run=False)

        report = generate_activity_report(log_file, hours=1)
        g1 = report["groups"]["1"]
        assert g1["predictions_saved"] == 4
        assert g1["predictions_rejected"] == 1
        assert g1["nudges_sent"] == 1
        assert g1["cache_hits"] == 2
        assert g1["cache_misses"] == 1
        assert g1["cache_hit_rate"] == 0.667
        assert g1["cache_invalidations"] == 1

        g2 = report["groups"]["2"]
        assert g2["nudges_rejected"] == 1
        assert g2["cache_invalidations"] == 1
        assert g2["cache_hit_rate"] == 0

        assert report["reminder_runs"] == 1
        assert report["reminders_created"] == 6

    def test_old_and_malformed_lines_skipped(self, log_file):
        old = (datetime.now(timezone.utc) - timedelta(hours=48)).isoformat()
        with open(log_file, "w", encoding="utf-8") as f:
            f.write(json.dumps({"event": "prediction_saved", "group_id": 1, "ts": old}) + "\n")
            f.write("not json\n")
            f.write(json.dumps({"event": "prediction_saved", "group_id": 1, "ts": "garbage"}) + "\n")
        log_prediction_saved(1, 2, 3)

        report = generate_activity_report(log_file, hours=24)
        assert report["groups"]["1"]["predictions_saved"] == 1
