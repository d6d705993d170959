"""Structured JSON logging for prediction-engine events.

Writes one JSON line per event to a configurable log file. Events cover
prediction writes, batch rejections, nudges, ranking cache hits/misses and
invalidations, and reminder runs. Nothing is written until a path is set.
"""
from __future__ import annotations

import json
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


_LOG_PATH: Path | None = None
_LOCK = threading.Lock()


def set_log_path(path: str | Path | None) -> None:
    global _LOG_PATH  # noqa: PLW0603
    if path is None:
        _LOG_PATH = None
        return
    _LOG_PATH = Path(path)
    _LOG_PATH.parent.mkdir(parents=True, exist_ok=True)


def _emit(event: dict[str, Any]) -> None:
    if _LOG_PATH is None:
        return
    event.setdefault("ts", datetime.now(timezone.utc).isoformat())
    line = json.dumps(event, default=str)
    with _LOCK:
        with open(_LOG_PATH, "a", encoding="utf-8") as f:
            f.write(line + "\n")


# ---------------------------------------------------------------------------
# Prediction events
# ---------------------------------------------------------------------------
def log_prediction_saved(group_id: int, user_id: int, fixture_id: int) -> None:
    _emit({"event": "prediction_saved", "group_id": group_id, "user_id": user_id, "fixture_id": fixture_id})


def log_prediction_batch_saved(group_id: int, user_id: int, *, saved: int, rejected: int) -> None:
    _emit({
        "event": "prediction_batch_saved",
        "group_id": group_id,
        "user_id": user_id,
        "saved": saved,
        "rejected": rejected,
    })


def log_prediction_rejected(group_id: int, user_id: int, fixture_id: int, *, reason: str) -> None:
    _emit({
        "event": "prediction_rejected",
        "group_id": group_id,
        "user_id": user_id,
        "fixture_id": fixture_id,
        "reason": reason,
    })


# ---------------------------------------------------------------------------
# Nudge events
# ---------------------------------------------------------------------------
def log_nudge_sent(group_id: int, nudger_id: int, target_id: int, fixture_id: int) -> None:
    _emit({
        "event": "nudge_sent",
        "group_id": group_id,
        "nudger_id": nudger_id,
        "target_id": target_id,
        "fixture_id": fixture_id,
    })


def log_nudge_rejected(group_id: int, nudger_id: int, *, reason: str) -> None:
    _emit({"event": "nudge_rejected", "group_id": group_id, "nudger_id": nudger_id, "reason": reason})


# ---------------------------------------------------------------------------
# Ranking cache events
# ---------------------------------------------------------------------------
def log_ranking_cache_hit(group_id: int) -> None:
    _emit({"event": "ranking_cache_hit", "group_id": group_id})


def log_ranking_cache_miss(group_id: int) -> None:
    _emit({"event": "ranking_cache_miss", "group_id": group_id})


def log_ranking_cache_invalidated(group_ids: list[int]) -> None:
    _emit({"event": "ranking_cache_invalidated", "group_ids": list(group_ids)})


# ---------------------------------------------------------------------------
# Reminder run summary
# ---------------------------------------------------------------------------
def log_reminders_run(*, duration_seconds: float, reminders_created: int, groups_processed: int, dry_run: bool) -> None:
    _emit({
        "event": "reminders_run",
        "duration_seconds": round(duration_seconds, 2),
        "reminders_created": reminders_created,
        "groups_processed": groups_processed,
        "dry_run": dry_run,
    })


# ---------------------------------------------------------------------------
# Activity report generation
# ---------------------------------------------------------------------------
def generate_activity_report(log_path: str | Path, hours: int = 24) -> dict[str, Any]:
    """Parse the JSONL log and produce a per-group summary report."""
    path = Path(log_path)
    if not path.exists():
        return {"error": "Log file not found", "path": str(path)}

    cutoff = time.time() - (hours * 3600)
    by_group: dict[str, dict[str, Any]] = {}
    reminder_runs = 0
    reminders_created = 0

    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue

            ts_str = entry.get("ts", "")
            try:
                ts = datetime.fromisoformat(ts_str).timestamp()
            except (ValueError, TypeError):
                continue
            if ts < cutoff:
                continue

            event = entry.get("event")
            if event == "reminders_run":
                reminder_runs += 1
                reminders_created += int(entry.get("reminders_created") or 0)
                continue
            if event == "ranking_cache_invalidated":
                group_keys = [str(g) for g in entry.get("group_ids") or []]
            else:
                group_keys = [str(entry.get("group_id", "unknown"))]

            for group_key in group_keys:
                if group_key not in by_group:
                    by_group[group_key] = {
                        "predictions_saved": 0,
                        "predictions_rejected": 0,
                        "nudges_sent": 0,
                        "nudges_rejected": 0,
                        "cache_hits": 0,
                        "cache_misses": 0,
                        "cache_invalidations": 0,
                    }
                stats = by_group[group_key]

                if event == "prediction_saved":
                    stats["predictions_saved"] += 1
                elif event == "prediction_batch_saved":
                    stats["predictions_saved"] += int(entry.get("saved") or 0)
                elif event == "prediction_rejected":
                    stats["predictions_rejected"] += 1
                elif event == "nudge_sent":
                    stats["nudges_sent"] += 1
                elif event == "nudge_rejected":
                    stats["nudges_rejected"] += 1
                elif event == "ranking_cache_hit":
                    stats["cache_hits"] += 1
                elif event == "ranking_cache_miss":
                    stats["cache_misses"] += 1
                elif event == "ranking_cache_invalidated":
                    stats["cache_invalidations"] += 1

    # Compute derived metrics.
    for stats in by_group.values():
        cache_total = stats["cache_hits"] + stats["cache_misses"]
        stats["cache_hit_rate"] = round(stats["cache_hits"] / cache_total, 3) if cache_total else 0

    return {
        "hours": hours,
        "groups": by_group,
        "reminder_runs": reminder_runs,
        "reminders_created": reminders_created,
    }
