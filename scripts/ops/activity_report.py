"""Summarize prediction, nudge and cache activity from structured logs.

Usage:
    python -m scripts.ops.activity_report [--log-path logs/events.jsonl] [--hours 24]
"""
from __future__ import annotations

import argparse
import json
import sys

from app.core.config import settings
from app.core.event_log import generate_activity_report


def main() -> None:
    parser = argparse.ArgumentParser(description="Group activity report")
    parser.add_argument("--log-path", default=settings.event_log_path)
    parser.add_argument("--hours", type=int, default=24)
    args = parser.parse_args()

    report = generate_activity_report(args.log_path, hours=args.hours)
    print(json.dumps(report, indent=2))

    if "error" in report:
        sys.exit(1)

    for group_id, stats in report.get("groups", {}).items():
        rejected = stats.get("predictions_rejected", 0)
        if rejected > stats.get("predictions_saved", 0):
            print(f"WARNING: group {group_id} rejected more predictions than it saved ({rejected})", file=sys.stderr)


if __name__ == "__main__":
    main()
