"""Write prediction reminders for fixtures kicking off soon.

Usage:
    python -m scripts.ops.send_prediction_reminders [--window-hours 2] [--dry-run] [--database-url ...]
"""
from __future__ import annotations

import argparse
import json
import logging

from app.core.config import settings
from app.core.event_log import set_log_path
from app.db.engine import get_engine
from app.services.reminders import run_prediction_reminders


def main() -> None:
    parser = argparse.ArgumentParser(description="Send prediction reminders for upcoming fixtures")
    parser.add_argument("--window-hours", type=int, default=None, help="Look-ahead window, clamped to 1..24")
    parser.add_argument("--dry-run", action="store_true", help="Count pending reminders without writing them")
    parser.add_argument("--database-url", default=None)
    parser.add_argument("--log-path", default=settings.event_log_path)
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level.upper())
    set_log_path(args.log_path)

    engine = get_engine(args.database_url)
    result = run_prediction_reminders(engine, window_hours=args.window_hours, dry_run=args.dry_run)
    print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
