"""Recompute the ``ticket_metrics_daily`` rollup for a range of days.

Usage examples:

    python scripts/run_metrics_rollup.py --days 30
    python scripts/run_metrics_rollup.py --start 2026-01-01 --end 2026-01-31
"""

from __future__ import annotations

import argparse
import datetime as dt
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(BASE_DIR))

from ticket_analytics.core.config import settings  # noqa: E402
from ticket_analytics.core.exceptions import TicketAnalyticsException  # noqa: E402
from ticket_analytics.core.logging import setup_logging  # noqa: E402
from ticket_analytics.db.session import session_scope  # noqa: E402
from ticket_analytics.services.analytics.rollup import run_metrics_rollup  # noqa: E402
from ticket_analytics.services.analytics.windows import rollup_day_range  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upsert daily ticket metrics rollups")
    parser.add_argument("--days", type=int, default=None, help="Trailing days to roll up (1..365)")
    parser.add_argument("--start", type=dt.date.fromisoformat, default=None, help="First day (YYYY-MM-DD)")
    parser.add_argument("--end", type=dt.date.fromisoformat, default=None, help="Last day (YYYY-MM-DD)")
    parser.add_argument("--domain", default="", help="Ticket domain (else ANALYTICS_DOMAIN)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(settings.LOG_LEVEL)
    started = dt.datetime.now(dt.timezone.utc)
    try:
        day_start, day_end = rollup_day_range(
            args.days,
            args.start,
            args.end,
            default_days=settings.ROLLUP_DEFAULT_DAYS,
            max_days=settings.ROLLUP_MAX_DAYS,
        )
        with session_scope() as db:
            written = run_metrics_rollup(db, day_start, day_end, domain=args.domain or None)
    except TicketAnalyticsException as exc:
        print(f"[failed] {exc.error_code}: {exc.message}")
        return 2

    duration = (dt.datetime.now(dt.timezone.utc) - started).total_seconds()
    print(f"[done] range={day_start}..{day_end} rows={written} duration_s={duration:.2f}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
