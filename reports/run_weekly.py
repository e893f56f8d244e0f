#!/usr/bin/env python3
"""
Weekly feedback report CLI.

Usage:
    python -m reports.run_weekly                       # previous complete ISO week
    python -m reports.run_weekly --week 2026-W07       # explicit week
    python -m reports.run_weekly --all                 # whole table (default window)
    python -m reports.run_weekly --start 2026-01-05 --end 2026-01-11T23:59:59Z
    python -m reports.run_weekly --upload              # store in REPORTS_BUCKET instead of --output-dir

Environment variables:
    TABLE_NAME, TABLE_INDEX_NAME, REPORTS_BUCKET, AWS_REGION, DEFAULT_PAGE_SIZE
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from feedbacks.config import load_settings_from_env
from feedbacks.errors import FeedbackError
from reports import weekly


def parse_iso_week(week_str: str) -> tuple[str, str]:
    """
    Report window of an ISO week id such as "2026-W07": Monday 00:00:00 UTC
    through Sunday 23:59:59 UTC, as ISO-8601 strings.

    Raises:
        ValueError: If week_str is not a valid YYYY-Wnn week
    """
    year, sep, week = week_str.partition("-W")
    try:
        if not sep:
            raise ValueError("expected YYYY-Wnn")
        monday = datetime.fromisocalendar(int(year), int(week), 1).replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise ValueError(f"Invalid ISO week '{week_str}': {e}") from e

    sunday_end = monday + timedelta(days=7, seconds=-1)
    return (
        monday.strftime("%Y-%m-%dT%H:%M:%SZ"),
        sunday_end.strftime("%Y-%m-%dT%H:%M:%SZ"),
    )


def get_previous_complete_week(now: Optional[datetime] = None) -> str:
    """ISO week ID ("YYYY-Wnn") of the last week that has fully ended."""
    now = now or datetime.now(timezone.utc)
    last_sunday = now - timedelta(days=now.weekday() + 1)
    iso_calendar = last_sunday.isocalendar()
    return f"{iso_calendar[0]}-W{iso_calendar[1]:02d}"


def resolve_cli_window(args: argparse.Namespace) -> tuple[Optional[str], Optional[str]]:
    if args.all:
        return (None, None)
    if args.start or args.end:
        return (args.start, args.end)
    week_id = args.week or get_previous_complete_week()
    if not args.week:
        print(f"[reports] Using previous complete week: {week_id}")
    return parse_iso_week(week_id)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate the weekly feedback report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--week", type=str, help="ISO week to process (e.g., 2026-W07)")
    parser.add_argument("--start", type=str, help="Inclusive window start (ISO-8601)")
    parser.add_argument("--end", type=str, help="Inclusive window end (ISO-8601)")
    parser.add_argument(
        "--all",
        action="store_true",
        help="Report over every stored feedback (2020-01-01 to 2030-12-31)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="output",
        help="Output directory for the report (default: output/)",
    )
    parser.add_argument(
        "--upload",
        action="store_true",
        help="Upload to REPORTS_BUCKET instead of writing to --output-dir",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for weekly report generation.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    args = build_parser().parse_args(argv)

    try:
        start_date, end_date = resolve_cli_window(args)
        settings = load_settings_from_env()
    except (ValueError, RuntimeError) as e:
        print(f"[reports] ERROR: {e}", file=sys.stderr)
        return 1

    print(f"[reports] Querying {settings.table_name} ({start_date or 'default'} to {end_date or 'default'})...")

    try:
        query = weekly.build_query(settings)

        if args.upload:
            artifact_name = weekly.generate_weekly_report(
                query, weekly.build_archive(settings), start_date, end_date
            )
            print(f"[reports] ✓ Uploaded s3://{settings.reports_bucket}/{artifact_name}")
            return 0

        stats, report = weekly.build_report(query, start_date, end_date)

        output_path = Path(args.output_dir)
        output_path.mkdir(parents=True, exist_ok=True)
        report_path = output_path / report.artifact_name
        report_path.write_text(report.text, encoding="utf-8")

        print(f"[reports] ✓ Generated {report_path}")
        print(f"[reports]   Total feedbacks: {stats.total_count}")
        print(f"[reports]   Average rating: {stats.average_rating:.1f}")
        return 0

    except FeedbackError as e:
        print(f"[reports] ERROR: {type(e).__name__}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
