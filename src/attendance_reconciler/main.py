import argparse
import datetime
import logging
import os
import sys
from zoneinfo import ZoneInfo
from attendance_reconciler import constants
from attendance_reconciler import pipeline
from attendance_reconciler.errors import AttendanceError
from attendance_reconciler.logging_config import configure_root_logger, get_logger


def resolve_now(now_arg, timezone_name):
    """Wall clock for the run: --now if given (naive values are taken as local), else the current time."""
    if now_arg:
        now = datetime.datetime.fromisoformat(now_arg)
        if now.tzinfo is None:
            now = now.replace(tzinfo=ZoneInfo(timezone_name))
        return now
    return datetime.datetime.now(ZoneInfo(timezone_name))


def run_stats(data_folder, now, timezone_name, verbose=False, logger=None):
    """
    Recompute the stats table of a data folder.

    Returns:
        True on success, False if the run was aborted
    """
    if logger is None:
        logger = logging.getLogger("cli")

    try:
        report = pipeline.run(data_folder, now, timezone_name=timezone_name, verbose=verbose)
    except AttendanceError as e:
        logger.error(f"Run aborted: {e}")
        return False

    logger.info(
        f"Wrote {len(report.summaries)} summaries to {report.output_path} "
        f"({report.skipped_count} rows skipped, {len(report.generated_ids)} new ids)"
    )
    for match_key, new_id in report.generated_ids:
        logger.info(f"  new id {new_id}: {match_key}")
    return True


def run_activity(data_folder, logger=None):
    if logger is None:
        logger = logging.getLogger("cli")

    try:
        levels = pipeline.refresh_activity_levels(data_folder)
    except AttendanceError as e:
        logger.error(f"Activity update aborted: {e}")
        return False

    logger.info(f"Activity levels updated for {len(levels)} rows")
    return True


def run_roster(data_folder, now, timezone_name, logger=None):
    if logger is None:
        logger = logging.getLogger("cli")

    try:
        entries = pipeline.roster_for(data_folder, now, timezone_name=timezone_name)
    except AttendanceError as e:
        logger.error(f"Roster aborted: {e}")
        return False

    for entry in entries:
        print(f"{entry.identity_id}\t{entry.full_name}\t{entry.first_name}\t{entry.last_name}")
    logger.info(f"Roster: {len(entries)} members")
    return True


def main(argv=None):
    # Default from environment if available
    default_data_folder = os.getenv("ATTENDANCE_DATA_PATH")

    parser = argparse.ArgumentParser(description="Attendance reconciliation CLI")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose (DEBUG) logging")

    def add_common(subparser, with_clock=True):
        subparser.add_argument(
            "--data-folder",
            type=str,
            default=default_data_folder,
            required=(default_data_folder is None),
            help="Folder holding directory.csv, event_attendance.csv, service_attendance.csv",
        )
        if with_clock:
            subparser.add_argument(
                "--timezone",
                default=constants.DEFAULT_TIMEZONE,
                help=f"Timezone for windows and dates (default: {constants.DEFAULT_TIMEZONE})",
            )
            subparser.add_argument(
                "--now", default=None, help="ISO date-time to use as the current time"
            )

    subparsers = parser.add_subparsers(dest="command")

    add_common(subparsers.add_parser("run", help="Recompute attendance stats from all sources"))
    add_common(
        subparsers.add_parser("activity", help="Recompute activity levels of the stats table"),
        with_clock=False,
    )
    add_common(subparsers.add_parser("roster", help="Print the active roster"))

    args = parser.parse_args(argv)
    configure_root_logger(level="DEBUG" if args.verbose else None)
    logger = get_logger("cli", "cli", console_output=False)

    # Routing logic
    if args.command == "run":
        now = resolve_now(args.now, args.timezone)
        ok = run_stats(args.data_folder, now, args.timezone, verbose=args.verbose, logger=logger)
    elif args.command == "activity":
        ok = run_activity(args.data_folder, logger=logger)
    elif args.command == "roster":
        now = resolve_now(args.now, args.timezone)
        ok = run_roster(args.data_folder, now, args.timezone, logger=logger)
    else:
        parser.print_help()
        return 0

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
