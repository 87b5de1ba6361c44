"""
One full reconciliation run.

    sources -> resolve identities -> format events -> aggregate -> classify -> stats table

Every run builds its own ResolutionContext; nothing is cached between runs.
Source-level problems (MissingSource) and id allocation problems
(AllocationExhausted) propagate and no stats table is written. Row-level
problems are collected on the RunReport.
"""

import datetime
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from attendance_reconciler import constants
from attendance_reconciler import file_io
from attendance_reconciler.activity import classify, update_activity_levels
from attendance_reconciler.aggregator import AttendanceAggregator
from attendance_reconciler.data_manager import DataManager
from attendance_reconciler.formatter import RecordFormatter
from attendance_reconciler.identity import IdentityResolver, ResolutionContext
from attendance_reconciler.logging_config import get_logger
from attendance_reconciler.models import AttendanceSummary, RosterEntry, SourceSet
from attendance_reconciler.roster import build_roster


@dataclass
class RunReport:
    summaries: list[AttendanceSummary] = field(default_factory=list)
    event_count: int = 0
    skipped: list = field(default_factory=list)
    generated_ids: list = field(default_factory=list)
    context: Optional[ResolutionContext] = None
    output_path: Optional[Path] = None

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def recent_counts_by_id(stats_rows) -> dict:
    """Carry column K of a previous stats table forward, keyed by id."""
    counts = {}
    for row in stats_rows:
        raw_id = str(row[constants.STATS_ID_COL]).strip()
        if raw_id.isdigit():
            counts.setdefault(int(raw_id), row[constants.STATS_RECENT_COL])
    return counts


def reconcile(
    sources: SourceSet,
    now: datetime.datetime,
    timezone_name: str = constants.DEFAULT_TIMEZONE,
    resolver: Optional[IdentityResolver] = None,
    recent_counts: Optional[dict] = None,
    verbose: bool = False,
) -> RunReport:
    """
    Run the engine over in-memory sources.

    Activity levels are wired explicitly: E is the computed quarter count and
    K is the externally maintained recent counter (blank when unknown).
    """
    logger = get_logger("pipeline", "pipeline", console_output=False)
    resolver = resolver or IdentityResolver()
    recent_counts = recent_counts or {}

    context = resolver.build_context(sources)
    formatter = RecordFormatter(resolver, verbose=verbose)
    events = formatter.format_events(sources, context)

    aggregator = AttendanceAggregator(timezone_name=timezone_name, verbose=verbose)
    summaries = aggregator.aggregate(events, now)

    for summary in summaries:
        summary.recent_count = recent_counts.get(summary.identity_id, "")
        summary.activity_level = classify(summary.quarter_event_count, summary.recent_count)

    report = RunReport(
        summaries=summaries,
        event_count=len(events),
        skipped=formatter.skipped + aggregator.skipped,
        generated_ids=list(context.generated),
        context=context,
    )
    logger.info(
        f"Run complete: {len(summaries)} summaries from {report.event_count} events, "
        f"{report.skipped_count} rows skipped, {len(report.generated_ids)} new ids"
    )
    return report


def load_run_sources(data_manager: DataManager) -> SourceSet:
    paths = data_manager.require_sources()
    return file_io.load_sources(paths["directory"], paths["event_log"], paths["service_log"])


def run(
    data_folder,
    now: datetime.datetime,
    timezone_name: str = constants.DEFAULT_TIMEZONE,
    write: bool = True,
    verbose: bool = False,
) -> RunReport:
    """Read a data folder, reconcile it and (optionally) rewrite its stats table."""
    logger = get_logger("pipeline", "pipeline", console_output=False)
    dm = DataManager(data_folder)
    sources = load_run_sources(dm)
    previous_stats = file_io.load_stats_rows(dm.stats_path)

    report = reconcile(
        sources,
        now,
        timezone_name=timezone_name,
        recent_counts=recent_counts_by_id(previous_stats),
        verbose=verbose,
    )

    if write:
        file_io.save_stats_csv(report.summaries, dm.stats_path, timezone_name=timezone_name)
        report.output_path = dm.stats_path
        logger.info(f"Attendance stats written to {dm.stats_path}")
    return report


def refresh_activity_levels(data_folder) -> list:
    """Re-classify every row of an existing stats table in place."""
    dm = DataManager(data_folder)
    rows = file_io.load_stats_rows(dm.stats_path, required=True)
    levels = update_activity_levels(rows)
    file_io.save_stats_rows(rows, dm.stats_path)
    return levels


def roster_for(
    data_folder,
    now: datetime.datetime,
    timezone_name: str = constants.DEFAULT_TIMEZONE,
) -> list[RosterEntry]:
    """Active roster from a data folder's stats table, with directory names preferred."""
    dm = DataManager(data_folder)
    summaries = file_io.load_stats_summaries(dm.stats_path, required=True)
    sources = load_run_sources(dm)
    context = IdentityResolver().build_context(sources)
    return build_roster(
        summaries,
        now,
        directory=sources.directory,
        context=context,
        timezone_name=timezone_name,
    )
