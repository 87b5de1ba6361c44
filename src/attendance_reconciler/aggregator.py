"""
Attendance aggregation: per-person rolling counts from canonical events.

Events are grouped by resolved id. Attendance is counted in unique event
instances rather than raw rows: every calendar date of the recurring service
is its own instance, and any other event is one instance per name + id.

Windows are relative to an injected "now":
- quarter / month counts: distinct instances in the current calendar
  quarter / month of the current year
- volunteer count: volunteer-flagged rows (not distinct) in the current year
- total unique events: distinct instances across all time

The most recent event (by timestamp, never by input order) supplies the
display name, last attended date and last event name.
"""

import datetime
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Optional
from attendance_reconciler import constants
from attendance_reconciler.errors import UnparseableRow
from attendance_reconciler.models import AttendanceEvent, AttendanceSummary
from attendance_reconciler.utils import parse_timestamp, to_local


@dataclass(frozen=True)
class DatedEvent:
    """An event whose timestamp parsed, with its instance key."""

    event: AttendanceEvent
    when: datetime.datetime
    instance_key: str

    @property
    def quarter(self) -> int:
        return quarter_of(self.when)


def quarter_of(when) -> int:
    return (when.month - 1) // 3


def event_instance_key(event: AttendanceEvent, when: datetime.datetime) -> str:
    """Key for the occurrence an event row belongs to."""
    sep = constants.INSTANCE_KEY_SEPARATOR
    if event.is_service:
        return f"{constants.SERVICE_EVENT_NAME}{sep}{when.date().isoformat()}"
    event_name = event.event_name or constants.UNKNOWN_EVENT_NAME
    event_id = event.event_id or constants.UNKNOWN_EVENT_ID
    return f"{event_name}{sep}{event_id}"


def event_name_from_key(instance_key: str) -> str:
    return instance_key.split(constants.INSTANCE_KEY_SEPARATOR, 1)[0]


class AttendanceAggregator:
    """Groups attendance events by identity and computes summary statistics."""

    def __init__(self, timezone_name: str = constants.DEFAULT_TIMEZONE, verbose: bool = False):
        self.timezone_name = timezone_name
        self.verbose = verbose
        self.skipped: list[UnparseableRow] = []
        self.logger = self._setup_logging()

    def _setup_logging(self) -> logging.Logger:
        logger = logging.getLogger("aggregator")
        logger.setLevel(logging.DEBUG if self.verbose else logging.INFO)
        # Don't add handlers - use root logger's handler to avoid duplicates
        return logger

    def aggregate(self, events: list[AttendanceEvent], now: datetime.datetime) -> list[AttendanceSummary]:
        """
        Summarize events per identity.

        Args:
            events: Canonical events from the formatter
            now: Wall-clock time the windows are measured against

        Returns:
            One summary per identity with at least one dated event, ordered by id
        """
        now = to_local(now, self.timezone_name)
        grouped = self._group(events)

        summaries = [
            self._summarize(identity_id, dated, now)
            for identity_id, dated in sorted(grouped.items())
        ]
        self.logger.info(f"Attendance stats calculated for {len(summaries)} individuals")
        return summaries

    def _group(self, events) -> dict[int, list[DatedEvent]]:
        grouped = defaultdict(list)
        for event in events:
            when = parse_timestamp(event.timestamp)
            if when is None:
                issue = UnparseableRow(
                    event.source.value, event.row_number,
                    f"invalid date '{event.timestamp}' for id {event.identity_id}",
                    row=event,
                )
                self.skipped.append(issue)
                self.logger.warning(f"Skipping {issue}")
                continue
            when = to_local(when, self.timezone_name)
            grouped[event.identity_id].append(
                DatedEvent(event=event, when=when, instance_key=event_instance_key(event, when))
            )
        return grouped

    def _summarize(self, identity_id: int, dated: list[DatedEvent], now) -> AttendanceSummary:
        current_quarter = quarter_of(now)
        unique_events = set()
        month_events = set()
        quarter_events = set()
        volunteer_count = 0

        for record in dated:
            unique_events.add(record.instance_key)
            if record.when.year != now.year:
                continue
            if record.when.month == now.month:
                month_events.add(record.instance_key)
            if record.quarter == current_quarter:
                quarter_events.add(record.instance_key)
            if record.event.is_volunteer:
                volunteer_count += 1

        most_recent = self.most_recent(dated)
        if self.verbose:
            self.logger.debug(
                f"id {identity_id}: {len(dated)} rows, {len(unique_events)} unique events, "
                f"last {most_recent.instance_key}"
            )

        return AttendanceSummary(
            identity_id=identity_id,
            display_name=most_recent.event.full_name,
            quarter_event_count=len(quarter_events),
            month_event_count=len(month_events),
            volunteer_count=volunteer_count,
            last_attended=most_recent.when,
            last_event_name=event_name_from_key(most_recent.instance_key),
            total_unique_events=len(unique_events),
        )

    @staticmethod
    def most_recent(dated: list[DatedEvent]) -> Optional[DatedEvent]:
        """Latest event by timestamp; ties broken on key and name so input order never matters."""
        if not dated:
            return None
        return max(dated, key=lambda d: (d.when, d.instance_key, d.event.full_name))


def aggregate(events, now, timezone_name=constants.DEFAULT_TIMEZONE):
    """Module-level shortcut around AttendanceAggregator.aggregate."""
    return AttendanceAggregator(timezone_name=timezone_name).aggregate(events, now)
