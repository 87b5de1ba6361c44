import datetime
import logging
from typing import Optional
from attendance_reconciler import constants
from attendance_reconciler.identity import ResolutionContext, resolve
from attendance_reconciler.models import ActivityLevel, AttendanceSummary, RosterEntry
from attendance_reconciler.normalize import normalize_name
from attendance_reconciler.utils import split_full_name, to_local

logger = logging.getLogger("roster")


def include_in_roster(summary: AttendanceSummary, now: datetime.datetime,
		recent_days=constants.ROSTER_RECENT_DAYS, timezone_name=constants.DEFAULT_TIMEZONE) -> bool:
	"""
	Roster inclusion rule.

	Core and Active people are always in. Inactive people are in if they attended
	within the last recent_days. Anyone with attendance this month is in.
	"""
	if summary.activity_level in (ActivityLevel.CORE, ActivityLevel.ACTIVE):
		return True

	if summary.activity_level == ActivityLevel.INACTIVE and summary.last_attended is not None:
		cutoff = to_local(now, timezone_name) - datetime.timedelta(days=recent_days)
		if to_local(summary.last_attended, timezone_name) > cutoff:
			return True

	return summary.month_event_count > 0


def build_roster(summaries: list[AttendanceSummary], now: datetime.datetime,
		directory: Optional[list] = None, context: Optional[ResolutionContext] = None,
		timezone_name=constants.DEFAULT_TIMEZONE) -> list[RosterEntry]:
	"""
	Build the active roster from summaries, sorted by last name.

	Args:
		summaries: Summaries (usually re-read from the stats table)
		now: Reference time for the recency window
		directory: Optional DirectoryRows; their first/last names win over split display names
		context: Resolution context used for summaries that carry no id

	Raises:
		ValueError: If a summary has no id and no context was supplied
	"""
	directory_names = {}
	for row in directory or []:
		key = normalize_name(row.full_name)
		if key and key not in directory_names:
			directory_names[key] = (row.first_name, row.last_name)

	entries = []
	for summary in summaries:
		key = normalize_name(summary.display_name)
		if not key:
			continue
		if not include_in_roster(summary, now, timezone_name=timezone_name):
			continue

		identity_id = summary.identity_id
		if identity_id is None:
			if context is None:
				raise ValueError(f"summary for '{summary.display_name}' has no id and no resolution context was given")
			identity_id = resolve(key, context)

		first_name, last_name = split_full_name(summary.display_name)
		dir_first, dir_last = directory_names.get(key, ("", ""))
		entries.append(RosterEntry(
			identity_id=identity_id,
			full_name=summary.display_name.strip(),
			first_name=dir_first or first_name,
			last_name=dir_last or last_name,
		))

	entries.sort(key=lambda e: (e.last_name.lower(), e.first_name.lower(), e.identity_id))
	logger.info(f"Roster built with {len(entries)} of {len(summaries)} people")
	return entries
