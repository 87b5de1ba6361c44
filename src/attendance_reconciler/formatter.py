import logging
from typing import Optional
from attendance_reconciler import constants
from attendance_reconciler.errors import UnparseableRow
from attendance_reconciler.identity import IdentityResolver, ResolutionContext
from attendance_reconciler.models import AttendanceEvent, EventLogRow, ServiceLogRow, SourceKind, SourceSet

# Attendance sources in the order rows are streamed through the resolver
ATTENDANCE_SOURCES = (SourceKind.EVENT_LOG, SourceKind.SERVICE_LOG)


class RecordFormatter:
	"""Reshapes tagged attendance rows into AttendanceEvents with resolved ids."""

	def __init__(self, resolver: Optional[IdentityResolver] = None, verbose: bool = False):
		self.resolver = resolver or IdentityResolver()
		self.skipped: list[UnparseableRow] = []
		self.logger = logging.getLogger("formatter")
		self.logger.setLevel(logging.DEBUG if verbose else logging.INFO)

	def format_events(self, sources: SourceSet, context: ResolutionContext) -> list[AttendanceEvent]:
		"""Resolve and reshape every attendance row, event log first, then service log."""
		events = []
		for kind in ATTENDANCE_SOURCES:
			for row in sources.rows_for(kind):
				event = self.format_row(row, context)
				if event is not None:
					events.append(event)

		self.logger.info(
			f"Formatted {len(events)} attendance records ({len(self.skipped)} skipped)"
		)
		return events

	def format_row(self, row, context: ResolutionContext) -> Optional[AttendanceEvent]:
		if not self.resolver.match_key(row.full_name):
			self._skip(row, "missing full name")
			return None
		if not isinstance(row, (EventLogRow, ServiceLogRow)):
			self._skip(row, f"unrecognized row type {type(row).__name__}")
			return None

		identity_id = self.resolver.resolve(row.full_name, context)

		if row.source == SourceKind.EVENT_LOG:
			return AttendanceEvent(
				identity_id=identity_id,
				full_name=row.full_name,
				event_name=row.event_name,
				event_id=row.event_id,
				first_name=row.first_name,
				last_name=row.last_name,
				email=row.email,
				phone=row.phone,
				form_sheet=row.form_sheet,
				role=row.role,
				timestamp=row.timestamp,
				source=SourceKind.EVENT_LOG,
				row_number=row.row_number,
			)

		# service log rows only carry who and when
		return AttendanceEvent(
			identity_id=identity_id,
			full_name=row.full_name,
			event_name=constants.SERVICE_EVENT_NAME,
			event_id=constants.SERVICE_EVENT_ID,
			first_name=row.first_name,
			last_name=row.last_name,
			email=row.email,
			timestamp=row.timestamp,
			source=SourceKind.SERVICE_LOG,
			row_number=row.row_number,
		)

	def _skip(self, row, reason):
		source = getattr(row, "source", None)
		source_name = source.value if isinstance(source, SourceKind) else "unknown"
		issue = UnparseableRow(source_name, getattr(row, "row_number", 0), reason, row=row)
		self.skipped.append(issue)
		self.logger.warning(f"Skipping {issue}")


def format_events(sources: SourceSet, context: ResolutionContext, resolver: Optional[IdentityResolver] = None):
	"""Module-level shortcut: format all attendance rows with a throwaway formatter."""
	return RecordFormatter(resolver).format_events(sources, context)
