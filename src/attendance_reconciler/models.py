import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional
from attendance_reconciler import constants
from attendance_reconciler.errors import UnparseableRow
from attendance_reconciler.utils import format_date, parse_timestamp, split_full_name


class SourceKind(Enum):
	DIRECTORY = "directory"
	EVENT_LOG = "event_log"
	SERVICE_LOG = "service_log"
	STATS = "stats"


class ActivityLevel(Enum):
	CORE = "Core"
	ACTIVE = "Active"
	INACTIVE = "Inactive"
	UNKNOWN = ""  # both recent counters blank or invalid; not the same as inactive

	@classmethod
	def from_string(cls, value):
		value = str(value or "").strip().lower()
		for level in cls:
			if level.value.lower() == value:
				return level
		raise ValueError(f"Unknown activity level: {value}")


def _cell(values, index):
	"""Read a positional cell as trimmed text, blank when the row is short."""
	if index >= len(values) or values[index] is None:
		return ""
	value = values[index]
	if isinstance(value, str):
		return value.strip()
	return value


def _require_width(source, values, width, row_number):
	if len(values) < width:
		raise UnparseableRow(
			source.value, row_number,
			f"insufficient columns ({len(values)} found, expected at least {width})",
			row=list(values),
		)


# -- Tagged source rows --

@dataclass(frozen=True)
class DirectoryRow:
	source: ClassVar[SourceKind] = SourceKind.DIRECTORY

	raw_id: object
	full_name: str
	email: str = ""
	first_name: str = ""
	last_name: str = ""
	row_number: int = 0

	@staticmethod
	def from_csv(row: dict, row_number=0) -> "DirectoryRow":
		return DirectoryRow(
			raw_id=row.get("ID", ""),
			full_name=row.get("Full Name", ""),
			email=row.get("Email", ""),
			first_name=row.get("First Name", ""),
			last_name=row.get("Last Name", ""),
			row_number=row_number,
		)

	@staticmethod
	def from_values(values, row_number=0) -> "DirectoryRow":
		_require_width(SourceKind.DIRECTORY, values, 2, row_number)
		return DirectoryRow(
			raw_id=_cell(values, 0),
			full_name=str(_cell(values, 1)),
			email=str(_cell(values, 2)),
			first_name=str(_cell(values, 3)),
			last_name=str(_cell(values, 4)),
			row_number=row_number,
		)


@dataclass(frozen=True)
class ServiceLogRow:
	source: ClassVar[SourceKind] = SourceKind.SERVICE_LOG

	raw_id: object
	full_name: str
	first_name: str
	last_name: str
	timestamp: object
	status: str = ""
	email: str = ""
	notes: str = ""
	row_number: int = 0

	@staticmethod
	def from_csv(row: dict, row_number=0) -> "ServiceLogRow":
		return ServiceLogRow(
			raw_id=row.get("ID", ""),
			full_name=row.get("Full Name", ""),
			first_name=row.get("First Name", ""),
			last_name=row.get("Last Name", ""),
			timestamp=row.get("Timestamp", ""),
			status=row.get("Status", ""),
			email=row.get("Email", ""),
			notes=row.get("Notes", ""),
			row_number=row_number,
		)

	@staticmethod
	def from_values(values, row_number=0) -> "ServiceLogRow":
		_require_width(SourceKind.SERVICE_LOG, values, len(constants.SERVICE_LOG_CSV_FIELDS), row_number)
		return ServiceLogRow(
			raw_id=_cell(values, 0),
			full_name=str(_cell(values, 1)),
			first_name=str(_cell(values, 2)),
			last_name=str(_cell(values, 3)),
			timestamp=_cell(values, 4),
			status=str(_cell(values, 5)),
			email=str(_cell(values, 6)),
			notes=str(_cell(values, 7)),
			row_number=row_number,
		)


@dataclass(frozen=True)
class EventLogRow:
	source: ClassVar[SourceKind] = SourceKind.EVENT_LOG

	raw_id: object
	full_name: str
	event_name: str
	event_id: str
	first_name: str
	last_name: str
	email: str
	phone: str
	form_sheet: str
	role: str
	timestamp: object
	row_number: int = 0

	@staticmethod
	def from_csv(row: dict, row_number=0) -> "EventLogRow":
		return EventLogRow(
			raw_id=row.get("ID", ""),
			full_name=row.get("Full Name", ""),
			event_name=row.get("Event Name", ""),
			event_id=row.get("Event ID", ""),
			first_name=row.get("First Name", ""),
			last_name=row.get("Last Name", ""),
			email=row.get("Email", ""),
			phone=row.get("Phone", ""),
			form_sheet=row.get("Form Sheet", ""),
			role=row.get("Role", ""),
			timestamp=row.get("Timestamp", ""),
			row_number=row_number,
		)

	@staticmethod
	def from_values(values, row_number=0) -> "EventLogRow":
		_require_width(SourceKind.EVENT_LOG, values, len(constants.EVENT_LOG_CSV_FIELDS), row_number)
		return EventLogRow(
			raw_id=_cell(values, 0),
			full_name=str(_cell(values, 1)),
			event_name=str(_cell(values, 2)),
			event_id=str(_cell(values, 3)),
			first_name=str(_cell(values, 4)),
			last_name=str(_cell(values, 5)),
			email=str(_cell(values, 6)),
			phone=str(_cell(values, 7)),
			form_sheet=str(_cell(values, 8)),
			role=str(_cell(values, 9)),
			timestamp=_cell(values, 10),
			row_number=row_number,
		)


@dataclass
class SourceSet:
	"""All rows read for one run, one list per source."""

	directory: list = field(default_factory=list)
	event_log: list = field(default_factory=list)
	service_log: list = field(default_factory=list)

	def rows_for(self, kind: SourceKind) -> list:
		if kind == SourceKind.DIRECTORY:
			return self.directory
		elif kind == SourceKind.EVENT_LOG:
			return self.event_log
		elif kind == SourceKind.SERVICE_LOG:
			return self.service_log
		raise ValueError(f"No rows held for source: {kind}")


# -- Canonical records --

@dataclass(frozen=True)
class AttendanceEvent:
	"""One check-in in the canonical event-log shape, carrying its resolved id."""

	identity_id: int
	full_name: str
	event_name: str
	event_id: str
	first_name: str = ""
	last_name: str = ""
	email: str = ""
	phone: str = ""
	form_sheet: str = ""
	role: str = ""
	timestamp: object = None
	source: SourceKind = SourceKind.EVENT_LOG
	row_number: int = 0

	@property
	def is_service(self) -> bool:
		return constants.SERVICE_EVENT_NAME.lower() in str(self.event_name or "").lower()

	@property
	def is_volunteer(self) -> bool:
		return constants.VOLUNTEER_MARKER in str(self.role or "").lower()

	def to_row(self) -> list:
		return [
			self.identity_id, self.full_name, self.event_name, self.event_id,
			self.first_name, self.last_name, self.email, self.phone,
			self.form_sheet, self.role, self.timestamp,
		]


@dataclass
class AttendanceSummary:
	identity_id: Optional[int]
	display_name: str
	quarter_event_count: int = 0
	month_event_count: int = 0
	volunteer_count: int = 0
	last_attended: Optional[datetime.datetime] = None
	last_event_name: str = ""
	total_unique_events: int = 0
	activity_level: ActivityLevel = ActivityLevel.UNKNOWN
	recent_count: object = ""  # column K, maintained outside this engine

	@property
	def first_name(self):
		return split_full_name(self.display_name)[0]

	@property
	def last_name(self):
		return split_full_name(self.display_name)[1]

	def to_row(self, timezone_name) -> list:
		"""The fixed 10-column output row."""
		return [
			self.identity_id,
			self.display_name,
			self.first_name,
			self.last_name,
			self.quarter_event_count,
			self.month_event_count,
			self.volunteer_count,
			format_date(self.last_attended, timezone_name),
			self.last_event_name,
			self.total_unique_events,
		]

	def to_dict(self, timezone_name) -> dict:
		return {
			"id": self.identity_id,
			"full_name": self.display_name,
			"first_name": self.first_name,
			"last_name": self.last_name,
			"quarter_count": self.quarter_event_count,
			"month_count": self.month_event_count,
			"volunteer_count": self.volunteer_count,
			"last_attended": format_date(self.last_attended, timezone_name),
			"last_event": self.last_event_name,
			"total_unique_events": self.total_unique_events,
			"activity_level": self.activity_level.value,
		}

	@staticmethod
	def from_stats_values(values) -> "AttendanceSummary":
		"""Rebuild a summary from a persisted stats-table row (positional)."""
		def as_int(value):
			try:
				return int(float(value))
			except (TypeError, ValueError):
				return 0

		raw_id = _cell(values, constants.STATS_ID_COL)
		try:
			identity_id = int(raw_id) if str(raw_id).strip() else None
		except ValueError:
			identity_id = None

		try:
			activity = ActivityLevel.from_string(_cell(values, constants.STATS_ACTIVITY_COL))
		except ValueError:
			activity = ActivityLevel.UNKNOWN

		return AttendanceSummary(
			identity_id=identity_id,
			display_name=str(_cell(values, constants.STATS_NAME_COL)),
			quarter_event_count=as_int(_cell(values, constants.STATS_QUARTER_COL)),
			month_event_count=as_int(_cell(values, constants.STATS_MONTH_COL)),
			volunteer_count=as_int(_cell(values, constants.STATS_VOLUNTEER_COL)),
			last_attended=parse_timestamp(_cell(values, constants.STATS_LAST_DATE_COL)),
			last_event_name=str(_cell(values, constants.STATS_LAST_EVENT_COL)),
			total_unique_events=as_int(_cell(values, constants.STATS_TOTAL_COL)),
			activity_level=activity,
			recent_count=_cell(values, constants.STATS_RECENT_COL),
		)


@dataclass(frozen=True)
class RosterEntry:
	identity_id: int
	full_name: str
	first_name: str
	last_name: str

	def to_row(self) -> list:
		return [self.identity_id, self.full_name, self.first_name, self.last_name]
