import csv
import logging
import re
from pathlib import Path
from attendance_reconciler import constants
from attendance_reconciler.errors import MissingSource, UnparseableRow
from attendance_reconciler.models import (
	AttendanceSummary, DirectoryRow, EventLogRow, ServiceLogRow, SourceSet
)

# -- Constants --

DIRECTORY_REQUIRED = ["ID", "Full Name"]
SERVICE_LOG_REQUIRED = ["ID", "Full Name", "Timestamp"]
EVENT_LOG_REQUIRED = ["ID", "Full Name", "Event Name", "Event ID", "Role", "Timestamp"]


def canonical_header(name):
	"""Map a header cell onto its canonical column name using HEADER_ALIASES."""
	cleaned = name.strip()
	lowered = cleaned.lower()
	for canonical, aliases in constants.HEADER_ALIASES.items():
		if lowered in aliases:
			return canonical
	return cleaned

# -- CSV-related --

def load_csv(filename, required_columns=[], optional_columns_defaults=None):
	"""
	Load CSV file and validate required columns, trimming whitespace from headers and values.

	Headers are mapped onto canonical names first, so "person id" and "ID" both land on "ID".

	Args:
		filename: Path to CSV file
		required_columns: List of columns that must be present
		optional_columns_defaults: Dict of {column_name: default_value} for optional columns
	"""
	filename = Path(filename)
	with open(filename, newline='', encoding='utf-8') as csvfile:
		# Read the first line (fieldnames), trim whitespace
		reader = csv.reader(csvfile)
		try:
			raw_fieldnames = next(reader)
		except StopIteration:
			if required_columns:
				raise ValueError(f"missing required column(s): {set(required_columns)}")
			return []

		fieldnames = [canonical_header(name) for name in raw_fieldnames]

		# Check required columns
		missing = set(required_columns) - set(fieldnames)
		if required_columns and missing:
			raise ValueError(f"missing required column(s): {missing}")

		# Rebuild DictReader with cleaned headers
		dict_reader = csv.DictReader(csvfile, fieldnames=fieldnames)
		rows = []

		# Replace smart quotes with ASCII quotes and normalize whitespace
		def _normalize_text(s):
			s = s.replace("’", "'").replace("‘", "'").replace("“", '"').replace("”", '"')
			s = re.sub(r'\s+', ' ', s)
			return s

		for row in dict_reader:
			cleaned = {k: _normalize_text(v.strip()) if isinstance(v, str) else "" for k, v in row.items() if k is not None}

			# Add optional columns with defaults if missing
			if optional_columns_defaults:
				for col_name, default_value in optional_columns_defaults.items():
					if col_name not in cleaned or not cleaned[col_name]:
						cleaned[col_name] = default_value

			rows.append(cleaned)

		return rows

def _load_source(path, source_name, required_columns, row_type):
	"""Load one attendance source CSV into tagged rows. Missing file or columns is fatal."""
	path = Path(path)
	if not path.exists():
		raise MissingSource(source_name, path)
	try:
		rows = load_csv(path, required_columns)
	except ValueError as e:
		raise MissingSource(source_name, path, str(e)) from e

	# data rows start on line 2, after the header
	tagged = [row_type.from_csv(row, row_number=i + 2) for i, row in enumerate(rows)]
	logging.info(f"Loaded {len(tagged)} rows from {source_name} ({path})")
	return tagged

def load_directory(path):
	return _load_source(path, "directory", DIRECTORY_REQUIRED, DirectoryRow)

def load_service_log(path):
	return _load_source(path, "service_log", SERVICE_LOG_REQUIRED, ServiceLogRow)

def load_event_log(path):
	return _load_source(path, "event_log", EVENT_LOG_REQUIRED, EventLogRow)

def load_sources(directory_path, event_log_path, service_log_path) -> SourceSet:
	"""Read all three identity-bearing sources for a run."""
	return SourceSet(
		directory=load_directory(directory_path),
		event_log=load_event_log(event_log_path),
		service_log=load_service_log(service_log_path),
	)

def rows_from_values(values, row_type, skipped=None, has_header=True):
	"""
	Build tagged rows from positional cell values (as a spreadsheet API returns them).

	Rows with too few columns are recorded in skipped and dropped.
	"""
	start = 1 if has_header else 0
	tagged = []
	for offset, row in enumerate(values[start:]):
		row_number = offset + start + 1
		try:
			tagged.append(row_type.from_values(row, row_number=row_number))
		except UnparseableRow as issue:
			logging.warning(f"Skipping {issue}")
			if skipped is not None:
				skipped.append(issue)
	return tagged

# -- Stats table --

def load_stats_rows(path, required=False):
	"""
	Load the stats table as positional rows, header removed, padded to the full width.

	A missing file gives an empty list unless required is set.
	"""
	path = Path(path)
	if not path.exists():
		if required:
			raise MissingSource("stats", path)
		return []

	width = len(constants.STATS_CSV_FIELDS)
	with open(path, newline='', encoding='utf-8') as csvfile:
		reader = csv.reader(csvfile)
		try:
			next(reader)
		except StopIteration:
			return []
		rows = []
		for row in reader:
			if not any(cell.strip() for cell in row):
				continue
			cells = [cell.strip() for cell in row]
			cells.extend([""] * (width - len(cells)))
			rows.append(cells)
	return rows

def load_stats_summaries(path, required=True):
	"""Read the stats table back into AttendanceSummary objects."""
	return [AttendanceSummary.from_stats_values(row) for row in load_stats_rows(path, required=required)]

def save_stats_rows(rows, filename):
	"""Write positional stats rows under the standard header."""
	filename = Path(filename)
	filename.parent.mkdir(parents=True, exist_ok=True)
	with open(filename, "w", newline='', encoding='utf-8') as csvfile:
		writer = csv.writer(csvfile)
		writer.writerow(constants.STATS_CSV_FIELDS)
		writer.writerows(rows)
	logging.info(f"Wrote {len(rows)} rows to {filename}")

def save_stats_csv(summaries: list[AttendanceSummary], filename, timezone_name=constants.DEFAULT_TIMEZONE):
	"""Save summaries as the 10 output columns plus recent count and activity level, ordered by id."""
	ordered = sorted(summaries, key=lambda s: (s.identity_id is None, s.identity_id or 0))
	rows = [
		summary.to_row(timezone_name) + [summary.recent_count, summary.activity_level.value]
		for summary in ordered
	]
	save_stats_rows(rows, filename)
