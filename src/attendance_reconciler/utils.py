import datetime
from zoneinfo import ZoneInfo
from attendance_reconciler.constants import OUTPUT_DATE_FORMAT, TIMESTAMP_FORMATS

# Spreadsheet serial dates count days from this epoch
SERIAL_EPOCH = datetime.datetime(1899, 12, 30)


def parse_timestamp(value):
	"""
	Parse a timestamp cell into a datetime.

	Accepts datetime/date objects, spreadsheet serial numbers and the string
	layouts listed in TIMESTAMP_FORMATS.

	Returns:
		datetime, or None if the value is not a valid calendar date
	"""
	if value is None:
		return None
	if isinstance(value, datetime.datetime):
		return value
	if isinstance(value, datetime.date):
		return datetime.datetime(value.year, value.month, value.day)
	if isinstance(value, bool):
		return None
	if isinstance(value, (int, float)):
		try:
			return SERIAL_EPOCH + datetime.timedelta(days=value)
		except (OverflowError, ValueError):
			return None

	text = str(value).strip()
	if not text:
		return None
	for fmt in TIMESTAMP_FORMATS:
		try:
			return datetime.datetime.strptime(text, fmt)
		except ValueError:
			continue
	try:
		return datetime.datetime.fromisoformat(text)
	except ValueError:
		return None


def to_local(when, timezone_name):
	"""
	Convert to naive wall-clock time in the given zone.

	Naive values are taken as already local and returned unchanged.
	"""
	if when.tzinfo is None:
		return when
	return when.astimezone(ZoneInfo(timezone_name)).replace(tzinfo=None)


def format_date(when, timezone_name):
	"""Serialize a date as MM/dd/yyyy in the given timezone. None becomes an empty string."""
	if when is None:
		return ""
	return to_local(when, timezone_name).strftime(OUTPUT_DATE_FORMAT)


def split_full_name(full_name):
	"""Split a full name into (first, last): first token, then everything after it."""
	parts = str(full_name or "").split()
	if not parts:
		return "", ""
	return parts[0], " ".join(parts[1:])
