import logging
import math
from attendance_reconciler import constants
from attendance_reconciler.models import ActivityLevel

logger = logging.getLogger("activity")


def parse_counter(raw_value):
	"""
	Read a recent-activity counter cell.

	Returns:
		tuple: (value, valid). Blank or non-numeric cells give (0, False).
	"""
	if raw_value is None or isinstance(raw_value, bool):
		return 0, False
	if isinstance(raw_value, (int, float)):
		if isinstance(raw_value, float) and math.isnan(raw_value):
			return 0, False
		return raw_value, True

	text = str(raw_value).strip()
	if not text:
		return 0, False
	try:
		value = float(text)
	except ValueError:
		return 0, False
	if math.isnan(value):
		return 0, False
	return (int(value) if value.is_integer() else value), True


def classify(recent_e, recent_k) -> ActivityLevel:
	"""
	Label a person from two recent-window attendance counters.

	Counters default to 0 when blank or non-numeric. When both are, the
	level is UNKNOWN (blank), which is deliberately not INACTIVE.
	"""
	value_e, valid_e = parse_counter(recent_e)
	value_k, valid_k = parse_counter(recent_k)

	if not valid_e and not valid_k:
		return ActivityLevel.UNKNOWN

	combined = value_e + value_k
	if combined >= constants.CORE_THRESHOLD:
		return ActivityLevel.CORE
	elif combined >= constants.ACTIVE_THRESHOLD:
		return ActivityLevel.ACTIVE
	return ActivityLevel.INACTIVE


def update_activity_levels(rows, e_col=constants.STATS_QUARTER_COL, k_col=constants.STATS_RECENT_COL,
		target_col=constants.STATS_ACTIVITY_COL):
	"""
	Fill the activity column of positional stats rows in place.

	Rows shorter than the target column are padded with blanks.

	Returns:
		list of the ActivityLevel assigned to each row, in row order
	"""
	levels = []
	for index, row in enumerate(rows):
		while len(row) <= target_col:
			row.append("")
		raw_e = row[e_col]
		raw_k = row[k_col]
		level = classify(raw_e, raw_k)
		row[target_col] = level.value
		levels.append(level)
		logger.debug(f"Row {index + 1}: E='{raw_e}', K='{raw_k}' -> Activity: {level.value or 'blank'}")

	logger.info(f"Activity levels written for {len(levels)} rows")
	return levels
