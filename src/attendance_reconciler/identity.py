"""
Identity resolution: map display names to stable numeric ids across sources.

There is no central sequence for ids. Every run rebuilds the mapping from a
full snapshot of all sources:

1. Existing numeric ids are collected in a fixed source priority order
   (SOURCE_PRIORITY). The first id seen for a match key wins the mapping;
   every id seen, winning or not, is marked as used.
2. Names with no id anywhere get the lowest free id above every id seen.

All mutable state lives in a ResolutionContext built fresh per run and passed
explicitly, so two runs in one process never share assignments.

Matching is exact on the normalized name. Two different people whose names
normalize to the same key are treated as one identity.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional
from attendance_reconciler import constants
from attendance_reconciler.errors import AllocationExhausted
from attendance_reconciler.models import SourceKind, SourceSet
from attendance_reconciler.normalize import normalize_name

logger = logging.getLogger("identity")

# Sources in id precedence order: the authoritative directory first
SOURCE_PRIORITY = (SourceKind.DIRECTORY, SourceKind.EVENT_LOG, SourceKind.SERVICE_LOG)

_DIGITS = re.compile(r"^\d+$")


def extract_id(raw_value) -> Optional[int]:
	"""
	Return the id held in a raw cell, or None when the cell holds no usable id.

	Only non-negative integers and strings made purely of decimal digits count.
	Legacy codes with letters ("BEL123") are treated as absent, not decoded.
	"""
	if isinstance(raw_value, bool):
		return None
	if isinstance(raw_value, int):
		return raw_value if raw_value >= 0 else None
	if isinstance(raw_value, float):
		# spreadsheets hand back whole numbers as floats
		if raw_value.is_integer() and raw_value >= 0:
			return int(raw_value)
		return None
	if isinstance(raw_value, str):
		text = raw_value.strip()
		if not text:
			return None
		if not _DIGITS.match(text):
			logger.info(f"'{raw_value}' is not a plain numeric id; treating it as missing")
			return None
		return int(text)
	return None


@dataclass
class ResolutionContext:
	"""Mapping, used-id set and allocation counter for a single run."""

	mapping: dict = field(default_factory=dict)
	used_ids: set = field(default_factory=set)
	counter: Optional[int] = None
	generated: list = field(default_factory=list)

	@property
	def highest_seen(self) -> int:
		return max(self.used_ids, default=0)

	def lookup(self, match_key) -> Optional[int]:
		return self.mapping.get(match_key)


def build_mapping(observations: Iterable[tuple], context: Optional[ResolutionContext] = None) -> ResolutionContext:
	"""
	Fold (match_key, raw_id) observations into a resolution context.

	Observations must already be in precedence order. The first id seen for a
	key is kept; later ids for the same key still occupy the used-id space.
	"""
	context = context if context is not None else ResolutionContext()
	for match_key, raw_id in observations:
		numeric_id = extract_id(raw_id)
		if numeric_id is None:
			continue
		context.used_ids.add(numeric_id)
		if match_key and match_key not in context.mapping:
			context.mapping[match_key] = numeric_id
	return context


def next_id(context: ResolutionContext, max_collisions: int = constants.MAX_ID_COLLISIONS) -> int:
	"""Allocate the next unused id and mark it used."""
	if context.counter is None:
		context.counter = context.highest_seen + 1

	collisions = 0
	while context.counter in context.used_ids:
		context.counter += 1
		collisions += 1
		if collisions > max_collisions:
			logger.error(f"id counter {context.counter} ran past {max_collisions} collisions")
			raise AllocationExhausted(context.counter, context.highest_seen, max_collisions)

	new_id = context.counter
	context.used_ids.add(new_id)
	context.counter += 1
	return new_id


def resolve(match_key, context: ResolutionContext) -> int:
	"""
	Return the id for a match key, allocating one if the key is unmapped.

	Callers must skip empty keys. Call in a stable row order so reruns over
	unchanged input hand out the same new ids.
	"""
	if not match_key:
		raise ValueError("cannot resolve an empty match key")

	existing = context.mapping.get(match_key)
	if existing is not None:
		return existing

	new_id = next_id(context)
	context.mapping[match_key] = new_id
	context.generated.append((match_key, new_id))
	logger.info(f"Generated new id {new_id} for '{match_key}'")
	return new_id


class IdentityResolver:
	"""
	Builds resolution contexts from source rows.

	The normalizer is the matching strategy. The default is exact matching on
	the trimmed, lowercased full name.
	"""

	def __init__(
		self,
		normalizer: Callable[[object], str] = normalize_name,
		priority: tuple = SOURCE_PRIORITY,
	):
		self.normalizer = normalizer
		self.priority = tuple(priority)

	def match_key(self, name) -> str:
		return self.normalizer(name)

	def observations(self, sources: SourceSet):
		"""
		Yield (match_key, raw_id) pairs in precedence order.

		Unnamed directory rows are skipped. Unnamed attendance rows still
		reserve their id but never map a name.
		"""
		for kind in self.priority:
			for row in sources.rows_for(kind):
				key = self.match_key(row.full_name)
				if not key and kind == SourceKind.DIRECTORY:
					logger.warning(f"directory row {row.row_number}: skipping row with missing name")
					continue
				yield key, row.raw_id

	def build_context(self, sources: SourceSet) -> ResolutionContext:
		context = build_mapping(self.observations(sources))
		logger.info(
			f"Resolved {len(context.mapping)} named identities; "
			f"{len(context.used_ids)} ids in use, highest {context.highest_seen}"
		)
		return context

	def resolve(self, name, context: ResolutionContext) -> int:
		return resolve(self.match_key(name), context)


def resolve_identities(sources: SourceSet, resolver: Optional[IdentityResolver] = None):
	"""Build the run's (mapping, used_ids) from all sources. Returns a fresh context."""
	resolver = resolver or IdentityResolver()
	return resolver.build_context(sources)
