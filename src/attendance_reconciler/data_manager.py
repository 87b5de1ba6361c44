"""
Data management module for the attendance reconciler.
Handles path management for the folder holding the source tables.
"""

from pathlib import Path
from typing import Dict
from attendance_reconciler import constants
from attendance_reconciler.errors import MissingSource

SOURCE_FILES = {
	"directory": constants.DIRECTORY_FILE,
	"event_log": constants.EVENT_LOG_FILE,
	"service_log": constants.SERVICE_LOG_FILE,
	"stats": constants.STATS_FILE,
}

REQUIRED_SOURCES = ("directory", "event_log", "service_log")


class DataManager:
	"""Locates the source tables of one data folder."""

	def __init__(self, data_root: str = constants.DEFAULT_DATA_PATH):
		"""
		Initialize DataManager with the data folder path.

		Args:
			data_root: Folder containing directory.csv, the attendance logs and the stats table
		"""
		self.data_root = Path(data_root)

	def get_source_path(self, source_name: str) -> Path:
		"""Get the path of a named source table."""
		try:
			return self.data_root / SOURCE_FILES[source_name]
		except KeyError:
			raise ValueError(f"Unknown source: {source_name}") from None

	@property
	def stats_path(self) -> Path:
		return self.get_source_path("stats")

	def require_sources(self) -> Dict[str, Path]:
		"""
		Check that every required source file exists.

		Returns:
			Dict of source name to path

		Raises:
			MissingSource: For the first required source that is absent
		"""
		if not self.data_root.is_dir():
			raise MissingSource("data folder", self.data_root)

		paths = {}
		for source_name in REQUIRED_SOURCES:
			path = self.get_source_path(source_name)
			if not path.exists():
				raise MissingSource(source_name, path)
			paths[source_name] = path
		return paths
