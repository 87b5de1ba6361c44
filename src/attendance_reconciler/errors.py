"""Error taxonomy for a reconciliation run.

Source-level and allocation errors abort the run. Row-level errors are
recorded on the run report and the row is dropped.
"""


class AttendanceError(Exception):
    """Base class for all reconciliation errors."""


class MissingSource(AttendanceError):
    """A required table is absent or unusable. Fatal to the run."""

    def __init__(self, source_name, path=None, detail=None):
        self.source_name = source_name
        self.path = path
        self.detail = detail
        message = f"required source '{source_name}' is missing"
        if path:
            message += f" ({path})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class UnparseableRow(AttendanceError):
    """A single row that cannot be used. Never fatal."""

    def __init__(self, source, row_number, reason, row=None):
        self.source = source
        self.row_number = row_number
        self.reason = reason
        self.row = row
        super().__init__(f"{source} row {row_number}: {reason}")


class AllocationExhausted(AttendanceError):
    """The id generator exceeded its collision bound, which points at a corrupted used-id set."""

    def __init__(self, counter, highest_seen, limit):
        self.counter = counter
        self.highest_seen = highest_seen
        self.limit = limit
        super().__init__(
            f"id counter {counter} exceeded {limit} consecutive collisions above highest seen id {highest_seen}"
        )
