"""Test fixtures and configuration for the attendance_reconciler test suite.

This module implements:
- A fixed wall clock (fixed_now) so windowed counts never depend on the real date
- Row factories for each tagged source (directory_row, event_row, service_row)
- An AttendanceEvent factory (event_factory)
- A data folder builder writing the three source CSVs (data_folder)
"""

import csv
import datetime
import pytest
from attendance_reconciler import constants
from attendance_reconciler.logging_config import cleanup_test_logs
from attendance_reconciler.models import (
    AttendanceEvent, DirectoryRow, EventLogRow, ServiceLogRow, SourceKind, SourceSet
)


def pytest_sessionfinish(session, exitstatus):
    cleanup_test_logs()


@pytest.fixture
def fixed_now():
    """Sunday October 18th 2026, mid-day. Q4, month 10."""
    return datetime.datetime(2026, 10, 18, 12, 0)


@pytest.fixture
def directory_row():
    def _create(raw_id="", full_name="Jane Doe", row_number=2, **kwargs):
        return DirectoryRow(raw_id=raw_id, full_name=full_name, row_number=row_number, **kwargs)
    return _create


@pytest.fixture
def event_row():
    """Factory for event log rows with sensible defaults."""
    def _create(raw_id="", full_name="Jane Doe", row_number=2, **kwargs):
        defaults = {
            'event_name': 'Youth Night',
            'event_id': 'E1',
            'first_name': '',
            'last_name': '',
            'email': '',
            'phone': '',
            'form_sheet': 'Form A',
            'role': 'Attendee',
            'timestamp': '2026-10-10 18:00',
        }
        defaults.update(kwargs)
        return EventLogRow(raw_id=raw_id, full_name=full_name, row_number=row_number, **defaults)
    return _create


@pytest.fixture
def service_row():
    """Factory for service log rows with sensible defaults."""
    def _create(raw_id="", full_name="Jane Doe", row_number=2, **kwargs):
        defaults = {
            'first_name': '',
            'last_name': '',
            'timestamp': '10/18/2026',
            'status': 'No',
            'email': '',
            'notes': '',
        }
        defaults.update(kwargs)
        return ServiceLogRow(raw_id=raw_id, full_name=full_name, row_number=row_number, **defaults)
    return _create


@pytest.fixture
def event_factory():
    """Factory for canonical attendance events."""
    def _create(identity_id=1, timestamp='2026-10-10 18:00', **kwargs):
        defaults = {
            'full_name': f'Person{identity_id}',
            'event_name': 'Youth Night',
            'event_id': 'E1',
            'role': '',
            'source': SourceKind.EVENT_LOG,
        }
        defaults.update(kwargs)
        return AttendanceEvent(identity_id=identity_id, timestamp=timestamp, **defaults)
    return _create


@pytest.fixture
def service_event(event_factory):
    """Factory for recurring-service events as the formatter emits them."""
    def _create(identity_id=1, timestamp='2026-10-18', **kwargs):
        return event_factory(
            identity_id=identity_id,
            timestamp=timestamp,
            event_name=constants.SERVICE_EVENT_NAME,
            event_id=constants.SERVICE_EVENT_ID,
            source=SourceKind.SERVICE_LOG,
            **kwargs,
        )
    return _create


@pytest.fixture
def empty_sources():
    return SourceSet()


def write_csv(path, header, rows):
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)
    return path


@pytest.fixture
def data_folder(tmp_path):
    """
    Builder for a data folder holding the three source CSVs.

    Usage:
        folder = data_folder(directory=[["1001", "Jane Doe"]], events=[...], services=[...])
    """
    def _build(directory=(), events=(), services=(), stats=None):
        folder = tmp_path / "data"
        folder.mkdir(exist_ok=True)
        write_csv(folder / constants.DIRECTORY_FILE, constants.DIRECTORY_CSV_FIELDS, directory)
        write_csv(folder / constants.EVENT_LOG_FILE, constants.EVENT_LOG_CSV_FIELDS, events)
        write_csv(folder / constants.SERVICE_LOG_FILE, constants.SERVICE_LOG_CSV_FIELDS, services)
        if stats is not None:
            write_csv(folder / constants.STATS_FILE, constants.STATS_CSV_FIELDS, stats)
        return folder
    return _build


@pytest.fixture
def sample_folder(data_folder):
    """A small congregation: two directory members, one walk-in, one unnamed row."""
    return data_folder(
        directory=[
            ["1001", "Jane Doe", "jane@example.com", "Jane", "Doe"],
            ["1042", "John Smith", "john@example.com", "John", "Smith"],
            ["BEL7", "Legacy Person", "", "", ""],
        ],
        events=[
            ["", "JANE DOE", "Youth Night", "E1", "Jane", "Doe", "", "", "Form A", "Volunteer", "2026-10-10 18:00"],
            ["", "New Person", "Youth Night", "E1", "New", "Person", "", "", "Form A", "Attendee", "2026-10-10 18:00"],
            ["", "", "Youth Night", "E1", "", "", "", "", "Form A", "Attendee", "2026-10-10 18:00"],
        ],
        services=[
            ["", "Jane Doe", "Jane", "Doe", "10/18/2026", "No", "jane@example.com", ""],
            ["1042", "John Smith", "John", "Smith", "07/05/2026", "No", "", ""],
            ["1042", "John Smith", "John", "Smith", "not a date", "No", "", ""],
        ],
    )
