"""
Tests for attendance aggregation: instance keys, windows, most-recent selection.

All tests run against fixed_now (Sunday 2026-10-18, Q4).
"""

import datetime
import random
import pytest
from attendance_reconciler.aggregator import (
    AttendanceAggregator,
    aggregate,
    event_instance_key,
    event_name_from_key,
)


class TestInstanceKeys:

    def test_service_events_key_on_calendar_date(self, service_event):
        event = service_event(timestamp="2026-10-18 09:30")
        key = event_instance_key(event, datetime.datetime(2026, 10, 18, 9, 30))
        assert key == "Sunday Service|2026-10-18"

    def test_other_events_key_on_name_and_id(self, event_factory):
        event = event_factory(event_name="Retreat", event_id="R7")
        key = event_instance_key(event, datetime.datetime(2026, 3, 1))
        assert key == "Retreat|R7"

    def test_blank_name_and_id_fall_back(self, event_factory):
        event = event_factory(event_name="", event_id="")
        assert event_instance_key(event, datetime.datetime(2026, 3, 1)) == "UnknownEvent|UnknownID"

    def test_event_name_from_key(self):
        assert event_name_from_key("Sunday Service|2026-10-18") == "Sunday Service"
        assert event_name_from_key("Retreat|R7") == "Retreat"
        assert event_name_from_key("Men's Breakfast - Fall|B2") == "Men's Breakfast - Fall"


class TestWindows:

    def test_same_day_service_rows_count_once(self, service_event, fixed_now):
        events = [
            service_event(timestamp="2026-10-18 09:00"),
            service_event(timestamp="2026-10-18 11:00"),
        ]
        [summary] = aggregate(events, fixed_now)
        assert summary.month_event_count == 1
        assert summary.total_unique_events == 1

    def test_each_service_date_is_its_own_instance(self, service_event, fixed_now):
        events = [service_event(timestamp=f"2026-10-{day:02d}") for day in (4, 11, 18)]
        [summary] = aggregate(events, fixed_now)
        assert summary.month_event_count == 3
        assert summary.quarter_event_count == 3

    def test_quarter_and_month_windows(self, event_factory, fixed_now):
        events = [
            event_factory(event_id="A", timestamp="2026-10-02"),  # this month
            event_factory(event_id="B", timestamp="2026-11-01"),  # this quarter, later month
            event_factory(event_id="C", timestamp="2026-09-30"),  # last quarter
            event_factory(event_id="D", timestamp="2025-10-15"),  # same month, last year
        ]
        [summary] = aggregate(events, fixed_now)
        assert summary.month_event_count == 1
        assert summary.quarter_event_count == 2
        assert summary.total_unique_events == 4

    def test_repeated_event_counts_once(self, event_factory, fixed_now):
        events = [event_factory(timestamp="2026-10-01"), event_factory(timestamp="2026-10-02")]
        [summary] = aggregate(events, fixed_now)
        assert summary.total_unique_events == 1
        assert summary.month_event_count == 1

    def test_volunteer_count_is_rows_this_year(self, event_factory, fixed_now):
        events = [
            event_factory(event_id="A", role="Greeter Volunteer", timestamp="2026-02-01"),
            event_factory(event_id="A", role="VOLUNTEER", timestamp="2026-02-02"),
            event_factory(event_id="B", role="volunteer", timestamp="2025-12-31"),
            event_factory(event_id="C", role="Attendee", timestamp="2026-10-01"),
        ]
        [summary] = aggregate(events, fixed_now)
        assert summary.volunteer_count == 2

    def test_total_is_never_below_windowed_counts(self, event_factory, service_event, fixed_now):
        events = [
            service_event(timestamp="2026-10-11"),
            service_event(timestamp="2026-10-18"),
            event_factory(event_id="X", timestamp="2026-10-05"),
            event_factory(event_id="Y", timestamp="2024-01-05"),
        ]
        [summary] = aggregate(events, fixed_now)
        assert summary.total_unique_events >= summary.quarter_event_count
        assert summary.total_unique_events >= summary.month_event_count

    def test_aware_now_is_converted_to_the_run_timezone(self, event_factory):
        # 2026-11-01 03:00 UTC is still October 31st in New York
        now = datetime.datetime(2026, 11, 1, 3, 0, tzinfo=datetime.timezone.utc)
        aggregator = AttendanceAggregator(timezone_name="America/New_York")
        [summary] = aggregator.aggregate([event_factory(timestamp="2026-10-20")], now)
        assert summary.month_event_count == 1


class TestMostRecent:

    def test_latest_event_supplies_name_date_and_event(self, event_factory, service_event, fixed_now):
        events = [
            event_factory(full_name="J. Doe", event_name="Retreat", event_id="R1", timestamp="2026-10-03"),
            service_event(full_name="Jane Doe", timestamp="2026-10-18 10:00"),
            event_factory(full_name="Janie", event_name="Picnic", event_id="P1", timestamp="2026-06-01"),
        ]
        [summary] = aggregate(events, fixed_now)
        assert summary.display_name == "Jane Doe"
        assert summary.last_attended == datetime.datetime(2026, 10, 18, 10, 0)
        assert summary.last_event_name == "Sunday Service"

    def test_input_order_does_not_matter(self, event_factory, service_event, fixed_now):
        events = [
            event_factory(identity_id=1, event_id=str(i), timestamp=f"2026-{m:02d}-10", role=r)
            for i, (m, r) in enumerate([(1, "volunteer"), (4, ""), (10, ""), (10, "volunteer"), (12, "")])
        ]
        events += [service_event(identity_id=2, full_name=n, timestamp="2026-10-18") for n in ("B", "A")]
        expected = aggregate(events, fixed_now)

        rng = random.Random(7)
        for _ in range(5):
            shuffled = events[:]
            rng.shuffle(shuffled)
            assert aggregate(shuffled, fixed_now) == expected


class TestSkipping:

    def test_unparseable_timestamps_are_dropped_and_logged(self, event_factory, fixed_now, caplog):
        events = [
            event_factory(timestamp="not a date", row_number=9),
            event_factory(event_id="E2", timestamp="2026-10-01"),
        ]
        aggregator = AttendanceAggregator()
        with caplog.at_level("WARNING", logger="aggregator"):
            [summary] = aggregator.aggregate(events, fixed_now)

        assert summary.total_unique_events == 1
        assert len(aggregator.skipped) == 1
        assert aggregator.skipped[0].row_number == 9
        assert "invalid date" in caplog.text

    def test_identity_with_no_dated_events_gets_no_summary(self, event_factory, fixed_now):
        events = [event_factory(identity_id=5, timestamp=""), event_factory(identity_id=6)]
        summaries = aggregate(events, fixed_now)
        assert [s.identity_id for s in summaries] == [6]

    def test_summaries_are_ordered_by_id(self, event_factory, fixed_now):
        events = [event_factory(identity_id=i) for i in (30, 4, 17)]
        assert [s.identity_id for s in aggregate(events, fixed_now)] == [4, 17, 30]


class TestOutputRow:

    def test_ten_column_row(self, service_event, fixed_now):
        events = [service_event(identity_id=1001, full_name="Mary Ann Smith", timestamp="2026-10-18")]
        [summary] = aggregate(events, fixed_now)
        assert summary.to_row("UTC") == [
            1001, "Mary Ann Smith", "Mary", "Ann Smith", 1, 1, 0, "10/18/2026", "Sunday Service", 1,
        ]
