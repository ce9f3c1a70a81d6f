from datetime import date, datetime, timezone

from tasksync.timestamps import (
    compare_timestamps,
    date_label,
    format_due_date,
    group_tasks_by_date,
    now_iso,
    parse_timestamp,
)
from conftest import make_task


class TestParseTimestamp:
    def test_parses_z_suffix(self):
        parsed = parse_timestamp("2025-01-02T10:00:00.000Z")
        assert parsed == datetime(2025, 1, 2, 10, 0, tzinfo=timezone.utc)

    def test_converts_offsets_to_utc(self):
        parsed = parse_timestamp("2025-01-02T12:00:00+02:00")
        assert parsed == datetime(2025, 1, 2, 10, 0, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_timestamp("2025-01-02T10:00:00").tzinfo == timezone.utc

    def test_garbage_is_none(self):
        assert parse_timestamp("not a date") is None
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None


class TestCompareTimestamps:
    def test_newer_left(self):
        assert compare_timestamps("2025-01-02T00:00:00Z", "2025-01-01T00:00:00Z") == 1

    def test_newer_right(self):
        assert compare_timestamps("2025-01-01T00:00:00Z", "2025-01-02T00:00:00Z") == -1

    def test_equal_instants_in_different_notation(self):
        assert compare_timestamps("2025-01-01T00:00:00.000Z", "2025-01-01T02:00:00+02:00") == 0

    def test_missing_always_loses(self):
        assert compare_timestamps(None, "2025-01-01T00:00:00Z") == -1
        assert compare_timestamps("2025-01-01T00:00:00Z", "garbage") == 1

    def test_both_missing_tie(self):
        assert compare_timestamps(None, "garbage") == 0


class TestFormatDueDate:
    def test_plain_date(self):
        assert format_due_date("2025-01-31") == "2025-01-31"

    def test_timestamp_keeps_its_own_date(self):
        assert format_due_date("2025-01-31T23:30:00.000Z") == "2025-01-31"
        assert format_due_date("2025-01-31T23:30:00-05:00") == "2025-01-31"

    def test_invalid(self):
        assert format_due_date("tomorrow") is None
        assert format_due_date("2025-02-30") is None
        assert format_due_date(None) is None


def test_now_iso_is_utc_millis():
    value = now_iso()
    assert value.endswith("Z")
    assert len(value) == len("2025-01-01T00:00:00.000Z")
    assert parse_timestamp(value) is not None


THURSDAY = date(2025, 1, 30)


class TestDateLabel:
    def test_relative_days(self):
        assert date_label("2025-01-30", THURSDAY) == "Today"
        assert date_label("2025-01-31T09:00:00Z", THURSDAY) == "Tomorrow"

    def test_other_days_get_weekday_and_date(self):
        assert date_label("2025-02-03", THURSDAY) == "Monday, February 3"
        assert date_label("2025-01-28", THURSDAY) == "Tuesday, January 28"

    def test_missing_or_invalid(self):
        assert date_label(None, THURSDAY) == "No Date"
        assert date_label("someday", THURSDAY) == "No Date"


class TestGroupTasksByDate:
    def test_group_order(self):
        tasks = [
            make_task(id="none", due_date=None),
            make_task(id="later", due_date="2025-02-03"),
            make_task(id="tomorrow", due_date="2025-01-31"),
            make_task(id="overdue", due_date="2025-01-28"),
            make_task(id="today", due_date="2025-01-30"),
            make_task(id="bad", due_date="someday"),
        ]
        groups = group_tasks_by_date(tasks, THURSDAY)
        assert [label for label, _, _ in groups] == [
            "Today", "Tomorrow", "Tuesday, January 28", "Monday, February 3", "No Date",
        ]
        assert groups[3][1] == "2025-02-03"
        assert [t.id for t in groups[-1][2]] == ["none", "bad"]

    def test_same_day_keeps_input_order(self):
        tasks = [make_task(id="a", due_date="2025-01-30"), make_task(id="b", due_date="2025-01-30T18:00:00Z")]
        [(label, due, group)] = group_tasks_by_date(tasks, THURSDAY)
        assert (label, due) == ("Today", "2025-01-30")
        assert [t.id for t in group] == ["a", "b"]

    def test_empty(self):
        assert group_tasks_by_date([], THURSDAY) == []
