"""ISO-8601 helpers shared by the store, the mapper and the reconciler."""

from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone
from typing import TypeVar

T = TypeVar("T")


def now_iso() -> str:
    """Current UTC time as e.g. '2025-01-01T12:00:00.000Z'."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Returns None for missing or unparsable input. Naive values are read as UTC.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def compare_timestamps(left: str | None, right: str | None) -> int:
    """Return 1 if left is newer, -1 if right is newer, 0 on a tie.

    A missing or unparsable timestamp is older than any real one.
    """
    left_dt = parse_timestamp(left)
    right_dt = parse_timestamp(right)
    if left_dt is None and right_dt is None:
        return 0
    if left_dt is None:
        return -1
    if right_dt is None:
        return 1
    if left_dt > right_dt:
        return 1
    if left_dt < right_dt:
        return -1
    return 0


def format_due_date(value: str | None) -> str | None:
    """Normalize a due date to 'YYYY-MM-DD', or None if it can't be read.

    Timestamps keep their own calendar date; no zone conversion is applied.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        pass
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date().isoformat()
    except ValueError:
        return None


TODAY = "Today"
TOMORROW = "Tomorrow"
NO_DATE = "No Date"


def date_label(value: str | None, today: date | None = None) -> str:
    """Heading for a due date: 'Today', 'Tomorrow', or e.g. 'Friday, January 31'."""
    normalized = format_due_date(value)
    if normalized is None:
        return NO_DATE
    due = date.fromisoformat(normalized)
    today = today or date.today()
    if due == today:
        return TODAY
    if due == today + timedelta(days=1):
        return TOMORROW
    return f"{due:%A}, {due:%B} {due.day}"


def group_tasks_by_date(tasks: Iterable[T], today: date | None = None) -> list[tuple[str, str | None, list[T]]]:
    """Group items with a ``due_date`` under their date label.

    Returns (label, date, items) triples ordered Today, Tomorrow, then by date,
    with undated items last. Items keep their input order within a group.
    """
    groups: dict[str, tuple[str | None, list[T]]] = {}
    for task in tasks:
        label = date_label(task.due_date, today)
        due = None if label == NO_DATE else format_due_date(task.due_date)
        groups.setdefault(label, (due, []))[1].append(task)

    def rank(label: str) -> tuple[int, str]:
        due = groups[label][0]
        if label == TODAY:
            return (0, "")
        if label == TOMORROW:
            return (1, "")
        if due is None:
            return (3, "")
        return (2, due)

    return [(label, groups[label][0], groups[label][1]) for label in sorted(groups, key=rank)]
