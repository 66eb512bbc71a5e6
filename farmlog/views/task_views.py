"""
Read-only views over task records

Everything here is a pure function of its inputs: no I/O, and the input
sequences are never mutated.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from farmlog.models.task_record import DATE_FORMAT, VARIANT_LABELS, TaskRecordBase, TaskType

DateGroup = Tuple[str, List[TaskRecordBase]]


def sort_reverse_chronological(records: Iterable[TaskRecordBase]) -> List[TaskRecordBase]:
    """Newest date first; records sharing a date keep their input order"""
    # ISO dates order lexically; sorted(reverse=True) is still stable
    return sorted(records, key=lambda r: r.date, reverse=True)


def group_by_date(records: Iterable[TaskRecordBase]) -> List[DateGroup]:
    """
    Partition records into buckets keyed by exact date string

    Returns:
        (date, records) pairs, newest date first; each bucket keeps the
        relative order the records had in the input
    """
    buckets = {}
    for record in records:
        buckets.setdefault(record.date, []).append(record)
    return [(key, buckets[key]) for key in sorted(buckets, reverse=True)]


def filter_by_type(records: Iterable[TaskRecordBase], selector: Optional[str] = None) -> List[TaskRecordBase]:
    """All records when selector is empty, otherwise exact ``type`` matches"""
    if not selector:
        return list(records)
    if isinstance(selector, TaskType):
        selector = selector.value
    return [r for r in records if r.type == selector]


def filter_by_date(records: Iterable[TaskRecordBase], day: str) -> List[TaskRecordBase]:
    return [r for r in records if r.date == day]


def todays_tasks(records: Iterable[TaskRecordBase], today: Optional[date] = None) -> List[TaskRecordBase]:
    """
    Records logged for the local calendar day

    Plain string comparison against today's YYYY-MM-DD; no timezone
    normalization.
    """
    return filter_by_date(records, (today or date.today()).isoformat())


def recent_tasks(records: Sequence[TaskRecordBase], limit: int = 3) -> List[TaskRecordBase]:
    """The most recently logged records, latest first"""
    if limit <= 0:
        return []
    return list(reversed(records[-limit:]))


def history(records: Iterable[TaskRecordBase], selector: Optional[str] = None) -> List[DateGroup]:
    """Type-filtered records grouped by date, newest first"""
    return group_by_date(filter_by_type(records, selector))


def format_date_header(day: str, today: Optional[date] = None) -> str:
    """
    Heading for a history bucket

    'Today', 'Yesterday', or a long date such as 'Wednesday, May 1, 2024'.
    Unparseable keys are returned as-is.
    """
    today = today or date.today()
    if day == today.isoformat():
        return "Today"
    if day == (today - timedelta(days=1)).isoformat():
        return "Yesterday"
    try:
        parsed = datetime.strptime(day, DATE_FORMAT)
    except ValueError:
        return day
    return f"{parsed:%A}, {parsed:%B} {parsed.day}, {parsed.year}"


def variant_label(task_type: str) -> str:
    """Human label for a variant"""
    try:
        return VARIANT_LABELS[TaskType(task_type)]
    except ValueError:
        return task_type
