"""
Task record validation

Turns untyped field input from a form or a request body into a well-formed
task record, or rejects it with a typed ``ValidationError``. Pure functions,
no I/O.
"""

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from farmlog.errors import (
    ImmutableField,
    InvalidDate,
    InvalidFieldValue,
    InvalidVariant,
    MissingRequiredField,
    ValidationError,
)
from farmlog.models.task_record import (
    DATE_FORMAT,
    VARIANT_MODELS,
    TaskRecordBase,
    TaskType,
    to_camel,
)


def _lookup(data: Mapping, name: str) -> Any:
    """Read a value by wire (camelCase) or attribute (snake_case) name"""
    alias = to_camel(name)
    if alias in data:
        return data[alias]
    return data.get(name)


def _clean(value: Any, name: str) -> str:
    """Trim free text; absent becomes an empty string"""
    if value is None:
        return ""
    if isinstance(value, (dict, list, tuple, set)):
        raise InvalidFieldValue(f"{to_camel(name)} must be text", field=to_camel(name))
    return str(value).strip()


def parse_task_type(value: Any) -> str:
    """Return the variant name or raise InvalidVariant"""
    if isinstance(value, TaskType):
        return value.value
    if isinstance(value, str):
        try:
            return TaskType(value.strip()).value
        except ValueError:
            pass
    allowed = ", ".join(t.value for t in TaskType)
    raise InvalidVariant(f"Invalid task type '{value}'. Must be one of: {allowed}", field="type")


def parse_task_date(value: Any, today: Optional[date] = None, required: bool = False) -> str:
    """
    Normalize a calendar date to YYYY-MM-DD

    Args:
        value: Date string, ``date`` object, or None/blank
        today: Date used when value is absent (defaults to the local date)
        required: Reject an absent value instead of defaulting it

    Returns:
        ISO formatted date string
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise MissingRequiredField("date is required", field="date")
        return (today or date.today()).isoformat()

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), DATE_FORMAT).date().isoformat()
        except ValueError:
            pass

    raise InvalidDate(f"Invalid date '{value}': expected YYYY-MM-DD", field="date")


def _first_error(exc: PydanticValidationError) -> tuple:
    error = exc.errors()[0]
    loc = error.get("loc") or ("",)
    name = to_camel(str(loc[-1]))
    return name, f"{name}: {error.get('msg', 'invalid value')}"


def validate_task_record(
    data: Mapping,
    *,
    record_id: str = "",
    owner: Optional[str] = None,
    today: Optional[date] = None,
    require_date: bool = False,
) -> TaskRecordBase:
    """
    Build a task record from untyped input

    Identity (``id``/``owner``) is never taken from ``data``; callers assign
    it explicitly. Attributes that do not belong to the record's variant are
    dropped without error.

    Args:
        data: Raw field values keyed by wire or attribute name
        record_id: Identifier to stamp on the record
        owner: Owning user id, when known
        today: Default date for records submitted without one
        require_date: Treat a missing date as an error

    Returns:
        The variant model instance

    Raises:
        InvalidVariant, InvalidDate, MissingRequiredField, InvalidFieldValue
    """
    if not isinstance(data, Mapping):
        raise ValidationError("Task data must be an object")

    task_type = parse_task_type(_lookup(data, "type"))
    model = VARIANT_MODELS[task_type]

    field_value = _clean(_lookup(data, "field"), "field")
    if not field_value:
        raise MissingRequiredField("field is required", field="field")

    values: Dict[str, Any] = {
        "id": record_id,
        "owner": owner,
        "type": task_type,
        "date": parse_task_date(_lookup(data, "date"), today=today, required=require_date),
        "field": field_value,
        "notes": _clean(_lookup(data, "notes"), "notes"),
    }
    for name in model.variant_fields():
        values[name] = _clean(_lookup(data, name), name)

    try:
        return model(**values)
    except PydanticValidationError as e:
        name, message = _first_error(e)
        raise InvalidFieldValue(message, field=name)


def apply_patch(record: TaskRecordBase, patch: Mapping, today: Optional[date] = None) -> TaskRecordBase:
    """
    Merge a partial update into a record and re-validate it

    ``id`` and ``owner`` in the patch are ignored. The variant type cannot
    change.
    """
    if not isinstance(patch, Mapping):
        raise ValidationError("Task data must be an object")

    new_type = _lookup(patch, "type")
    if new_type is not None and new_type != record.type:
        raise ImmutableField("type cannot be changed after creation", field="type")

    merged = record.to_dict()
    for key, value in patch.items():
        wire_key = to_camel(key)
        if wire_key in ("id", "owner"):
            continue
        merged[wire_key] = value

    return validate_task_record(
        merged,
        record_id=record.id,
        owner=record.owner,
        today=today,
        require_date=True,
    )
