"""
Field-level diffing for lease comp history.

Pure functions, no database access:

    compute_diffs(before, after, field_labels) -> [{"field_label", "old_value", "new_value"}]
    snapshot(record, field_labels)             -> read-only {field: value}
    removal_diffs(record, field_labels)        -> diffs for a record about to be deleted

Only keys listed in ``field_labels`` participate, and diffs come out in the
mapping's iteration order. Values are compared by their canonical string
form; ``None`` stays ``None`` and is never turned into the text ``"null"``.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType


def stringify(value):
    """Canonical string form of a field value; None stays None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return stringify(value.value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return str(value.quantize(Decimal(1)))
        return format(value.normalize(), "f")
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def snapshot(record, field_labels) -> MappingProxyType:
    """Capture the labelled fields of an ORM row or mapping.

    An empty or missing record yields an empty snapshot (the creation case).
    """
    if not record:
        return MappingProxyType({})
    if isinstance(record, dict) or hasattr(record, "keys"):
        return MappingProxyType({k: record.get(k) for k in field_labels})
    return MappingProxyType({k: getattr(record, k, None) for k in field_labels})


def compute_diffs(before, after, field_labels) -> list[dict]:
    """Diff two snapshots over the labelled fields.

    A diff is emitted for key ``k`` iff
    ``stringify(before.get(k)) != stringify(after.get(k))``.
    """
    before = before or {}
    after = after or {}
    diffs = []
    for key, label in field_labels.items():
        old = stringify(before.get(key))
        new = stringify(after.get(key))
        if old != new:
            diffs.append({"field_label": label, "old_value": old, "new_value": new})
    return diffs


def removal_diffs(record, field_labels) -> list[dict]:
    """Diffs for deleting *record*: every non-null field goes to None."""
    return compute_diffs(snapshot(record, field_labels), {}, field_labels)
