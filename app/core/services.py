from typing import Any, Dict, Iterable

from app.core.exceptions import ValidationFailure
from app.core.models.base import utcnow


def apply_changes(obj: Any, changes: Dict[str, Any], required: Iterable[str] = ()) -> bool:
    """Copy the fields present in a PATCH body onto an ORM row.

    Only keys the client actually sent are in `changes` (model_dump(exclude_unset=True)),
    so omitted fields keep their stored value. updated_at is bumped on every call,
    even when the body repeats the stored values. Returns True when a field changed.
    """
    required = set(required)
    for key, value in changes.items():
        if value is None and key in required:
            raise ValidationFailure(f"{key} cannot be null")
    changed = False
    for key, value in changes.items():
        if getattr(obj, key) != value:
            setattr(obj, key, value)
            changed = True
    obj.updated_at = utcnow()
    return changed
