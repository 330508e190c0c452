"""Lightweight validation helpers for request payloads."""

from typing import Any, List

from utils.error_handling import ValidationError


def ensure_present(value: Any, field: str) -> None:
    """Raise ValidationError if value is falsy."""
    if value in (None, "", []):
        raise ValidationError(f"{field} is required")


def ensure_id_list(value: Any, field: str = "customerIds") -> List[str]:
    """Return a de-duplicated list of non-empty string ids, preserving order."""
    if not isinstance(value, list):
        raise ValidationError(f"{field} must be an array")
    seen = set()
    ids: List[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ValidationError(f"{field} must contain non-empty strings")
        if item not in seen:
            seen.add(item)
            ids.append(item)
    return ids
