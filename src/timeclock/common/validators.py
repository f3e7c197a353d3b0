from __future__ import annotations

from typing import Optional

from ..core.exceptions import MissingReason, ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if not isinstance(value, str) or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_reason(value: Optional[str], what: str = "reason") -> str:
    if not isinstance(value, str) or not value.strip():
        raise MissingReason(f"Please provide a {what}")
    return value.strip()
