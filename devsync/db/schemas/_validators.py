"""Shared field checks raising ValueError with user-facing messages."""
from typing import Any


def required_text(value: Any, label: str, max_length: int | None = None) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValueError(f"{label} is required")
    if max_length is not None and len(text) > max_length:
        raise ValueError(f"{label} is too long")
    return text


def optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
