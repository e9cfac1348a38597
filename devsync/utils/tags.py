"""Tag name normalization and parsing helpers."""
from __future__ import annotations

import json
from typing import Iterable, List, Optional, Union


def normalize_tag(name: Optional[str]) -> str:
    """Strip leading ``#`` characters, trim and lowercase a tag name."""
    if not name:
        return ""
    return str(name).strip().lstrip("#").strip().lower()


def normalize_tags(names: Iterable[Optional[str]]) -> List[str]:
    """Normalize a sequence of names, dropping blanks and duplicates (order kept)."""
    seen = set()
    result: List[str] = []
    for name in names:
        tag = normalize_tag(name)
        if tag and tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def parse_tags(raw: Union[str, Iterable[str], None]) -> List[str]:
    """Parse tags from a JSON array string, comma separated string, or iterable."""
    if raw is None:
        return []
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                loaded = json.loads(text)
            except ValueError:
                loaded = None
            if isinstance(loaded, list):
                return normalize_tags(str(item) for item in loaded if item is not None)
        return normalize_tags(text.split(","))
    return normalize_tags(raw)
