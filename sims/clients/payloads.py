"""Helpers for reading loosely-shaped backend documents."""

from datetime import date
from typing import Any, List, Optional


def parse_date(value: Any) -> Optional[date]:
    """Accepts dates, 'YYYY-MM-DD' and ISO timestamps; anything else is None."""
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def unwrap(data: Any, key: str) -> Any:
    """Backend endpoints sometimes wrap the payload: {"fees": [...]} instead of [...]."""
    if isinstance(data, dict) and isinstance(data.get(key), (dict, list)):
        return data[key]
    return data


def unwrap_list(data: Any, key: str) -> List[Any]:
    items = unwrap(data, key)
    return [item for item in items if isinstance(item, dict)] if isinstance(items, list) else []


def ref_id(value: Any) -> str:
    """Id of a reference that may be populated ({"_id": ...}) or bare."""
    if isinstance(value, dict):
        return str(value.get("_id") or value.get("id") or "")
    return str(value or "")
