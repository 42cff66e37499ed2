"""
Whitelisting helpers for free-form user input.

Some input cannot be trusted even behind a placeholder: sort columns, sort
directions, or the set of fields a user may write. These helpers restrict such
input to an allowed set before it reaches a template.

Example:
    >>> order = white_list(request_args.get('order'), ['name', 'price'], 'name')
    >>> data = filter_mapping(form, ['title', 'body'])
    >>> db.query("INSERT INTO ?n SET ?u", 'posts', data)
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence


def white_list(value: Any, allowed: Sequence[Any], default: Optional[Any] = None) -> Any:
    """Return the allowed entry equal to ``value``, or ``default`` when none matches."""
    for candidate in allowed:
        if candidate == value:
            return candidate
    return default


def filter_mapping(data: Mapping[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    """Keep only the keys of ``data`` listed in ``allowed``, preserving order."""
    allowed_keys = set(allowed)
    return {key: value for key, value in data.items() if key in allowed_keys}


def filter_rows(rows: Iterable[Mapping[str, Any]], allowed: Iterable[str]) -> List[Dict[str, Any]]:
    """Apply filter_mapping to every row; meant for the ?k placeholder."""
    allowed_keys = list(allowed)
    return [filter_mapping(row, allowed_keys) for row in rows]
