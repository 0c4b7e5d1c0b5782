"""
Sort utility for the section's student performance table.

Pure functions: safe to call on every render.
"""

from dataclasses import dataclass
from numbers import Number
from typing import Any, List, Sequence, Tuple

from teacher_portal.models.enums import SortDirection
from teacher_portal.schemas.section import StudentRow


DEFAULT_SORT_KEY = "overall_progress"


@dataclass(frozen=True)
class SortConfig:
    """Current sort key and direction of a table."""
    key: str = DEFAULT_SORT_KEY
    direction: SortDirection = SortDirection.ASC


def request_sort(current: SortConfig, key: str) -> SortConfig:
    """
    Next sort config after a click on column ``key``.
    
    The same key flips direction; a different key starts ascending.
    """
    if current.key == key:
        flipped = SortDirection.DESC if current.direction == SortDirection.ASC else SortDirection.ASC
        return SortConfig(key=key, direction=flipped)
    return SortConfig(key=key, direction=SortDirection.ASC)


def sort_value(value: Any) -> Tuple[int, Any]:
    """
    Comparable form of a cell value.
    
    Missing values rank lowest, then numbers (numerically), then strings
    (lexically); anything else compares by its string form.
    """
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, int(value))
    if isinstance(value, Number):
        return (1, value)
    return (2, str(value))


def _field(row: Any, key: str) -> Any:
    if isinstance(row, dict):
        return row.get(key)
    return getattr(row, key, None)


def sort_students(
    rows: Sequence[StudentRow],
    config: SortConfig,
) -> List[StudentRow]:
    """
    Return a new list of ``rows`` ordered by ``config``.
    
    The sort is stable in both directions: rows with equal keys keep their
    input order.
    """
    return sorted(
        rows,
        key=lambda row: sort_value(_field(row, config.key)),
        reverse=config.direction == SortDirection.DESC,
    )
