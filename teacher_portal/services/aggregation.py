"""
Unit/Course Aggregation Engine

Turns a raw course structure into per-unit completion percentages and a
course progress figure:

1. units are deduplicated by name;
2. one completion request per unit is issued concurrently;
3. each response is parsed to an integer percentage, 0 on any failure;
4. course progress is the rounded mean over all units.

A unit whose request fails contributes 0 and never disturbs its siblings.
"""

import asyncio
import logging
import math
import re
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx

from teacher_portal.core.exceptions import ParseError, RemoteError
from teacher_portal.schemas.course import CourseCompletion, Unit
from teacher_portal.services import gateway


logger = logging.getLogger(__name__)


COMPLETION_FIELDS = ("overall_unit_completion", "completion_percentage")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def dedupe_units(units: Iterable[Unit]) -> List[Unit]:
    """
    Collapse units that share a name.
    
    The first occurrence keeps its position. It is replaced by a later
    duplicate only when it has no sub-units and the duplicate has some.
    """
    kept: Dict[str, Unit] = {}
    for unit in units:
        existing = kept.get(unit.unit_name)
        if existing is None or (not existing.sub_units and unit.sub_units):
            kept[unit.unit_name] = unit
    return list(kept.values())


def parse_completion(data: Dict[str, Any]) -> int:
    """
    Read a unit completion percentage from a response payload.
    
    Accepts numbers and strings with a leading integer ("75", "75.6%");
    fractional parts are truncated and the result is clamped to 0..100.
    
    Raises:
        ParseError: If neither completion field holds a readable number.
    """
    raw = None
    for field in COMPLETION_FIELDS:
        if data.get(field) is not None:
            raw = data[field]
            break

    if isinstance(raw, bool) or raw is None:
        raise ParseError("unit completion", raw)

    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and not math.isfinite(raw):
            raise ParseError("unit completion", raw)
        value = int(raw)
    else:
        match = _LEADING_INT.match(str(raw))
        if match is None:
            raise ParseError("unit completion", raw)
        value = int(match.group(1))

    return max(0, min(100, value))


def course_progress(completions: Iterable[int]) -> int:
    """Unweighted mean of unit completions, rounded half up; 0 for no units."""
    values = list(completions)
    if not values:
        return 0
    return math.floor(sum(values) / len(values) + 0.5)


async def fetch_unit_percentage(
    student_id: Optional[str],
    course_id: str,
    unit: Unit,
    client: httpx.AsyncClient,
) -> int:
    """Completion of one unit, 0 when the request or the parse fails."""
    try:
        data = await gateway.fetch_unit_completion(student_id, course_id, unit.unit_id, client)
    except RemoteError as e:
        logger.info("Unit %s completion unavailable: %s", unit.unit_id, e.message)
        return 0

    try:
        return parse_completion(data)
    except ParseError as e:
        logger.warning("Unit %s: %s", unit.unit_id, e)
        return 0


async def aggregate_course_completion(
    student_id: Optional[str],
    course_id: str,
    units: List[Unit],
    client: httpx.AsyncClient,
    on_unit: Optional[Callable[[str, int], None]] = None,
) -> CourseCompletion:
    """
    Fan out one completion request per unit and aggregate the results.
    
    Args:
        student_id: Identifier sent in each request.
        course_id: Course the units belong to.
        units: Deduplicated units.
        client: Session client.
        on_unit: Called as each unit settles, in arrival order.
        
    Returns:
        CourseCompletion once every request has settled.
    """
    async def settle(unit: Unit) -> int:
        percentage = await fetch_unit_percentage(student_id, course_id, unit, client)
        if on_unit is not None:
            on_unit(unit.unit_id, percentage)
        return percentage

    results = await asyncio.gather(
        *(settle(unit) for unit in units),
        return_exceptions=True,
    )

    percentages: List[int] = []
    for unit, result in zip(units, results):
        if isinstance(result, BaseException):
            if isinstance(result, asyncio.CancelledError):
                raise result
            logger.error("Unit %s completion crashed: %r", unit.unit_id, result)
            result = 0
        percentages.append(result)

    # Every deduplicated unit counts, even when two share an id
    return CourseCompletion(
        unit_completions={unit.unit_id: p for unit, p in zip(units, percentages)},
        course_progress=course_progress(percentages),
    )
