"""
Result-Type Toggle & History Coordinator

A sub-unit's attempt history is shown for one result type at a time. The
history is never cached per type: selecting a sub-unit starts over at mcq,
and every toggle asks the backend again.
"""

from dataclasses import dataclass
from typing import List, Optional

import httpx

from teacher_portal.models.enums import ResultType
from teacher_portal.schemas.attempt import AttemptDetail, AttemptSummary, SubUnitQuery
from teacher_portal.services import gateway


DEFAULT_RESULT_TYPE = ResultType.MCQ


@dataclass(frozen=True)
class HistoryStats:
    attempt_count: int
    best_score: Optional[float]


def summarize(history: List[AttemptSummary]) -> HistoryStats:
    if not history:
        return HistoryStats(attempt_count=0, best_score=None)
    return HistoryStats(
        attempt_count=len(history),
        best_score=max(row.best_mark for row in history),
    )


def next_result_type(current: ResultType, requested: ResultType) -> Optional[ResultType]:
    """The type to fetch after a toggle, or None when nothing changes."""
    return None if requested == current else requested


def build_query(
    student_id: Optional[str],
    course_id: str,
    unit_id: str,
    sub_unit_id: str,
    result_type: ResultType,
    attempt: int = 1,
) -> SubUnitQuery:
    return SubUnitQuery(
        student_id=student_id or "",
        course_id=course_id,
        unit_id=unit_id,
        sub_unit_id=sub_unit_id,
        result_type=result_type,
        attempt=attempt,
    )


async def load_history(query: SubUnitQuery, client: httpx.AsyncClient) -> List[AttemptSummary]:
    """History rows for the query's result type. The first attempt is always requested."""
    return await gateway.fetch_attempt_history(query.model_copy(update={"attempt": 1}), client)


async def load_attempt(
    query: SubUnitQuery,
    summary: AttemptSummary,
    client: httpx.AsyncClient,
) -> Optional[AttemptDetail]:
    """Full detail of the attempt behind a history row."""
    return await gateway.fetch_attempt_detail(
        query.model_copy(update={"attempt": summary.attempt or 1}),
        client,
    )
