"""
Attempt Schemas

Attempt history rows and the full telemetry of one attempt: overview,
completion stats, proctoring signals, device snapshots and submissions.
"""

from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, computed_field, model_validator

from teacher_portal.models.enums import ResultType
from teacher_portal.schemas.base import UpstreamModel, empty_if_none, first_present


class SubUnitQuery(BaseModel):
    """Request body of the sub-unit-details endpoint."""
    
    student_id: str
    course_id: str
    unit_id: str
    sub_unit_id: str
    result_type: ResultType = ResultType.MCQ
    attempt: int = Field(1, ge=1)


class AttemptSummary(BaseModel):
    """One row of a sub-unit's attempt history."""
    
    attempt: int = Field(..., ge=1, description="1-based attempt number")
    marks_obtained: Optional[float] = None
    total_marks: Optional[float] = None
    score: Optional[float] = None
    raw_detail: Dict[str, Any] = Field(default_factory=dict, exclude=True, description="Row as received")
    
    @property
    def best_mark(self) -> float:
        return self.score or self.marks_obtained or 0


class AttemptOverview(UpstreamModel):
    model_config = ConfigDict(extra="allow")
    
    attempt_number: Optional[int] = None
    total_score: Optional[float] = None
    max_score: Optional[float] = None
    status: Optional[str] = None
    duration_formatted: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    
    @property
    def passed(self) -> bool:
        return self.status == "Passed"


class CompletionStats(UpstreamModel):
    """Question counts; coding and mcq attempts report them under different names."""
    
    total_questions: int = 0
    questions_shown: int = 0
    submitted_count: int = 0
    completion_percentage: Optional[float] = None
    
    @model_validator(mode="before")
    @classmethod
    def _derive(cls, raw: Any) -> Any:
        if not isinstance(raw, dict):
            return raw
        return {
            "total_questions": first_present(raw, ("total_coding", "total_mcq")) or 0,
            "questions_shown": first_present(raw, ("total_coding_show", "total_mcq_show")) or 0,
            "submitted_count": raw.get("user_submitted_count") or 0,
            "completion_percentage": raw.get("question_completion_percentage"),
        }


class ProctoringMetrics(UpstreamModel):
    face_warnings: int = 0
    focus_lost_count: int = 0
    tab_switches: int = 0
    blocked_seconds: float = 0
    network_health: Optional[str] = None
    network_disconnects: int = 0
    
    @computed_field
    @property
    def flagged(self) -> bool:
        return any(
            count > 0
            for count in (
                self.face_warnings,
                self.focus_lost_count,
                self.tab_switches,
                self.network_disconnects,
            )
        )


class DeviceSnapshot(BaseModel):
    """Network and OS facts captured at the start or end of an attempt."""
    
    ip: Optional[str] = None
    mac: Optional[str] = None
    os: Optional[str] = None
    captured_at: Optional[str] = None
    
    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> Optional["DeviceSnapshot"]:
        if not config:
            return None
        interfaces = (config.get("network") or {}).get("interfaces") or []
        first = interfaces[0] if interfaces and isinstance(interfaces[0], dict) else {}
        os_info = config.get("os") or {}
        os_name = " ".join(
            str(part) for part in (os_info.get("platform"), os_info.get("release")) if part
        )
        return cls(
            ip=first.get("ip"),
            mac=first.get("mac"),
            os=os_name or None,
            captured_at=str(config["timestamp"]) if config.get("timestamp") is not None else None,
        )


class DebugConfigs(BaseModel):
    start_config: Optional[Dict[str, Any]] = None
    end_config: Optional[Dict[str, Any]] = None
    
    @computed_field
    @property
    def start(self) -> Optional[DeviceSnapshot]:
        return DeviceSnapshot.from_config(self.start_config)
    
    @computed_field
    @property
    def end(self) -> Optional[DeviceSnapshot]:
        return DeviceSnapshot.from_config(self.end_config)


class SubmissionOption(UpstreamModel):
    option: Optional[str] = None
    is_answer: bool = Field(False, validation_alias="isAnswer")
    is_selected: bool = False
    
    @property
    def is_correct(self) -> bool:
        return self.is_answer


class Submission(UpstreamModel):
    """A student's answer to one question of an attempt."""
    
    question_title: Optional[str] = None
    question_desc: Optional[str] = None
    options: Optional[List[SubmissionOption]] = None
    submitted_answer_index: Optional[int] = None
    submitted_answer_text: Optional[str] = None
    submitted_answer: Optional[str] = None
    submitted_code: Optional[str] = None
    score_obtained: float = 0
    max_score: Optional[float] = None
    
    @model_validator(mode="after")
    def _mark_selected(self) -> "Submission":
        for index, opt in enumerate(self.options or []):
            opt.is_selected = index == self.submitted_answer_index or (
                bool(self.submitted_answer_text) and opt.option == self.submitted_answer_text
            )
        return self
    
    @computed_field
    @property
    def answer_text(self) -> Optional[str]:
        return self.submitted_code or self.submitted_answer
    
    @property
    def earned_marks(self) -> bool:
        return self.score_obtained > 0


class AttemptDetail(UpstreamModel):
    """Full telemetry of one attempt."""
    
    overview: AttemptOverview = Field(default_factory=AttemptOverview)
    completion_stats: Optional[CompletionStats] = None
    proctoring_metrics: Optional[ProctoringMetrics] = None
    debug_configs: Optional[DebugConfigs] = None
    submissions: Annotated[List[Submission], BeforeValidator(empty_if_none)] = Field(
        default_factory=list
    )


def history_from_payload(data: Any) -> List[AttemptSummary]:
    """
    Turn a sub-unit-details payload into attempt history rows.
    
    The endpoint answers in three shapes: a single attempt's detail (has
    ``overview``), ``{history_list: [...]}``, or a bare list. Rows are keyed
    by attempt number; a repeated number keeps its first row.
    """
    if isinstance(data, dict) and isinstance(data.get("overview"), dict):
        overview = data["overview"]
        rows = [{
            "attempt": overview.get("attempt_number") or 1,
            "marks_obtained": overview.get("total_score"),
            "total_marks": overview.get("max_score"),
            "score": overview.get("total_score"),
            "raw_detail": data,
        }]
    else:
        if isinstance(data, dict):
            items = data.get("history_list") or []
        elif isinstance(data, list):
            items = data
        else:
            items = []
        rows = []
        for position, item in enumerate(items, start=1):
            if not isinstance(item, dict):
                continue
            rows.append({
                "attempt": first_present(item, ("attempt", "attempt_count")) or position,
                "marks_obtained": item.get("marks_obtained"),
                "total_marks": item.get("total_marks"),
                "score": item.get("score"),
                "raw_detail": item,
            })

    history: List[AttemptSummary] = []
    seen = set()
    for row in rows:
        summary = AttemptSummary(**row)
        if summary.attempt in seen:
            continue
        seen.add(summary.attempt)
        history.append(summary)
    return history
