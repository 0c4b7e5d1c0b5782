"""
Navigation View Schemas

What a renderer needs to draw the current drill-down depth. Each block is
present only when its depth is on the active path.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from teacher_portal.models.enums import LoadStatus, NavigationDepth, ResultType, SortDirection
from teacher_portal.schemas.attempt import AttemptDetail, AttemptSummary
from teacher_portal.schemas.course import SubUnit
from teacher_portal.schemas.section import Course, SectionMetadata, StudentCourseScore, StudentRow


# ============== Request Bodies ==============

class SortRequest(BaseModel):
    key: str = Field(..., min_length=1, description="StudentRow field to sort by")


class SearchRequest(BaseModel):
    query: str = Field(..., description="Registration id or a fragment of it")


class ResultTypeRequest(BaseModel):
    result_type: ResultType


# ============== Views ==============

class IdentityView(BaseModel):
    student_id: Optional[str] = None
    uni_reg_id: Optional[str] = None
    batch_id: Optional[str] = None
    student_name: Optional[str] = None
    display_name: str
    batch_label: str


class StudentRowView(BaseModel):
    """A table row plus one cell per course column."""
    
    student: StudentRow
    cells: List[Optional[StudentCourseScore]] = Field(default_factory=list)


class SectionDetailView(BaseModel):
    section_name: str
    status: LoadStatus
    error: Optional[str] = None
    metadata: Optional[SectionMetadata] = None
    columns: List[Course] = Field(default_factory=list)
    rows: List[StudentRowView] = Field(default_factory=list)
    sort_key: str
    sort_direction: SortDirection


class SearchView(BaseModel):
    query: str
    status: LoadStatus
    error: Optional[str] = None
    results: List[IdentityView] = Field(default_factory=list)


class StudentView(BaseModel):
    identity: IdentityView
    status: LoadStatus
    error: Optional[str] = None
    courses: List[Course] = Field(default_factory=list)


class UnitView(BaseModel):
    unit_id: str
    unit_name: str
    sub_units: List[SubUnit] = Field(default_factory=list)
    completion: Optional[int] = Field(None, description="None until this unit's request settles")
    expanded: bool = False


class DeepDiveView(BaseModel):
    course: Course
    structure_status: LoadStatus
    completion_status: LoadStatus
    error: Optional[str] = None
    course_progress: int = 0
    units: List[UnitView] = Field(default_factory=list)
    inspected_sub_unit_id: Optional[str] = None


class HistoryView(BaseModel):
    unit_id: str
    sub_unit_id: str
    title: Optional[str] = None
    result_type: ResultType
    status: LoadStatus
    error: Optional[str] = None
    attempts: List[AttemptSummary] = Field(default_factory=list)
    attempt_count: int = 0
    best_score: Optional[float] = None


class AttemptView(BaseModel):
    attempt: int
    status: LoadStatus
    error: Optional[str] = None
    detail: Optional[AttemptDetail] = None


class NavigationView(BaseModel):
    """The whole active path, shallowest block first."""
    
    depth: NavigationDepth
    sections: List[str] = Field(default_factory=list)
    section: Optional[SectionDetailView] = None
    search: Optional[SearchView] = None
    student: Optional[StudentView] = None
    deep_dive: Optional[DeepDiveView] = None
    history: Optional[HistoryView] = None
    attempt: Optional[AttemptView] = None
