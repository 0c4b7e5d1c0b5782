"""
Section Schemas

Section analytics: metadata, course columns and per-student rows.
"""

from typing import Annotated, Any, List, Optional

from pydantic import BeforeValidator, ConfigDict, Field, model_validator

from teacher_portal.schemas.base import UpstreamModel, canonicalize, empty_if_none


def section_name_of(section: Any) -> str:
    """
    Reduce a section reference to its name.
    
    Sections are referenced by name; some payloads hand over an object with
    ``section_name`` instead.
    """
    if isinstance(section, dict):
        return str(section.get("section_name") or section.get("name") or "")
    return str(section)


class SectionMetadata(UpstreamModel):
    name: Optional[str] = None
    total_students: int = 0
    total_courses: int = 0

    @model_validator(mode="before")
    @classmethod
    def _aliases(cls, raw: Any) -> Any:
        return canonicalize(raw, {"name": ("section_name", "name")})


class Course(UpstreamModel):
    """A course as listed for a section or for a student's batch."""
    
    course_id: str
    course_name: Optional[str] = None
    course_code: Optional[str] = None
    completion_rate: Optional[float] = None


class StudentCourseScore(UpstreamModel):
    course_id: str
    score: Optional[float] = None
    status: Optional[str] = None


class StudentRow(UpstreamModel):
    """
    One row of the section's student performance table.
    
    Extra upstream fields are kept: a selected row is carried into the
    student view as its initial identity.
    """
    
    model_config = ConfigDict(extra="allow")
    
    student_id: Optional[str] = None
    student_name: Optional[str] = None
    uni_reg_id: Optional[str] = None
    overall_progress: float = 0
    courses: Annotated[List[StudentCourseScore], BeforeValidator(empty_if_none)] = Field(
        default_factory=list
    )
    
    def course_score(self, course_id: str) -> Optional[StudentCourseScore]:
        """Cell of the course matrix for ``course_id``, if the student has one."""
        return next((c for c in self.courses if c.course_id == course_id), None)
    
    def matches(self, key: str) -> bool:
        return key in (self.student_id, self.uni_reg_id)


class SectionAnalytics(UpstreamModel):
    """Analytics for one section, fetched fresh on every selection."""
    
    metadata: SectionMetadata = Field(default_factory=SectionMetadata)
    course_performance: Annotated[List[Course], BeforeValidator(empty_if_none)] = Field(
        default_factory=list
    )
    student_performance: Annotated[List[StudentRow], BeforeValidator(empty_if_none)] = Field(
        default_factory=list
    )
    
    @model_validator(mode="before")
    @classmethod
    def _aliases(cls, raw: Any) -> Any:
        return canonicalize(raw, {"metadata": ("section_metadata", "metadata")})
