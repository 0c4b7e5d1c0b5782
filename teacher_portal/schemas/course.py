"""
Course Structure Schemas

Units and sub-units of a course, and the completion figures derived from
them.
"""

from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, Field, field_validator

from teacher_portal.schemas.base import UpstreamModel, empty_if_none


UNTITLED_UNIT = "Untitled Unit"


class SubUnit(UpstreamModel):
    """Smallest gradable piece of course content."""
    
    sub_unit_id: str
    title: Optional[str] = None


class Unit(UpstreamModel):
    """A unit of a course structure."""
    
    unit_id: str
    unit_name: str = UNTITLED_UNIT
    sub_units: Annotated[List[SubUnit], BeforeValidator(empty_if_none)] = Field(
        default_factory=list
    )
    
    @field_validator("unit_name", mode="before")
    @classmethod
    def _name_fallback(cls, value: Any) -> Any:
        return value or UNTITLED_UNIT
    
    def find_sub_unit(self, sub_unit_id: str) -> Optional[SubUnit]:
        return next((s for s in self.sub_units if s.sub_unit_id == sub_unit_id), None)


class CourseCompletion(BaseModel):
    """Result of one aggregation run over a course's units."""
    
    unit_completions: Dict[str, int] = Field(
        default_factory=dict,
        description="unit_id -> completion percentage (0..100)",
    )
    course_progress: int = Field(0, ge=0, le=100, description="Mean of unit completions")
