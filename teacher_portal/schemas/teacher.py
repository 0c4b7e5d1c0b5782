"""
Teacher Schemas

Pydantic models for teacher login and the session identity.
"""

from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, Field, model_validator

from teacher_portal.schemas.base import UpstreamModel, canonicalize, empty_if_none
from teacher_portal.schemas.section import section_name_of


class TeacherLogin(BaseModel):
    """Schema for the teacher login request."""
    
    uni_reg_id: str = Field(..., min_length=1, description="Teacher's university registration id")
    password: str = Field(..., min_length=1, description="Teacher's password")


class Teacher(UpstreamModel):
    """The authenticated teacher, as returned by the login endpoint."""
    
    name: Optional[str] = Field(None, description="Display name")
    uni_reg_id: Optional[str] = None
    assigned_sections: Annotated[List[str], BeforeValidator(empty_if_none)] = Field(
        default_factory=list,
        description="Section names this teacher may open",
    )
    
    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, raw: Any) -> Any:
        data = canonicalize(raw, {"name": ("teacher_name", "name")})
        if isinstance(data, dict) and isinstance(data.get("assigned_sections"), list):
            data["assigned_sections"] = [
                section_name_of(section) for section in data["assigned_sections"]
            ]
        return data


class TeacherResponse(BaseModel):
    """Schema returned by the auth endpoints."""
    
    teacher: Teacher
    message: str = ""
