"""
Student Identity Schema

A student reaches the detail view from a section row, from a search match,
or from a lookup. Each source names the same facts differently; Identity
folds them into one record.
"""

from typing import Any, Optional

from pydantic import model_validator

from teacher_portal.schemas.base import UpstreamModel, canonicalize


# Canonical field -> accepted upstream names, in precedence order
IDENTITY_ALIASES = {
    "student_id": ("student_id", "uuid"),
    "uni_reg_id": ("uni_reg_id", "reg_id"),
    "batch_id": ("batch_id", "batch"),
    "student_name": ("student_name", "name"),
}


class Identity(UpstreamModel):
    """Normalized student identity."""
    
    student_id: Optional[str] = None
    uni_reg_id: Optional[str] = None
    batch_id: Optional[str] = None
    batch_name: Optional[str] = None
    student_name: Optional[str] = None
    
    @model_validator(mode="before")
    @classmethod
    def _aliases(cls, raw: Any) -> Any:
        return canonicalize(raw, IDENTITY_ALIASES)
    
    @property
    def needs_lookup(self) -> bool:
        """True when the stable id or the batch reference is missing."""
        return not self.student_id or not self.batch_id
    
    @property
    def request_id(self) -> Optional[str]:
        """Identifier sent in analytics payloads."""
        return self.student_id or self.uni_reg_id
    
    @property
    def display_name(self) -> str:
        return self.student_name or self.uni_reg_id or "Unknown student"
    
    @property
    def batch_label(self) -> str:
        if self.batch_name:
            return self.batch_name
        # Long batch ids are opaque keys, not something to show a teacher
        if self.batch_id and len(self.batch_id) < 10:
            return self.batch_id
        return "N/A"
    
    def matches(self, key: str) -> bool:
        return key in (self.student_id, self.uni_reg_id)
