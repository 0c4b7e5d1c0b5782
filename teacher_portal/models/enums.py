"""
Portal Enums

String enums shared by the schemas and the navigator.
"""

import enum


class ResultType(str, enum.Enum):
    """Assessment axis of a sub-unit."""
    MCQ = "mcq"
    CODING = "coding"


class SortDirection(str, enum.Enum):
    """Sort direction enumeration."""
    ASC = "asc"
    DESC = "desc"


class LoadStatus(str, enum.Enum):
    """State of one fetch group."""
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class NavigationDepth(str, enum.Enum):
    """Drill-down depth, shallowest first."""
    SECTION_LIST = "section_list"
    SECTION_DETAIL = "section_detail"
    STUDENT_SEARCH = "student_search"
    COURSE_LIST = "course_list"
    COURSE_DEEP_DIVE = "course_deep_dive"
    SUB_UNIT_HISTORY = "sub_unit_history"
    ATTEMPT_DETAIL = "attempt_detail"
