"""
Teacher Portal - Models Module
"""

from teacher_portal.models.enums import LoadStatus, NavigationDepth, ResultType, SortDirection

__all__ = [
    "LoadStatus",
    "NavigationDepth",
    "ResultType",
    "SortDirection",
]
