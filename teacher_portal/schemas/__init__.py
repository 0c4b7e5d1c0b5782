"""
Teacher Portal - Schemas Module

Pydantic models for upstream payloads, requests and navigation views.
"""

from teacher_portal.schemas.attempt import (
    AttemptDetail,
    AttemptSummary,
    Submission,
    SubUnitQuery,
)
from teacher_portal.schemas.course import CourseCompletion, SubUnit, Unit
from teacher_portal.schemas.navigation import NavigationView
from teacher_portal.schemas.section import Course, SectionAnalytics, StudentRow
from teacher_portal.schemas.student import Identity
from teacher_portal.schemas.teacher import Teacher, TeacherLogin, TeacherResponse

__all__ = [
    # Teacher
    "Teacher",
    "TeacherLogin",
    "TeacherResponse",
    # Section
    "Course",
    "SectionAnalytics",
    "StudentRow",
    # Student
    "Identity",
    # Course structure
    "Unit",
    "SubUnit",
    "CourseCompletion",
    # Attempts
    "AttemptSummary",
    "AttemptDetail",
    "Submission",
    "SubUnitQuery",
    # Navigation
    "NavigationView",
]
