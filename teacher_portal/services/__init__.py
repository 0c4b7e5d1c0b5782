"""
Teacher Portal - Services Module

Business logic layer.
"""

from teacher_portal.services import gateway
from teacher_portal.services import aggregation
from teacher_portal.services import history
from teacher_portal.services import navigation
from teacher_portal.services import session_service

__all__ = [
    "gateway",
    "aggregation",
    "history",
    "navigation",
    "session_service",
]
