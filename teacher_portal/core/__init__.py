"""
Teacher Portal - Core Module

This module contains configuration, the HTTP client, caching, security and
the error taxonomy.
"""

from teacher_portal.core.config import get_settings, settings
from teacher_portal.core.exceptions import (
    AuthError,
    InvalidTransition,
    LookupMiss,
    ParseError,
    PortalError,
    RemoteError,
)

__all__ = [
    "settings",
    "get_settings",
    "PortalError",
    "AuthError",
    "RemoteError",
    "LookupMiss",
    "ParseError",
    "InvalidTransition",
]
