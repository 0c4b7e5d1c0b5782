"""
Portal Exceptions

Error taxonomy shared by the gateway, the aggregation engine and the
navigator. API routes translate these into HTTP responses.
"""

from typing import Any, Optional


class PortalError(Exception):
    """Base class for all portal errors."""


class AuthError(PortalError):
    """Invalid teacher credentials. No session is created."""

    def __init__(self, message: str = "Invalid Credentials"):
        super().__init__(message)
        self.message = message


class RemoteError(PortalError):
    """
    An upstream call failed.
    
    Raised for non-2xx responses, unreadable bodies, transport failures and
    envelopes that signal ``success: false``.
    """

    def __init__(self, operation: str, http_status: Optional[int], message: str):
        super().__init__(f"{operation} failed ({http_status}): {message}")
        self.operation = operation
        self.http_status = http_status
        self.message = message


class LookupMiss(PortalError):
    """No student matched a registration id."""

    def __init__(self, reg_id: Optional[str]):
        super().__init__(f"No student found for registration id {reg_id!r}")
        self.reg_id = reg_id


class ParseError(PortalError):
    """A numeric field in an upstream response could not be read."""

    def __init__(self, field: str, raw: Any):
        super().__init__(f"Cannot parse {field} from {raw!r}")
        self.field = field
        self.raw = raw


class InvalidTransition(PortalError):
    """A navigation action was dispatched at a depth that does not accept it."""

    def __init__(self, action: str, depth: str):
        super().__init__(f"{action} is not allowed at {depth}")
        self.action = action
        self.depth = depth
