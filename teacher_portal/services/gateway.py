"""
Remote Data Gateway

One coroutine per upstream operation. Each issues a single request through
the session's client and normalizes the response envelope:

- ``success: false`` (or a bare ``error`` with no success flag) fails the call;
- ``data`` may be an object, a list, or missing; callers get the shape they
  asked for.

Nothing here retries.
"""

import logging
from typing import Any, Callable, List, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from teacher_portal.core.config import settings
from teacher_portal.core.exceptions import AuthError, RemoteError
from teacher_portal.core.http_client import send_request
from teacher_portal.schemas.attempt import AttemptDetail, AttemptSummary, SubUnitQuery, history_from_payload
from teacher_portal.schemas.course import Unit
from teacher_portal.schemas.section import Course, SectionAnalytics
from teacher_portal.schemas.student import Identity
from teacher_portal.schemas.teacher import Teacher


logger = logging.getLogger(__name__)

T = TypeVar("T")

# encodeURIComponent leaves these unescaped
PATH_SAFE = "!*'()"


# ============== Upstream Paths ==============

TEACHER_LOGIN_PATH = "/auth/teacher/login"
ADMIN_LOGIN_PATH = "/university/auth/login"
SECTION_ANALYTICS_PATH = "/university/admin/section-analytics/{section}"
COURSE_STRUCTURE_PATH = "/university/admin/course-structure/{course_id}"
UNIT_COMPLETION_PATH = "/auth/teacher/teacher/analytics/unit-completion"
SUB_UNIT_DETAILS_PATH = "/university/admin/analytics/sub-unit-details"
LOOKUP_PATH = "/lookup"
COURSES_PATH = "/courses/{batch_id}"


def backend_url(path: str) -> str:
    return settings.BACKEND_API_URL.rstrip("/") + path


def student_url(path: str) -> str:
    return settings.STUDENT_API_URL.rstrip("/") + path


# ============== Envelope Handling ==============

def _error_message(body: Any, fallback: str) -> str:
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if body.get(key):
                return str(body[key])
    return fallback


def unwrap_envelope(
    operation: str,
    response: httpx.Response,
    require_success: bool = False,
) -> Any:
    """
    Validate a response and return its payload.

    Args:
        operation: Operation name for errors.
        response: Upstream response.
        require_success: Fail unless the body carries ``success: true``.

    Returns:
        ``data`` from an object envelope (None when absent), or the body
        itself when the upstream answered with a bare list.

    Raises:
        RemoteError: On non-2xx status, a non-JSON body, or a failure envelope.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if not response.is_success:
        raise RemoteError(
            operation,
            response.status_code,
            _error_message(body, response.reason_phrase or "Request failed"),
        )

    if body is None:
        raise RemoteError(operation, response.status_code, "Response body is not JSON")

    if isinstance(body, list):
        return body

    if not isinstance(body, dict):
        raise RemoteError(operation, response.status_code, "Unexpected response shape")

    success = body.get("success")
    if success is False:
        raise RemoteError(operation, response.status_code, _error_message(body, "Request was not successful"))
    if success is None and body.get("error"):
        raise RemoteError(operation, response.status_code, _error_message(body, "Request failed"))
    if require_success and not success:
        raise RemoteError(operation, response.status_code, "Response did not confirm success")

    return body.get("data")


def as_list(value: Any) -> List[Any]:
    """Coerce a singular-or-list payload to a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


async def _call(
    client: httpx.AsyncClient,
    operation: str,
    method: str,
    url: str,
    require_success: bool = False,
    **kwargs: Any,
) -> Any:
    response = await send_request(client, operation, method, url, **kwargs)
    try:
        return unwrap_envelope(operation, response, require_success=require_success)
    except RemoteError as e:
        logger.warning("%s failed with status %s: %s", operation, e.http_status, e.message)
        raise


def _build(operation: str, build: Callable[[Any], T], data: Any) -> T:
    """Turn a payload into models. A payload that does not fit is a RemoteError."""
    try:
        return build(data)
    except ValidationError as e:
        logger.warning("%s returned a malformed payload: %s", operation, e)
        raise RemoteError(
            operation, None, f"Malformed response: {e.error_count()} invalid field(s)"
        ) from e


def _rows(model: Any, data: Any) -> List[Any]:
    return [model.model_validate(item) for item in as_list(data) if isinstance(item, dict)]


# ============== Authentication ==============

async def login_teacher(
    uni_reg_id: str,
    password: str,
    client: httpx.AsyncClient,
) -> Teacher:
    """
    Authenticate a teacher. Upstream cookies land in ``client``.

    Args:
        uni_reg_id: Teacher's registration id.
        password: Teacher's password.
        client: The new session's client.

    Returns:
        Teacher: The authenticated teacher.

    Raises:
        AuthError: If the upstream rejected the credentials.
        RemoteError: If the login service could not be reached.
    """
    url = backend_url(TEACHER_LOGIN_PATH)
    response = await send_request(
        client, "login", "POST", url,
        json={"uni_reg_id": uni_reg_id, "password": password},
    )
    try:
        body = response.json()
    except ValueError:
        body = None

    if not response.is_success or not isinstance(body, dict) or not body.get("success"):
        raise AuthError(_error_message(body, "Invalid Credentials"))

    teacher_data = body.get("teacher") or body.get("data") or {}
    return _build("login", Teacher.model_validate, teacher_data)


async def login_admin(email: str, password: str, client: httpx.AsyncClient) -> None:
    """Sign the session client into the administrative analytics service."""
    await _call(
        client, "admin_login", "POST", backend_url(ADMIN_LOGIN_PATH),
        json={"email": email, "password": password},
    )


# ============== Directory Lookups ==============

async def lookup_students(reg_id: str, client: httpx.AsyncClient) -> List[Identity]:
    """
    Look students up by (a fragment of) their registration id.

    The directory answers with one object or a list; this always returns a list.
    """
    data = await _call(
        client, "student_lookup", "POST", student_url(LOOKUP_PATH),
        json={"type": "uni_reg_id", "value": reg_id},
    )
    return _build("student_lookup", lambda d: _rows(Identity, d), data)


async def fetch_courses(batch_id: str, client: httpx.AsyncClient) -> List[Course]:
    """List the courses of a batch."""
    url = student_url(COURSES_PATH.format(batch_id=quote(str(batch_id), safe=PATH_SAFE)))
    data = await _call(client, "course_list", "GET", url)
    return _build("course_list", lambda d: _rows(Course, d), data)


# ============== Analytics ==============

async def fetch_section_analytics(section_name: str, client: httpx.AsyncClient) -> SectionAnalytics:
    """Fetch the analytics of one section."""
    url = backend_url(SECTION_ANALYTICS_PATH.format(section=quote(section_name, safe=PATH_SAFE)))
    data = await _call(client, "section_analytics", "GET", url, require_success=True)
    return _build("section_analytics", SectionAnalytics.model_validate, data or {})


async def fetch_course_structure(course_id: str, client: httpx.AsyncClient) -> List[Unit]:
    """Fetch a course's raw unit list. Duplicate unit names are left in place."""
    url = backend_url(COURSE_STRUCTURE_PATH.format(course_id=quote(str(course_id), safe=PATH_SAFE)))
    data = await _call(client, "course_structure", "GET", url)
    return _build("course_structure", lambda d: _rows(Unit, d), data)


async def fetch_unit_completion(
    student_id: Optional[str],
    course_id: str,
    unit_id: str,
    client: httpx.AsyncClient,
) -> dict:
    """
    Fetch one unit's completion payload.

    Returns:
        The raw ``data`` object; the aggregation engine reads the percentage.
    """
    data = await _call(
        client, "unit_completion", "POST", backend_url(UNIT_COMPLETION_PATH),
        require_success=True,
        json={"student_id": student_id, "course_id": course_id, "unit_id": unit_id},
    )
    return data if isinstance(data, dict) else {}


async def fetch_attempt_history(query: SubUnitQuery, client: httpx.AsyncClient) -> List[AttemptSummary]:
    """Fetch the attempt history of a sub-unit for one result type."""
    data = await _call(
        client, "sub_unit_history", "POST", backend_url(SUB_UNIT_DETAILS_PATH),
        json=query.model_dump(mode="json"),
    )
    return _build("sub_unit_history", history_from_payload, data)


async def fetch_attempt_detail(query: SubUnitQuery, client: httpx.AsyncClient) -> Optional[AttemptDetail]:
    """
    Fetch the full detail of one attempt.

    Returns:
        The attempt detail, or None when the upstream confirmed success but
        sent no detail.
    """
    data = await _call(
        client, "sub_unit_detail", "POST", backend_url(SUB_UNIT_DETAILS_PATH),
        require_success=True,
        json=query.model_dump(mode="json"),
    )
    if not isinstance(data, dict):
        return None
    return _build("sub_unit_detail", AttemptDetail.model_validate, data)
