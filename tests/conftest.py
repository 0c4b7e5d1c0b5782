"""
Pytest Configuration and Fixtures

Provides a scriptable fake upstream (both proxied services) and sample
payloads for testing the Teacher Portal.
"""

import asyncio
import json
import os
from typing import Any, Callable, Dict, List, Tuple

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import httpx
import pytest

from teacher_portal.core.config import settings
from teacher_portal.core.http_client import build_client


BACKEND = settings.BACKEND_API_URL.rstrip("/")
STUDENT = settings.STUDENT_API_URL.rstrip("/")


# ==================== Fake Upstream ====================

class FakeUpstream:
    """
    Answers requests by (method, full URL without query).

    A route is a JSON-able body, an ``httpx.Response``, an exception to raise,
    or a callable (sync or async) receiving the request. Every request is
    recorded in ``calls``.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.calls: List[httpx.Request] = []

    def on(self, method: str, url: str, result: Any) -> "FakeUpstream":
        self.routes[(method.upper(), url)] = result
        return self

    def requests_to(self, url: str) -> List[httpx.Request]:
        return [r for r in self.calls if str(r.url).split("?")[0] == url]

    def bodies_to(self, url: str) -> List[dict]:
        return [json.loads(r.content or b"{}") for r in self.requests_to(url)]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        key = (request.method, str(request.url).split("?")[0])
        if key not in self.routes:
            return httpx.Response(404, json={"success": False, "message": f"No route {key}"})

        result = self.routes[key]
        if callable(result) and not isinstance(result, httpx.Response):
            result = result(request)
            if asyncio.iscoroutine(result):
                result = await result
        if isinstance(result, Exception):
            raise result
        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json=result)

    def client(self) -> httpx.AsyncClient:
        return build_client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client_factory(upstream: FakeUpstream) -> Callable[[], httpx.AsyncClient]:
    return upstream.client


# ==================== URL Fixtures ====================

def backend(path: str) -> str:
    return BACKEND + path


def student(path: str) -> str:
    return STUDENT + path


# ==================== Sample Payloads ====================

@pytest.fixture
def teacher_payload() -> dict:
    return {
        "success": True,
        "message": "Login successful",
        "teacher": {
            "teacher_name": "Dr. Meera Rao",
            "uni_reg_id": "T1001",
            "assigned_sections": ["edutest02", {"section_name": "CSE-B"}],
        },
    }


@pytest.fixture
def section_payload() -> dict:
    """Analytics for section edutest02: 2 courses, 3 students."""
    return {
        "success": True,
        "data": {
            "section_metadata": {
                "section_name": "edutest02",
                "total_students": 3,
                "total_courses": 2,
            },
            "course_performance": [
                {"course_id": "c-dsa", "course_name": "Data Structures", "completion_rate": 62.5},
                {"course_id": "c-os", "course_name": "Operating Systems", "completion_rate": 40},
            ],
            "student_performance": [
                {
                    "student_id": "s-1",
                    "student_name": "Bala",
                    "uni_reg_id": "edu1",
                    "overall_progress": 50,
                    "courses": [
                        {"course_id": "c-dsa", "score": 70, "status": "in_progress"},
                        {"course_id": "c-os", "score": 30, "status": "in_progress"},
                    ],
                },
                {
                    "student_name": "Anu",
                    "uni_reg_id": "edu2",
                    "overall_progress": 50,
                    "courses": [{"course_id": "c-os", "score": 55, "status": "in_progress"}],
                },
                {
                    "student_id": "s-3",
                    "student_name": "Chitra",
                    "uni_reg_id": "edu3",
                    "overall_progress": 10,
                    "courses": None,
                },
            ],
        },
    }


@pytest.fixture
def lookup_payload() -> dict:
    return {
        "data": {
            "uuid": "s-2",
            "reg_id": "edu2",
            "batch_id": "b-24",
            "name": "Anu Krishnan",
        },
    }


@pytest.fixture
def courses_payload() -> dict:
    return {
        "data": [
            {"course_id": "c-dsa", "course_name": "Data Structures", "course_code": "CS201"},
            {"course_id": "c-os", "course_name": "Operating Systems", "course_code": "CS202"},
        ],
    }


@pytest.fixture
def structure_payload() -> dict:
    return {
        "data": [
            {"unit_id": "u-1", "unit_name": "Arrays", "sub_units": []},
            {"unit_id": "u-2", "unit_name": "Trees", "sub_units": [{"sub_unit_id": "su-21", "title": "BST"}]},
            {
                "unit_id": "u-1b",
                "unit_name": "Arrays",
                "sub_units": [
                    {"sub_unit_id": "su-11", "title": "Two pointers"},
                    {"sub_unit_id": "su-12", "title": "Prefix sums"},
                ],
            },
        ],
    }


@pytest.fixture
def history_payload() -> dict:
    return {
        "success": True,
        "data": {
            "history_list": [
                {"attempt": 1, "marks_obtained": 4, "total_marks": 10, "score": 4},
                {"attempt": 2, "marks_obtained": 8, "total_marks": 10, "score": 8},
            ],
        },
    }


@pytest.fixture
def attempt_detail_payload() -> dict:
    return {
        "success": True,
        "data": {
            "overview": {
                "attempt_number": 2,
                "total_score": 8,
                "max_score": 10,
                "status": "Passed",
                "duration_formatted": "12m 4s",
            },
            "completion_stats": {
                "total_mcq": 10,
                "total_mcq_show": 10,
                "user_submitted_count": 9,
                "question_completion_percentage": 90,
            },
            "proctoring_metrics": {
                "face_warnings": 0,
                "focus_lost_count": 2,
                "tab_switches": 0,
                "blocked_seconds": 0,
                "network_health": "good",
                "network_disconnects": 0,
            },
            "debug_configs": {
                "start_config": {
                    "timestamp": "2024-03-01T10:00:00Z",
                    "network": {"interfaces": [{"ip": "10.0.0.7", "mac": "aa:bb:cc:dd:ee:ff"}]},
                    "os": {"platform": "linux", "release": "6.1"},
                },
                "end_config": None,
            },
            "submissions": [
                {
                    "question_title": "Binary search complexity",
                    "question_desc": "What is the worst case?",
                    "options": [
                        {"option": "O(n)", "isAnswer": False},
                        {"option": "O(log n)", "isAnswer": True},
                    ],
                    "submitted_answer_index": 1,
                    "submitted_answer": "O(log n)",
                    "score_obtained": 1,
                    "max_score": 1,
                },
            ],
        },
    }


def completion(value: Any) -> dict:
    return {"success": True, "data": {"overall_unit_completion": value}}
