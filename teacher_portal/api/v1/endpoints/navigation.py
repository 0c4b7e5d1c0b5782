"""
Navigation Routes

One route per navigation action. Every route dispatches into the session's
Navigator and answers with the resulting NavigationView.
"""

from fastapi import APIRouter, HTTPException, status

from teacher_portal.api.deps import CurrentNavigator
from teacher_portal.core.exceptions import InvalidTransition
from teacher_portal.schemas.navigation import (
    NavigationView,
    ResultTypeRequest,
    SearchRequest,
    SortRequest,
)
from teacher_portal.services.navigation import (
    Action,
    GoBack,
    Navigator,
    SearchStudents,
    SelectAttempt,
    SelectCourse,
    SelectSection,
    SelectStudent,
    SelectSubUnit,
    SetResultType,
    SortStudents,
    ToggleUnit,
    build_view,
)


router = APIRouter(prefix="/navigation", tags=["Navigation"])


async def _apply(navigator: Navigator, action: Action) -> NavigationView:
    try:
        await navigator.dispatch(action)
    except InvalidTransition as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )
    return build_view(navigator)


@router.get("", response_model=NavigationView, summary="Current navigation view")
async def get_view(navigator: CurrentNavigator) -> NavigationView:
    return build_view(navigator)


@router.post(
    "/sections/{section_name}",
    response_model=NavigationView,
    summary="Open a section",
)
async def select_section(section_name: str, navigator: CurrentNavigator) -> NavigationView:
    """Open one of the teacher's assigned sections. Analytics are always refetched."""
    return await _apply(navigator, SelectSection(section_name))


@router.post("/sort", response_model=NavigationView, summary="Sort the student table")
async def sort_students(body: SortRequest, navigator: CurrentNavigator) -> NavigationView:
    """Same key flips the direction; a new key sorts ascending."""
    return await _apply(navigator, SortStudents(body.key))


@router.post("/search", response_model=NavigationView, summary="Search students")
async def search_students(body: SearchRequest, navigator: CurrentNavigator) -> NavigationView:
    return await _apply(navigator, SearchStudents(body.query))


@router.post(
    "/students/{student_key}",
    response_model=NavigationView,
    summary="Open a student",
)
async def select_student(student_key: str, navigator: CurrentNavigator) -> NavigationView:
    """
    Open a student from the section table or the search results.

    ``student_key`` is the row's student_id or uni_reg_id.
    """
    return await _apply(navigator, SelectStudent(student_key))


@router.post(
    "/courses/{course_id}",
    response_model=NavigationView,
    summary="Open a course deep dive",
)
async def select_course(course_id: str, navigator: CurrentNavigator) -> NavigationView:
    """
    Open a course of the current student.

    The response carries the course structure; unit completions keep
    arriving afterwards and show up on the next GET.
    """
    return await _apply(navigator, SelectCourse(course_id))


@router.post(
    "/units/{unit_id}/toggle",
    response_model=NavigationView,
    summary="Expand or collapse a unit",
)
async def toggle_unit(unit_id: str, navigator: CurrentNavigator) -> NavigationView:
    return await _apply(navigator, ToggleUnit(unit_id))


@router.post(
    "/units/{unit_id}/sub-units/{sub_unit_id}",
    response_model=NavigationView,
    summary="Inspect a sub-unit",
)
async def select_sub_unit(
    unit_id: str,
    sub_unit_id: str,
    navigator: CurrentNavigator,
) -> NavigationView:
    return await _apply(navigator, SelectSubUnit(unit_id, sub_unit_id))


@router.post(
    "/result-type",
    response_model=NavigationView,
    summary="Switch between mcq and coding results",
)
async def set_result_type(body: ResultTypeRequest, navigator: CurrentNavigator) -> NavigationView:
    return await _apply(navigator, SetResultType(body.result_type))


@router.post(
    "/attempts/{attempt}",
    response_model=NavigationView,
    summary="Open an attempt",
)
async def select_attempt(attempt: int, navigator: CurrentNavigator) -> NavigationView:
    return await _apply(navigator, SelectAttempt(attempt))


@router.post("/back", response_model=NavigationView, summary="Go back one level")
async def go_back(navigator: CurrentNavigator) -> NavigationView:
    return await _apply(navigator, GoBack())
