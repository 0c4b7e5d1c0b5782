"""
Drill-Down Navigation State Machine

The teacher's position in the portal is one node of a tagged union:

    SectionList -> SectionDetail -> CourseList -> CourseDeepDive
                -> StudentSearch ->            -> SubUnitHistory -> AttemptDetail

Each node links to the node it was entered from. ``Navigator.dispatch`` is
the single transition function: it validates the action against the current
node, creates or updates nodes, and runs the fetches that fill them.

Every node owns a FetchScope. Leaving a node closes its scope, so a response
that arrives after the teacher moved on is discarded instead of overwriting
fresher state.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, ClassVar, Dict, List, Optional, Type, TypeVar, Union

import httpx

from teacher_portal.core.exceptions import InvalidTransition, RemoteError
from teacher_portal.models.enums import LoadStatus, NavigationDepth, ResultType
from teacher_portal.schemas.attempt import AttemptDetail, AttemptSummary, SubUnitQuery
from teacher_portal.schemas.course import SubUnit, Unit
from teacher_portal.schemas.navigation import (
    AttemptView,
    DeepDiveView,
    HistoryView,
    IdentityView,
    NavigationView,
    SearchView,
    SectionDetailView,
    StudentRowView,
    StudentView,
    UnitView,
)
from teacher_portal.schemas.section import Course, SectionAnalytics, StudentRow
from teacher_portal.schemas.student import Identity
from teacher_portal.services import aggregation, gateway, history
from teacher_portal.services.identity import resolve_identity, to_identity
from teacher_portal.services.scopes import FetchScope, StaleResult
from teacher_portal.services.sorting import SortConfig, request_sort, sort_students


logger = logging.getLogger(__name__)


N = TypeVar("N", bound="Node")


# ============== Nodes ==============

@dataclass(eq=False)
class Node:
    """One level of the drill-down path."""

    depth: ClassVar[NavigationDepth]

    parent: Optional["Node"]
    scope: FetchScope = field(init=False, repr=False)

    def __post_init__(self):
        self.scope = FetchScope(self.depth.value)

    def ancestor(self, node_type: Type[N]) -> Optional[N]:
        """Nearest node of ``node_type`` on the path to the root, self included."""
        node: Optional[Node] = self
        while node is not None:
            if isinstance(node, node_type):
                return node
            node = node.parent
        return None

    def path(self) -> List["Node"]:
        """Nodes from the root down to self."""
        nodes = []
        node: Optional[Node] = self
        while node is not None:
            nodes.append(node)
            node = node.parent
        return list(reversed(nodes))


@dataclass(eq=False)
class SectionListNode(Node):
    depth: ClassVar[NavigationDepth] = NavigationDepth.SECTION_LIST

    sections: List[str] = field(default_factory=list)


@dataclass(eq=False)
class SectionDetailNode(Node):
    depth: ClassVar[NavigationDepth] = NavigationDepth.SECTION_DETAIL

    section_name: str = ""
    analytics: Optional[SectionAnalytics] = None
    status: LoadStatus = LoadStatus.IDLE
    error: Optional[str] = None
    sort: SortConfig = field(default_factory=SortConfig)

    @property
    def rows(self) -> List[StudentRow]:
        return self.analytics.student_performance if self.analytics else []


@dataclass(eq=False)
class StudentSearchNode(Node):
    depth: ClassVar[NavigationDepth] = NavigationDepth.STUDENT_SEARCH

    query: str = ""
    results: List[Identity] = field(default_factory=list)
    status: LoadStatus = LoadStatus.IDLE
    error: Optional[str] = None


@dataclass(eq=False)
class CourseListNode(Node):
    """Entry of the student detail family; owns the reconciled identity."""

    depth: ClassVar[NavigationDepth] = NavigationDepth.COURSE_LIST

    identity: Identity = field(default_factory=Identity)
    courses: List[Course] = field(default_factory=list)
    status: LoadStatus = LoadStatus.IDLE
    error: Optional[str] = None


@dataclass(eq=False)
class CourseDeepDiveNode(Node):
    depth: ClassVar[NavigationDepth] = NavigationDepth.COURSE_DEEP_DIVE

    course: Course = None
    units: List[Unit] = field(default_factory=list)
    structure_status: LoadStatus = LoadStatus.IDLE
    unit_completions: Dict[str, int] = field(default_factory=dict)
    course_progress: int = 0
    completion_status: LoadStatus = LoadStatus.IDLE
    expanded_unit_id: Optional[str] = None
    error: Optional[str] = None

    def find_unit(self, unit_id: str) -> Optional[Unit]:
        return next((u for u in self.units if u.unit_id == unit_id), None)


@dataclass(eq=False)
class SubUnitHistoryNode(Node):
    depth: ClassVar[NavigationDepth] = NavigationDepth.SUB_UNIT_HISTORY

    unit_id: str = ""
    sub_unit: SubUnit = None
    result_type: ResultType = history.DEFAULT_RESULT_TYPE
    history: List[AttemptSummary] = field(default_factory=list)
    status: LoadStatus = LoadStatus.IDLE
    error: Optional[str] = None


@dataclass(eq=False)
class AttemptDetailNode(Node):
    depth: ClassVar[NavigationDepth] = NavigationDepth.ATTEMPT_DETAIL

    summary: AttemptSummary = None
    detail: Optional[AttemptDetail] = None
    status: LoadStatus = LoadStatus.IDLE
    error: Optional[str] = None


NavigationState = Union[
    SectionListNode,
    SectionDetailNode,
    StudentSearchNode,
    CourseListNode,
    CourseDeepDiveNode,
    SubUnitHistoryNode,
    AttemptDetailNode,
]


# ============== Actions ==============

@dataclass(frozen=True)
class SelectSection:
    section_name: str


@dataclass(frozen=True)
class SortStudents:
    key: str


@dataclass(frozen=True)
class SearchStudents:
    query: str


@dataclass(frozen=True)
class SelectStudent:
    student_key: str


@dataclass(frozen=True)
class SelectCourse:
    course_id: str


@dataclass(frozen=True)
class ToggleUnit:
    unit_id: str


@dataclass(frozen=True)
class SelectSubUnit:
    unit_id: str
    sub_unit_id: str


@dataclass(frozen=True)
class SetResultType:
    result_type: ResultType


@dataclass(frozen=True)
class SelectAttempt:
    attempt: int


@dataclass(frozen=True)
class GoBack:
    pass


Action = Union[
    SelectSection,
    SortStudents,
    SearchStudents,
    SelectStudent,
    SelectCourse,
    ToggleUnit,
    SelectSubUnit,
    SetResultType,
    SelectAttempt,
    GoBack,
]

# Depths at which the course tree is on screen
DEEP_DIVE_FAMILY = (CourseDeepDiveNode, SubUnitHistoryNode, AttemptDetailNode)


# ============== Navigator ==============

class Navigator:
    """
    Owns one teacher's navigation state.

    Mutated only through ``dispatch``. Each fetch writes into the node that
    started it, and only while that node is still on the active path.
    """

    def __init__(self, sections: List[str], client: httpx.AsyncClient):
        self.client = client
        self.root = SectionListNode(parent=None, sections=list(sections))
        self.current: NavigationState = self.root
        self._handlers: Dict[type, Callable[[Action], Awaitable[None]]] = {
            SelectSection: self._select_section,
            SortStudents: self._sort_students,
            SearchStudents: self._search_students,
            SelectStudent: self._select_student,
            SelectCourse: self._select_course,
            ToggleUnit: self._toggle_unit,
            SelectSubUnit: self._select_sub_unit,
            SetResultType: self._set_result_type,
            SelectAttempt: self._select_attempt,
            GoBack: self._go_back,
        }

    @property
    def depth(self) -> NavigationDepth:
        return self.current.depth

    async def dispatch(self, action: Action) -> NavigationState:
        """
        Apply one user action.

        Returns:
            The current node after the transition.

        Raises:
            InvalidTransition: If the action is not accepted at this depth.
        """
        handler = self._handlers.get(type(action))
        if handler is None:
            raise TypeError(f"Unknown navigation action: {action!r}")

        logger.debug("%s at %s", action, self.depth.value)
        try:
            await handler(action)
        except StaleResult:
            # The teacher navigated elsewhere while this action was loading
            pass
        return self.current

    async def wait_idle(self) -> None:
        """Wait for every in-flight fetch on the active path to settle."""
        while True:
            pending = [node.scope for node in self.current.path() if node.scope.pending]
            if not pending:
                return
            for scope in pending:
                await scope.wait()

    def close(self) -> None:
        """Cancel everything; the navigator is unusable afterwards."""
        for node in self.current.path():
            node.scope.close()

    # ============== Helpers ==============

    def _require(self, action: Action, *node_types: type) -> Node:
        if not isinstance(self.current, node_types):
            raise InvalidTransition(type(action).__name__, self.depth.value)
        return self.current

    def _enter(self, node: Node) -> None:
        self.current = node

    def _leave_to(self, target: Node) -> None:
        """Pop back to ``target``, closing the scope of every node left."""
        node = self.current
        while node is not None and node is not target:
            node.scope.close()
            node = node.parent
        self.current = target

    # ============== Section list family ==============

    async def _select_section(self, action: SelectSection) -> None:
        self._require(action, SectionListNode, StudentSearchNode)
        if action.section_name not in self.root.sections:
            raise InvalidTransition(f"SelectSection({action.section_name!r})", self.depth.value)

        self._leave_to(self.root)
        node = SectionDetailNode(
            parent=self.root,
            section_name=action.section_name,
            status=LoadStatus.LOADING,
        )
        self._enter(node)

        try:
            node.analytics = await node.scope.run(
                gateway.fetch_section_analytics(action.section_name, self.client)
            )
            node.status = LoadStatus.LOADED
        except RemoteError as e:
            node.analytics = None
            node.status = LoadStatus.FAILED
            node.error = e.message

    async def _sort_students(self, action: SortStudents) -> None:
        node = self._require(action, SectionDetailNode)
        node.sort = request_sort(node.sort, action.key)

    async def _search_students(self, action: SearchStudents) -> None:
        self._require(action, SectionListNode, StudentSearchNode)
        query = action.query.strip()
        if not query:
            return

        self._leave_to(self.root)
        node = StudentSearchNode(parent=self.root, query=query, status=LoadStatus.LOADING)
        self._enter(node)

        try:
            node.results = await node.scope.run(gateway.lookup_students(query, self.client))
            node.status = LoadStatus.LOADED
        except RemoteError as e:
            node.results = []
            node.status = LoadStatus.FAILED
            node.error = e.message

    # ============== Student detail family ==============

    async def _select_student(self, action: SelectStudent) -> None:
        origin = self._require(action, SectionDetailNode, StudentSearchNode)
        if isinstance(origin, SectionDetailNode):
            candidates = origin.rows
        else:
            candidates = origin.results
        carried = next((c for c in candidates if c.matches(action.student_key)), None)
        if carried is None:
            raise InvalidTransition(f"SelectStudent({action.student_key!r})", self.depth.value)

        node = CourseListNode(
            parent=origin,
            identity=to_identity(carried),
            status=LoadStatus.LOADING,
        )
        self._enter(node)

        node.identity = await node.scope.run(resolve_identity(node.identity, self.client))
        if not node.identity.batch_id:
            node.courses = []
            node.status = LoadStatus.LOADED
            return

        try:
            node.courses = await node.scope.run(
                gateway.fetch_courses(node.identity.batch_id, self.client)
            )
            node.status = LoadStatus.LOADED
        except RemoteError as e:
            node.courses = []
            node.status = LoadStatus.FAILED
            node.error = e.message

    async def _select_course(self, action: SelectCourse) -> None:
        course_list = self._require(action, CourseListNode)
        course = next((c for c in course_list.courses if c.course_id == action.course_id), None)
        if course is None:
            raise InvalidTransition(f"SelectCourse({action.course_id!r})", self.depth.value)

        node = CourseDeepDiveNode(
            parent=course_list,
            course=course,
            structure_status=LoadStatus.LOADING,
        )
        self._enter(node)

        try:
            raw_units = await node.scope.run(
                gateway.fetch_course_structure(course.course_id, self.client)
            )
        except RemoteError as e:
            node.units = []
            node.structure_status = LoadStatus.FAILED
            node.error = e.message
            return

        node.units = aggregation.dedupe_units(raw_units)
        node.structure_status = LoadStatus.LOADED

        # Percentages fill in behind the already-visible structure
        node.completion_status = LoadStatus.LOADING
        node.scope.spawn(self._aggregate(node, course_list.identity))

    async def _aggregate(self, node: CourseDeepDiveNode, identity: Identity) -> None:
        def record(unit_id: str, percentage: int) -> None:
            if not node.scope.closed:
                node.unit_completions[unit_id] = percentage

        result = await aggregation.aggregate_course_completion(
            identity.request_id,
            node.course.course_id,
            node.units,
            self.client,
            on_unit=record,
        )
        if node.scope.closed:
            return
        node.unit_completions = dict(result.unit_completions)
        node.course_progress = result.course_progress
        node.completion_status = LoadStatus.LOADED

    async def _toggle_unit(self, action: ToggleUnit) -> None:
        deep_dive = self._require(action, *DEEP_DIVE_FAMILY).ancestor(CourseDeepDiveNode)
        if deep_dive.find_unit(action.unit_id) is None:
            raise InvalidTransition(f"ToggleUnit({action.unit_id!r})", self.depth.value)
        if deep_dive.expanded_unit_id == action.unit_id:
            deep_dive.expanded_unit_id = None
        else:
            deep_dive.expanded_unit_id = action.unit_id

    async def _select_sub_unit(self, action: SelectSubUnit) -> None:
        deep_dive = self._require(action, *DEEP_DIVE_FAMILY).ancestor(CourseDeepDiveNode)
        unit = deep_dive.find_unit(action.unit_id)
        sub_unit = unit.find_sub_unit(action.sub_unit_id) if unit else None
        if sub_unit is None:
            raise InvalidTransition(
                f"SelectSubUnit({action.unit_id!r}, {action.sub_unit_id!r})", self.depth.value
            )

        self._leave_to(deep_dive)
        deep_dive.expanded_unit_id = unit.unit_id
        node = SubUnitHistoryNode(
            parent=deep_dive,
            unit_id=unit.unit_id,
            sub_unit=sub_unit,
            result_type=history.DEFAULT_RESULT_TYPE,
        )
        self._enter(node)
        await self._load_history(node)

    async def _set_result_type(self, action: SetResultType) -> None:
        node = self._require(action, SubUnitHistoryNode)
        result_type = history.next_result_type(node.result_type, action.result_type)
        if result_type is None:
            return

        node.scope.reset()
        node.result_type = result_type
        await self._load_history(node)

    async def _load_history(self, node: SubUnitHistoryNode) -> None:
        node.history = []
        node.error = None
        node.status = LoadStatus.LOADING
        try:
            node.history = await node.scope.run(
                history.load_history(self._query_for(node), self.client)
            )
            node.status = LoadStatus.LOADED
        except RemoteError as e:
            node.history = []
            node.status = LoadStatus.FAILED
            node.error = e.message

    async def _select_attempt(self, action: SelectAttempt) -> None:
        history_node = self._require(action, SubUnitHistoryNode)
        summary = next((row for row in history_node.history if row.attempt == action.attempt), None)
        if summary is None:
            raise InvalidTransition(f"SelectAttempt({action.attempt})", self.depth.value)

        node = AttemptDetailNode(parent=history_node, summary=summary, status=LoadStatus.LOADING)
        self._enter(node)

        try:
            node.detail = await node.scope.run(
                history.load_attempt(self._query_for(history_node), summary, self.client)
            )
            node.status = LoadStatus.LOADED
        except RemoteError as e:
            node.detail = None
            node.status = LoadStatus.FAILED
            node.error = e.message

    def _query_for(self, node: SubUnitHistoryNode) -> SubUnitQuery:
        identity = node.ancestor(CourseListNode).identity
        deep_dive = node.ancestor(CourseDeepDiveNode)
        return history.build_query(
            identity.request_id,
            deep_dive.course.course_id,
            node.unit_id,
            node.sub_unit.sub_unit_id,
            node.result_type,
        )

    # ============== Back ==============

    async def _go_back(self, action: GoBack) -> None:
        if self.current.parent is None:
            raise InvalidTransition("GoBack", self.depth.value)
        self._leave_to(self.current.parent)


# ============== View Building ==============

def identity_view(identity: Identity) -> IdentityView:
    return IdentityView(
        student_id=identity.student_id,
        uni_reg_id=identity.uni_reg_id,
        batch_id=identity.batch_id,
        student_name=identity.student_name,
        display_name=identity.display_name,
        batch_label=identity.batch_label,
    )


def build_view(navigator: Navigator) -> NavigationView:
    """Describe the active path for rendering."""
    view = NavigationView(depth=navigator.depth, sections=list(navigator.root.sections))

    for node in navigator.current.path():
        if isinstance(node, SectionDetailNode):
            columns = node.analytics.course_performance if node.analytics else []
            view.section = SectionDetailView(
                section_name=node.section_name,
                status=node.status,
                error=node.error,
                metadata=node.analytics.metadata if node.analytics else None,
                columns=columns,
                rows=[
                    StudentRowView(
                        student=row,
                        cells=[row.course_score(course.course_id) for course in columns],
                    )
                    for row in sort_students(node.rows, node.sort)
                ],
                sort_key=node.sort.key,
                sort_direction=node.sort.direction,
            )
        elif isinstance(node, StudentSearchNode):
            view.search = SearchView(
                query=node.query,
                status=node.status,
                error=node.error,
                results=[identity_view(match) for match in node.results],
            )
        elif isinstance(node, CourseListNode):
            view.student = StudentView(
                identity=identity_view(node.identity),
                status=node.status,
                error=node.error,
                courses=node.courses,
            )
        elif isinstance(node, CourseDeepDiveNode):
            inspected = navigator.current.ancestor(SubUnitHistoryNode)
            view.deep_dive = DeepDiveView(
                course=node.course,
                structure_status=node.structure_status,
                completion_status=node.completion_status,
                error=node.error,
                course_progress=node.course_progress,
                units=[
                    UnitView(
                        unit_id=unit.unit_id,
                        unit_name=unit.unit_name,
                        sub_units=unit.sub_units,
                        completion=node.unit_completions.get(unit.unit_id),
                        expanded=unit.unit_id == node.expanded_unit_id,
                    )
                    for unit in node.units
                ],
                inspected_sub_unit_id=inspected.sub_unit.sub_unit_id if inspected else None,
            )
        elif isinstance(node, SubUnitHistoryNode):
            stats = history.summarize(node.history)
            view.history = HistoryView(
                unit_id=node.unit_id,
                sub_unit_id=node.sub_unit.sub_unit_id,
                title=node.sub_unit.title,
                result_type=node.result_type,
                status=node.status,
                error=node.error,
                attempts=node.history,
                attempt_count=stats.attempt_count,
                best_score=stats.best_score,
            )
        elif isinstance(node, AttemptDetailNode):
            view.attempt = AttemptView(
                attempt=node.summary.attempt,
                status=node.status,
                error=node.error,
                detail=node.detail,
            )

    return view
