"""
Aggregation Engine Unit Tests

Tests for unit deduplication, completion parsing and the per-unit fan-out.
"""

import asyncio
import itertools
import json

import httpx
import pytest

from conftest import backend, completion


UNIT_COMPLETION_URL = backend("/auth/teacher/teacher/analytics/unit-completion")


def _unit(unit_id, name, sub_units=()):
    from teacher_portal.schemas.course import Unit

    return Unit.model_validate({
        "unit_id": unit_id,
        "unit_name": name,
        "sub_units": [{"sub_unit_id": s, "title": s} for s in sub_units],
    })


class TestDedupeUnits:
    """Tests for unit deduplication by name."""

    def test_prefers_duplicate_with_sub_units(self):
        from teacher_portal.services.aggregation import dedupe_units

        empty = _unit("u-1", "Arrays")
        full = _unit("u-1b", "Arrays", ["su-1"])

        for units in ([empty, full], [full, empty]):
            result = dedupe_units(units)

            assert len(result) == 1
            assert result[0].unit_id == "u-1b"

    def test_keeps_first_seen_position(self):
        from teacher_portal.services.aggregation import dedupe_units

        units = [
            _unit("u-1", "Arrays"),
            _unit("u-2", "Trees", ["su-2"]),
            _unit("u-1b", "Arrays", ["su-1"]),
        ]

        result = dedupe_units(units)

        assert [u.unit_name for u in result] == ["Arrays", "Trees"]
        assert [u.unit_id for u in result] == ["u-1b", "u-2"]

    def test_first_non_empty_occurrence_wins(self):
        from teacher_portal.services.aggregation import dedupe_units

        result = dedupe_units([_unit("a", "Graphs", ["x"]), _unit("b", "Graphs", ["y"])])

        assert [u.unit_id for u in result] == ["a"]

    def test_unnamed_units_share_untitled_name(self):
        from teacher_portal.schemas.course import UNTITLED_UNIT, Unit
        from teacher_portal.services.aggregation import dedupe_units

        units = [
            Unit.model_validate({"unit_id": "x", "unit_name": None}),
            Unit.model_validate({"unit_id": "y", "unit_name": ""}),
        ]

        result = dedupe_units(units)

        assert len(result) == 1
        assert result[0].unit_name == UNTITLED_UNIT


class TestParseCompletion:
    """Tests for reading a completion percentage."""

    @pytest.mark.parametrize("data, expected", [
        ({"overall_unit_completion": 75}, 75),
        ({"completion_percentage": 40}, 40),
        ({"overall_unit_completion": 66.9}, 66),
        ({"overall_unit_completion": "75.6%"}, 75),
        ({"overall_unit_completion": " 12 "}, 12),
        ({"overall_unit_completion": 140}, 100),
        ({"overall_unit_completion": -5}, 0),
        ({"overall_unit_completion": None, "completion_percentage": 30}, 30),
    ])
    def test_valid_values(self, data, expected):
        from teacher_portal.services.aggregation import parse_completion

        assert parse_completion(data) == expected

    @pytest.mark.parametrize("data", [
        {},
        {"overall_unit_completion": "n/a"},
        {"overall_unit_completion": True},
        {"overall_unit_completion": float("nan")},
        {"completion_percentage": [50]},
    ])
    def test_unreadable_values_raise(self, data):
        from teacher_portal.core.exceptions import ParseError
        from teacher_portal.services.aggregation import parse_completion

        with pytest.raises(ParseError):
            parse_completion(data)


class TestCourseProgress:
    """Tests for the course progress mean."""

    def test_empty_is_zero(self):
        from teacher_portal.services.aggregation import course_progress

        assert course_progress([]) == 0

    def test_rounds_half_up(self):
        from teacher_portal.services.aggregation import course_progress

        assert course_progress([50, 51]) == 51
        assert course_progress([10, 20, 20]) == 17
        assert course_progress([100, 0, 0]) == 33


class TestAggregateCourseCompletion:
    """Tests for the concurrent per-unit fan-out."""

    @pytest.mark.asyncio
    async def test_aggregates_all_units(self, upstream):
        from teacher_portal.services.aggregation import aggregate_course_completion

        values = {"u-1": 80, "u-2": "45", "u-3": 20}

        def respond(request: httpx.Request):
            return completion(values[json.loads(request.content)["unit_id"]])

        upstream.on("POST", UNIT_COMPLETION_URL, respond)
        units = [_unit(uid, uid) for uid in values]

        async with upstream.client() as client:
            result = await aggregate_course_completion("s-1", "c-dsa", units, client)

        assert result.unit_completions == {"u-1": 80, "u-2": 45, "u-3": 20}
        assert result.course_progress == 48
        assert len(upstream.calls) == 3

    @pytest.mark.asyncio
    async def test_failed_unit_contributes_zero(self, upstream):
        from teacher_portal.services.aggregation import aggregate_course_completion

        def respond(request: httpx.Request):
            unit_id = json.loads(request.content)["unit_id"]
            if unit_id == "u-1":
                return httpx.Response(500, json={"message": "boom"})
            if unit_id == "u-2":
                return {"success": True, "data": {"overall_unit_completion": "pending"}}
            if unit_id == "u-3":
                raise httpx.ReadTimeout("slow")
            return completion(90)

        upstream.on("POST", UNIT_COMPLETION_URL, respond)
        units = [_unit(uid, uid) for uid in ("u-1", "u-2", "u-3", "u-4")]

        async with upstream.client() as client:
            result = await aggregate_course_completion("s-1", "c-dsa", units, client)

        assert result.unit_completions == {"u-1": 0, "u-2": 0, "u-3": 0, "u-4": 90}
        assert result.course_progress == 23

    @pytest.mark.asyncio
    async def test_all_failures_give_zero_progress(self, upstream):
        from teacher_portal.services.aggregation import aggregate_course_completion

        upstream.on("POST", UNIT_COMPLETION_URL, httpx.Response(502))
        units = [_unit("u-1", "A"), _unit("u-2", "B")]

        async with upstream.client() as client:
            result = await aggregate_course_completion("s-1", "c-dsa", units, client)

        assert result.course_progress == 0
        assert result.unit_completions == {"u-1": 0, "u-2": 0}

    @pytest.mark.asyncio
    async def test_units_sharing_an_id_each_count(self, upstream):
        from teacher_portal.services.aggregation import aggregate_course_completion

        values = {"u-1": 90, "u-2": 0}

        def respond(request: httpx.Request):
            return completion(values[json.loads(request.content)["unit_id"]])

        upstream.on("POST", UNIT_COMPLETION_URL, respond)
        units = [_unit("u-1", "Arrays"), _unit("u-1", "Trees"), _unit("u-2", "Graphs")]

        async with upstream.client() as client:
            result = await aggregate_course_completion("s-1", "c-dsa", units, client)

        assert result.course_progress == 60
        assert len(upstream.calls) == 3

    @pytest.mark.asyncio
    async def test_no_units_issues_no_requests(self, upstream):
        from teacher_portal.services.aggregation import aggregate_course_completion

        async with upstream.client() as client:
            result = await aggregate_course_completion("s-1", "c-dsa", [], client)

        assert result.course_progress == 0
        assert result.unit_completions == {}
        assert upstream.calls == []

    @pytest.mark.asyncio
    async def test_arrival_order_does_not_change_progress(self, upstream):
        from teacher_portal.services.aggregation import aggregate_course_completion

        values = {"u-1": 33, "u-2": 67, "u-3": 50}
        units = [_unit(uid, uid) for uid in values]
        results = set()

        for order in itertools.permutations(values):
            delays = {unit_id: position * 0.005 for position, unit_id in enumerate(order)}
            arrivals = []

            async def respond(request: httpx.Request):
                unit_id = json.loads(request.content)["unit_id"]
                await asyncio.sleep(delays[unit_id])
                return completion(values[unit_id])

            upstream.on("POST", UNIT_COMPLETION_URL, respond)

            async with upstream.client() as client:
                result = await aggregate_course_completion(
                    "s-1", "c-dsa", units, client,
                    on_unit=lambda unit_id, _: arrivals.append(unit_id),
                )

            assert arrivals == list(order)
            results.add(result.course_progress)

        assert results == {50}
