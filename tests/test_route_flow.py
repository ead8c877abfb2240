import asyncio

import pytest

from evroute.models.domain import RoutePoint
from evroute.services.routing.errors import PlanningFailed
from evroute.services.routing.flow import (
    Idle,
    Planning,
    Previewing,
    RouteFlow,
    TripForm,
    Validating,
    parse_trip_form,
)
from evroute.services.routing.planner import StubRoutePlanner
from evroute.services.routing.stitcher import SegmentStitcher

START = RoutePoint(41.0082, 28.9784, "start")
ANKARA = RoutePoint(39.9334, 32.8597, "destination")
IZMIR = RoutePoint(38.4237, 27.1428, "destination")


def _form(destination=ANKARA, **overrides) -> TripForm:
    values = {
        "start": START,
        "destination": destination,
        "max_range_km": "300",
        "current_soc_percent": "80",
        "reserve_percent": "10",
        "corridor_km": "2",
    }
    values.update(overrides)
    return TripForm(**values)


class CountingPlanner(StubRoutePlanner):
    def __init__(self, failures=(), **kwargs) -> None:
        super().__init__(**kwargs)
        self.failures = list(failures)
        self.calls = 0

    async def plan(self, request, token=None):
        self.calls += 1
        if self.failures and self.failures.pop(0):
            raise PlanningFailed("planner down")
        return await super().plan(request, token)


class GatedPlanner(StubRoutePlanner):
    """Holds every request until its gate is opened; ignores cancellation."""

    def __init__(self) -> None:
        super().__init__()
        self.gates: list[asyncio.Event] = []

    async def plan(self, request, token=None):
        gate = asyncio.Event()
        self.gates.append(gate)
        await gate.wait()
        return await super().plan(request)


async def _until(condition) -> None:
    while not condition():
        await asyncio.sleep(0)


def test_parse_trip_form_builds_plan_request():
    request = parse_trip_form(_form(current_soc_percent=" 75,5 ", max_stops="3"))

    assert request.vehicle.max_range_km == 300
    assert request.current_soc_percent == 75.5
    assert request.max_stops == 3
    assert request.end.latitude == ANKARA.latitude


def test_successful_calculation_walks_through_states(dummy_directions):
    states = []
    flow = RouteFlow(
        CountingPlanner(charging_stops=[RoutePoint(40.7, 30.4, "charging")]),
        SegmentStitcher(dummy_directions()),
        on_change=states.append,
    )

    preview = asyncio.run(flow.calculate(_form()))

    assert [type(state) for state in states] == [Validating, Planning, Previewing]
    assert states[1] == Planning(generation=1)
    assert isinstance(flow.state, Previewing)
    assert flow.state.preview is preview
    assert flow.preview is preview
    assert preview.route.source == "directions"
    assert preview.plan.summary.charging_stops == 1
    feature = preview.to_feature()
    assert feature["geometry"]["type"] == "LineString"
    assert feature["geometry"]["coordinates"][0] == [START.longitude, START.latitude]
    assert feature["geometry"]["coordinates"][-1] == [ANKARA.longitude, ANKARA.latitude]


@pytest.mark.parametrize("missing", ["start", "destination"])
def test_missing_endpoint_fails_without_network(dummy_directions, missing):
    planner = CountingPlanner()
    directions = dummy_directions()
    flow = RouteFlow(planner, SegmentStitcher(directions))

    result = asyncio.run(flow.calculate(_form(**{missing: None})))

    assert result is None
    assert isinstance(flow.state, Idle)
    assert "missing endpoints" in flow.state.message
    assert planner.calls == 0
    assert directions.calls == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_range_km": "abc"},
        {"max_range_km": "0"},
        {"current_soc_percent": "150"},
        {"current_soc_percent": ""},
        {"reserve_percent": "75"},
        {"max_stops": "2.5"},
    ],
)
def test_invalid_numbers_fail_without_network(dummy_directions, overrides):
    planner = CountingPlanner()
    flow = RouteFlow(planner, SegmentStitcher(dummy_directions()))

    asyncio.run(flow.calculate(_form(**overrides)))

    assert isinstance(flow.state, Idle)
    assert flow.state.message.startswith("invalid trip parameters")
    assert planner.calls == 0
    assert planner.requests == []


def test_planning_failure_keeps_previous_preview(dummy_directions):
    planner = CountingPlanner(failures=[False, True])
    flow = RouteFlow(planner, SegmentStitcher(dummy_directions()))

    first = asyncio.run(flow.calculate(_form()))
    second = asyncio.run(flow.calculate(_form(destination=IZMIR)))

    assert first is not None
    assert second is None
    assert flow.preview is first
    assert isinstance(flow.state, Idle)
    assert flow.state.message == "could not reach routing service"
    assert isinstance(flow.last_error, PlanningFailed)


def test_previewing_is_reentrant(dummy_directions):
    flow = RouteFlow(CountingPlanner(), SegmentStitcher(dummy_directions()))

    first = asyncio.run(flow.calculate(_form()))
    second = asyncio.run(flow.calculate(_form(destination=IZMIR)))

    assert second is not first
    assert flow.preview is second
    assert flow.preview.plan.points[-1].latitude == IZMIR.latitude
    assert first.plan.points[-1].latitude == ANKARA.latitude
    assert flow.generation == 2


def test_unavailable_road_route_falls_back_to_straight_line(dummy_directions):
    flow = RouteFlow(CountingPlanner(), SegmentStitcher(dummy_directions(fail_on_call=1)))

    preview = asyncio.run(flow.calculate(_form()))

    assert isinstance(flow.state, Previewing)
    assert preview.route.source == "straight_line"
    assert preview.route.polyline == (START.as_lonlat(), ANKARA.as_lonlat())


def test_stale_result_never_replaces_newer_preview(dummy_directions):
    planner = GatedPlanner()
    flow = RouteFlow(planner, SegmentStitcher(dummy_directions()))

    async def scenario():
        older = asyncio.create_task(flow.calculate(_form(destination=ANKARA)))
        await _until(lambda: len(planner.gates) == 1)
        newer = asyncio.create_task(flow.calculate(_form(destination=IZMIR)))
        await _until(lambda: len(planner.gates) == 2)

        planner.gates[1].set()
        newer_result = await newer
        planner.gates[0].set()
        older_result = await older
        return older_result, newer_result

    older_result, newer_result = asyncio.run(scenario())

    assert older_result is None
    assert newer_result is not None
    assert flow.preview is newer_result
    assert flow.preview.plan.points[-1].latitude == IZMIR.latitude
    assert isinstance(flow.state, Previewing)
    assert flow.state.preview is newer_result


def test_cancel_aborts_in_flight_request(dummy_directions):
    planner = GatedPlanner()
    directions = dummy_directions()
    flow = RouteFlow(planner, SegmentStitcher(directions))

    async def scenario():
        task = asyncio.create_task(flow.calculate(_form()))
        await _until(lambda: planner.gates)
        flow.cancel()
        planner.gates[0].set()
        return await asyncio.gather(task, return_exceptions=True)

    (outcome,) = asyncio.run(scenario())

    assert outcome is None
    assert flow.state == Idle()
    assert flow.preview is None
    assert directions.calls == []


def test_cancel_leaves_awaiting_caller_running(dummy_directions):
    planner = GatedPlanner()
    flow = RouteFlow(planner, SegmentStitcher(dummy_directions()))
    log = []

    async def dispatcher():
        result = await flow.calculate(_form())
        log.append(("calculated", result))
        await asyncio.sleep(0)
        log.append(("handled next event", None))

    async def scenario():
        task = asyncio.create_task(dispatcher())
        await _until(lambda: planner.gates)
        flow.cancel()
        return await asyncio.gather(task, return_exceptions=True)

    (outcome,) = asyncio.run(scenario())

    assert outcome is None
    assert log == [("calculated", None), ("handled next event", None)]
    assert flow.state == Idle()


def test_cancelling_the_caller_still_propagates(dummy_directions):
    planner = GatedPlanner()
    flow = RouteFlow(planner, SegmentStitcher(dummy_directions()))

    async def scenario():
        task = asyncio.create_task(flow.calculate(_form()))
        await _until(lambda: planner.gates)
        task.cancel()
        return await asyncio.gather(task, return_exceptions=True)

    (outcome,) = asyncio.run(scenario())

    assert isinstance(outcome, asyncio.CancelledError)
    assert flow.preview is None
