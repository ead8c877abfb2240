"""Route flow state machine: validate -> plan -> preview.

Owns the only shared mutable value, the current preview. Every
``calculate`` call captures a generation number; results from an older
generation are dropped so a slow stale response never replaces a newer one.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from ...models.domain import RoutePoint
from ...schemas.routing import LatLonModel, PlanRequest, VehicleModel
from .cancellation import CancellationToken
from .errors import InvalidInput, OperationCancelled, RoutingError
from .planner import RoutePlanner, validate_plan_request
from .service import RoutePreview, build_preview
from .stitcher import SegmentStitcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Idle:
    message: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Validating:
    pass


@dataclass(frozen=True, slots=True)
class Planning:
    generation: int


@dataclass(frozen=True, slots=True)
class Previewing:
    preview: RoutePreview


FlowState = Union[Idle, Validating, Planning, Previewing]


@dataclass(slots=True)
class TripForm:
    """Raw values as typed by the user."""

    start: Optional[RoutePoint]
    destination: Optional[RoutePoint]
    max_range_km: str
    current_soc_percent: str
    reserve_percent: str = "10"
    corridor_km: str = "30"
    max_stops: str = "8"
    charge_after_stop_percent: str = "90"


def _parse_number(label: str, text: str) -> float:
    try:
        return float(str(text).strip().rstrip("%").replace(",", "."))
    except ValueError as exc:
        raise InvalidInput(f"{label} is not a number") from exc


def _parse_int(label: str, text: str) -> int:
    try:
        return int(str(text).strip())
    except ValueError as exc:
        raise InvalidInput(f"{label} is not a whole number") from exc


def parse_trip_form(form: TripForm) -> PlanRequest:
    """Build a validated ``PlanRequest`` from form text, or raise ``InvalidInput``."""
    if form.start is None or form.destination is None:
        raise InvalidInput("missing endpoints")

    request = PlanRequest(
        start=LatLonModel(latitude=form.start.latitude, longitude=form.start.longitude),
        end=LatLonModel(latitude=form.destination.latitude, longitude=form.destination.longitude),
        vehicle=VehicleModel(max_range_km=_parse_number("range", form.max_range_km)),
        current_soc_percent=_parse_number("state of charge", form.current_soc_percent),
        reserve_percent=_parse_number("reserve", form.reserve_percent),
        corridor_km=_parse_number("corridor", form.corridor_km),
        max_stops=_parse_int("max stops", form.max_stops),
        charge_after_stop_percent=_parse_number("charge after stop", form.charge_after_stop_percent),
    )
    validate_plan_request(request)
    return request


class RouteFlow:
    def __init__(
        self,
        planner: RoutePlanner,
        stitcher: SegmentStitcher,
        on_change: Callable[[FlowState], None] | None = None,
    ) -> None:
        self.planner = planner
        self.stitcher = stitcher
        self.on_change = on_change
        self._state: FlowState = Idle()
        self._preview: RoutePreview | None = None
        self._generation = 0
        self._token: CancellationToken | None = None
        self._inflight: set[asyncio.Task] = set()
        self.last_error: RoutingError | None = None

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def preview(self) -> RoutePreview | None:
        """Last successful preview; survives later failures."""
        return self._preview

    @property
    def generation(self) -> int:
        return self._generation

    def _set_state(self, state: FlowState) -> None:
        self._state = state
        if self.on_change is not None:
            self.on_change(state)

    def _begin(self) -> CancellationToken:
        if self._token is not None:
            self._token.cancel()
        self._generation += 1
        self._token = CancellationToken(self._generation)
        return self._token

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _fail(self, generation: int, error: RoutingError) -> None:
        if not self._is_current(generation):
            logger.debug(f"Dropping error from stale request generation {generation}: {error}")
            return None
        logger.warning(f"Route calculation failed: {error}")
        self.last_error = error
        self._set_state(Idle(error.user_message))
        return None

    async def calculate(self, form: TripForm) -> RoutePreview | None:
        """Run validation, planning and stitching for ``form``.

        Returns the new preview, or ``None`` when the attempt failed or was
        superseded. Failures leave the previous preview in place.
        """
        token = self._begin()
        generation = token.generation
        self._set_state(Validating())

        try:
            request = parse_trip_form(form)
        except InvalidInput as exc:
            return self._fail(generation, exc)

        self._set_state(Planning(generation))
        # Network work runs in its own task so cancel() never reaches the caller.
        work = asyncio.create_task(build_preview(self.planner, self.stitcher, request, token))
        self._inflight.add(work)
        try:
            preview = await work
        except OperationCancelled:
            logger.debug(f"Request generation {generation} was superseded")
            return None
        except asyncio.CancelledError:
            if work in self._inflight:
                raise
            logger.debug(f"Request generation {generation} was cancelled")
            return None
        except RoutingError as exc:
            return self._fail(generation, exc)
        finally:
            self._inflight.discard(work)

        if not self._is_current(generation):
            logger.debug(f"Discarding stale preview from request generation {generation}")
            return None

        self._preview = preview
        self.last_error = None
        self._set_state(Previewing(preview))
        return preview

    def cancel(self) -> None:
        """Abort pending work; a late response can no longer change state."""
        if self._token is not None:
            self._token.cancel()
        self._generation += 1
        inflight = list(self._inflight)
        self._inflight.clear()
        for task in inflight:
            task.cancel()
        self._set_state(Idle())
