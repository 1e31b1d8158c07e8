"""
Location binding for the survey subject.

Reconciles two coordinate sources into SubjectInfo:
    - an external selection chosen through the map / place-search UI
    - a single-shot device geolocation request

PRECEDENCE:
    The external selection always wins. Geolocation is only requested
    while the engine shows the café-info screen and no selection exists.
    Requests are fire-and-forget: a transition never waits for the
    device, and a failed request leaves coordinates empty.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, Set, Tuple

logger = logging.getLogger(__name__)

GEOLOCATION_FAILED_MESSAGE = "현재 위치를 가져오지 못했습니다. 카페 이름을 직접 입력해 주세요."


class GeolocationError(Exception):
    """Raised by a Geolocator when the position is denied or unavailable."""
    pass


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class ExternalSelection:
    """
    A café picked through the map collaborator.

    Properties:
        name: Place name
        lat, lng: Place coordinates
        id: Place-search identifier, if the place came from a search hit
        address: Road address when known, otherwise the lot address
        stars: Star count when the place is an already-graded result
    """

    name: str
    lat: float
    lng: float
    id: Optional[str] = None
    address: Optional[str] = None
    stars: Optional[int] = None

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)


@dataclass
class SubjectInfo:
    """The café being assessed. Created empty at engine start."""

    name: str = ""
    gps_enabled: bool = False
    coordinates: Optional[Coordinates] = None
    address: Optional[str] = None


class Geolocator(Protocol):
    """
    Single-shot device position provider.

    request_position() starts a request and returns immediately. Exactly
    one of the callbacks runs later, possibly before the call returns.
    """

    def request_position(
        self,
        on_success: Callable[[Coordinates], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        ...


class ScheduledGeolocator:
    """
    Geolocator over an async position source.

    Each request runs as a task on the running event loop, so callers
    inside a sync transition never wait for the device.
    """

    def __init__(self, fetch: Callable[[], Awaitable[Coordinates]]):
        self.fetch = fetch
        self._tasks: Set["asyncio.Task[None]"] = set()

    def request_position(self, on_success, on_error) -> None:
        task = asyncio.get_running_loop().create_task(self._run(on_success, on_error))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, on_success, on_error) -> None:
        try:
            coords = await self.fetch()
        except Exception as e:
            on_error(e)
            return
        on_success(coords)

    async def drain(self) -> None:
        """Wait for every outstanding request to complete."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))


def selection_from_place(place: Mapping[str, Any]) -> ExternalSelection:
    """
    Convert a place-search hit into an ExternalSelection.

    Search hits carry coordinates as strings, x = longitude, y = latitude.
    """
    address = place.get("road_address_name") or place.get("address_name") or None
    place_id = place.get("id")
    return ExternalSelection(
        name=place["place_name"],
        lat=float(place["y"]),
        lng=float(place["x"]),
        id=str(place_id) if place_id is not None else None,
        address=address,
    )


class LocationBinding:
    """
    Keeps SubjectInfo in line with the selection and the current screen.

    sync() is called after every engine transition and after a new
    selection arrives. It only acts when the (on_cafe_info, selection) pair
    differs from the last one it saw, so re-syncing with the same inputs
    never issues a second geolocation request.

    Position requests never block sync(). A result is applied when it
    arrives unless a newer request was started or a selection was bound
    in the meantime; such late results are dropped.
    """

    def __init__(self, subject: SubjectInfo, geolocator: Optional[Geolocator] = None):
        self.subject = subject
        self.geolocator = geolocator
        self.status_message = ""
        self.geolocation_requests = 0
        self.position_pending = False
        self._last_key: Optional[Tuple[bool, Optional[ExternalSelection]]] = None
        self._applied_selection: Optional[ExternalSelection] = None
        self._generation = 0

    def sync(self, on_cafe_info: bool, selection: Optional[ExternalSelection]) -> None:
        key = (on_cafe_info, selection)
        if key == self._last_key:
            return
        self._last_key = key

        if selection is not None:
            self._apply_selection(selection)
            return
        self._applied_selection = None

        if on_cafe_info:
            self._request_position()

    def _apply_selection(self, selection: ExternalSelection) -> None:
        if selection == self._applied_selection:
            return
        self._applied_selection = selection
        # outstanding position requests are now stale
        self._generation += 1
        self.position_pending = False
        self.subject.name = selection.name
        self.subject.coordinates = selection.coordinates
        self.subject.address = selection.address
        logger.debug("Bound external selection %r at %s", selection.name, selection.coordinates)

    def _request_position(self) -> None:
        if self.geolocator is None:
            return
        self.geolocation_requests += 1
        self._generation += 1
        generation = self._generation
        self.position_pending = True
        try:
            self.geolocator.request_position(
                lambda coords: self._on_position(generation, coords),
                lambda error: self._on_position_error(generation, error),
            )
        except GeolocationError as e:
            self._on_position_error(generation, e)

    def _is_current(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("Dropping stale position result (request %d)", generation)
            return False
        return True

    def _on_position(self, generation: int, coords: Coordinates) -> None:
        if not self._is_current(generation):
            return
        self.position_pending = False
        self.subject.gps_enabled = True
        self.subject.coordinates = coords
        self.status_message = ""
        logger.debug("Device position %s", coords)

    def _on_position_error(self, generation: int, error: Exception) -> None:
        if not self._is_current(generation):
            return
        logger.warning("Geolocation unavailable: %s", error)
        self.position_pending = False
        self.subject.gps_enabled = False
        self.subject.coordinates = None
        self.status_message = GEOLOCATION_FAILED_MESSAGE
