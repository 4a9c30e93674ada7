"""
Map rendering surface.

The storefront only needs two things from a map: draw markers (and an
optional route) around a centre, and report where the user clicked.
"""
from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from foodyx.domain.value_objects import GeoPoint

logger = logging.getLogger(__name__)

ClickCallback = Callable[[GeoPoint], "Awaitable[None] | None"]


class MarkerKind:
    CUSTOMER = "customer"
    DRIVER = "driver"
    RESTAURANT = "restaurant"


@dataclass(frozen=True, slots=True)
class Marker:
    position: GeoPoint
    kind: str = MarkerKind.CUSTOMER
    label: str = ""


@dataclass(frozen=True, slots=True)
class MapFrame:
    """One render call, as the surface received it."""

    center: GeoPoint
    zoom: int
    markers: tuple[Marker, ...]
    polyline: tuple[GeoPoint, ...] | None = None


class MapSurface(Protocol):
    def render(
        self,
        center: GeoPoint,
        zoom: int,
        markers: Sequence[Marker],
        polyline: Sequence[GeoPoint] | None = None,
    ) -> None: ...

    def on_click(self, callback: ClickCallback) -> None: ...


@dataclass
class InMemoryMapSurface:
    """Headless surface: keeps every frame and replays clicks to callbacks."""

    frames: list[MapFrame] = field(default_factory=list)
    _callbacks: list[ClickCallback] = field(default_factory=list)

    def render(
        self,
        center: GeoPoint,
        zoom: int,
        markers: Sequence[Marker],
        polyline: Sequence[GeoPoint] | None = None,
    ) -> None:
        self.frames.append(
            MapFrame(
                center=center,
                zoom=zoom,
                markers=tuple(markers),
                polyline=tuple(polyline) if polyline is not None else None,
            )
        )

    def on_click(self, callback: ClickCallback) -> None:
        self._callbacks.append(callback)

    @property
    def last_frame(self) -> MapFrame | None:
        return self.frames[-1] if self.frames else None

    async def click(self, point: GeoPoint) -> None:
        """Simulate a user click at ``point``."""
        for callback in list(self._callbacks):
            result = callback(point)
            if inspect.isawaitable(result):
                await result
