"""Value Objects for domain model."""
from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from foodyx.core.exceptions import ValidationException


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A ``[longitude, latitude]`` pair, in the order the backend stores it."""

    longitude: float
    latitude: float

    def __post_init__(self) -> None:
        for name, value, limit in (
            ("longitude", self.longitude, 180.0),
            ("latitude", self.latitude, 90.0),
        ):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationException(f"Invalid {name}: {value!r}", field=name)
            if not math.isfinite(value) or abs(value) > limit:
                raise ValidationException(f"Invalid {name}: {value!r}", field=name)

    def to_list(self) -> list[float]:
        return [self.longitude, self.latitude]

    def to_lat_lng(self) -> dict[str, float]:
        return {"lat": self.latitude, "lng": self.longitude}

    @classmethod
    def from_list(cls, coordinates: Sequence[float]) -> "GeoPoint":
        if len(coordinates) != 2:
            raise ValidationException(f"Expected [longitude, latitude], got {coordinates!r}")
        return cls(longitude=coordinates[0], latitude=coordinates[1])

    @classmethod
    def from_any(cls, value: Any) -> "GeoPoint | None":
        """Parse a GeoJSON point, a ``[lng, lat]`` list or a GeoPoint.

        Malformed values give None; the backend omits locations it does not
        know yet.
        """
        if value is None:
            return None
        if isinstance(value, GeoPoint):
            return value
        if isinstance(value, dict):
            value = value.get("coordinates")
        if not isinstance(value, (list, tuple)):
            return None
        try:
            return cls.from_list(value)
        except ValidationException:
            return None

    def __str__(self) -> str:
        return f"[{self.longitude:.6f}, {self.latitude:.6f}]"


__all__ = ["GeoPoint"]
