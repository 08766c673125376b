"""Shared value types for vector and raster objects."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Tuple

from geoprimer.errors import MalformedInput

Bounds = Tuple[float, float, float, float]
Resolution = Tuple[float, float]
Coordinate = Tuple[float, float]

DEFAULT_CRS = "+proj=longlat +datum=WGS84"


class GeometryKind(enum.Enum):
    """Kind of features held by a vector layer."""

    POINT = "points"
    LINE = "lines"
    POLYGON = "polygons"

    @classmethod
    def parse(cls, value: "GeometryKind | str") -> "GeometryKind":
        """Accept an enum member or its name/value ("lines", "polygon", ...)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value, member.name.lower()):
                return member
        raise MalformedInput(f"Unknown geometry kind: {value}")


@dataclass(frozen=True)
class Extent:
    """Axis-aligned bounding box in xmin, xmax, ymin, ymax order."""

    xmin: float
    xmax: float
    ymin: float
    ymax: float

    def __post_init__(self) -> None:
        if not self.xmin <= self.xmax or not self.ymin <= self.ymax:
            raise MalformedInput(
                f"Extent minimums must not exceed maximums: {self.as_tuple()}"
            )

    @classmethod
    def from_coordinates(cls, coords: Iterable[Coordinate]) -> "Extent":
        """Compute the extent of a set of coordinate pairs."""
        xs: list[float] = []
        ys: list[float] = []
        for x, y in coords:
            xs.append(float(x))
            ys.append(float(y))
        if not xs:
            raise MalformedInput("Extent of an empty coordinate set is undefined.")
        return cls(min(xs), max(xs), min(ys), max(ys))

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    def as_tuple(self) -> tuple[float, float, float, float]:
        """Return (xmin, xmax, ymin, ymax)."""
        return (self.xmin, self.xmax, self.ymin, self.ymax)

    def as_bounds(self) -> Bounds:
        """Return (minx, miny, maxx, maxy) as used by rasterio and shapely."""
        return (self.xmin, self.ymin, self.xmax, self.ymax)
