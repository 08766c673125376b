"""Vector layers: points, lines and polygons with a CRS and attribute table."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

import numpy as np
import shapely
from shapely.geometry import (
    LineString,
    MultiLineString,
    MultiPolygon,
    Point,
    Polygon,
)
from shapely.geometry.base import BaseGeometry

from geoprimer.crs import transformer, validate_crs
from geoprimer.errors import DimensionMismatch, InvalidGeometry, MalformedInput
from geoprimer.models import Coordinate, Extent, GeometryKind

LOGGER = logging.getLogger("geoprimer.vector")

MIN_LINE_POINTS = 2
MIN_RING_POINTS = 3


def close_ring(coords: Sequence[Coordinate]) -> list[Coordinate]:
    """Return the ring with its first coordinate appended when it is open."""
    ring = [(float(x), float(y)) for x, y in coords]
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring


def _coerce_values(values: Any) -> list[Any]:
    if isinstance(values, (str, bytes)):
        raise MalformedInput("Attribute values must be a sequence, not a string.")
    if isinstance(values, np.ndarray):
        return values.tolist()
    try:
        return list(values)
    except TypeError as exc:
        raise MalformedInput(
            f"Attribute values must be a sequence, got {type(values).__name__}."
        ) from exc


@dataclass(frozen=True, init=False)
class VectorLayer:
    """Ordered features of a single geometry kind.

    The CRS is a label: it is stored exactly as supplied and never changes
    the coordinates. Use :meth:`project` to compute coordinates in another CRS.
    Fields are written only through :meth:`set_attribute` so every field keeps
    one value per feature.
    """

    kind: GeometryKind
    geometries: tuple[BaseGeometry, ...]
    crs: str | None = None
    _attributes: dict[str, list[Any]] = field(default_factory=dict, repr=False)

    def __init__(
        self,
        kind: GeometryKind | str,
        geometries: Iterable[BaseGeometry],
        crs: str | None = None,
        attributes: Mapping[str, Iterable[Any]] | None = None,
    ) -> None:
        object.__setattr__(self, "kind", GeometryKind.parse(kind))
        object.__setattr__(self, "geometries", tuple(geometries))
        object.__setattr__(self, "crs", validate_crs(crs))
        object.__setattr__(self, "_attributes", {})
        for name, values in (attributes or {}).items():
            self.set_attribute(name, values)

    def __len__(self) -> int:
        return len(self.geometries)

    def __getitem__(self, name: str) -> list[Any]:
        return self.attribute(name)

    def __setitem__(self, name: str, values: Iterable[Any]) -> None:
        self.set_attribute(name, values)

    @property
    def attributes(self) -> dict[str, list[Any]]:
        """Return a copy of the attribute table."""
        return {name: list(values) for name, values in self._attributes.items()}

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(self._attributes)

    def set_attribute(self, name: str, values: Iterable[Any]) -> None:
        """Add or overwrite a field holding one value per feature."""
        coerced = _coerce_values(values)
        if len(coerced) != len(self):
            raise DimensionMismatch(
                f"Attribute {name!r} has {len(coerced)} values for {len(self)} features."
            )
        self._attributes[str(name)] = coerced

    def attribute(self, name: str) -> list[Any]:
        """Return a copy of a field's values."""
        if name not in self._attributes:
            raise KeyError(f"Unknown attribute: {name}")
        return list(self._attributes[name])

    def records(self) -> list[dict[str, Any]]:
        """Return the attribute table as one dict per feature."""
        return [
            {name: values[index] for name, values in self._attributes.items()}
            for index in range(len(self))
        ]

    @property
    def extent(self) -> Extent | None:
        """Bounding box of every coordinate, or None for an empty layer."""
        if not self.geometries:
            return None
        minx = min(geom.bounds[0] for geom in self.geometries)
        miny = min(geom.bounds[1] for geom in self.geometries)
        maxx = max(geom.bounds[2] for geom in self.geometries)
        maxy = max(geom.bounds[3] for geom in self.geometries)
        return Extent(minx, maxx, miny, maxy)

    def parts(self, index: int) -> list[list[Coordinate]]:
        """Return the coordinate lists (parts or rings) of one feature."""
        return [list(coords) for coords in _geometry_parts(self.geometries[index])]

    def geom(self) -> np.ndarray:
        """Return an (n, 4) table of feature id, part id, x and y (1-based ids)."""
        rows: list[tuple[float, float, float, float]] = []
        for feature_id, geometry in enumerate(self.geometries, start=1):
            for part_id, coords in enumerate(_geometry_parts(geometry), start=1):
                for x, y in coords:
                    rows.append((feature_id, part_id, x, y))
        if not rows:
            return np.empty((0, 4), dtype=float)
        return np.asarray(rows, dtype=float)

    def with_crs(self, crs: str | None) -> "VectorLayer":
        """Return a copy labelled with another CRS; coordinates are untouched."""
        return VectorLayer(
            kind=self.kind,
            geometries=self.geometries,
            crs=crs,
            attributes=self.attributes,
        )

    def project(self, dst_crs: str) -> "VectorLayer":
        """Return a copy whose coordinates are transformed into dst_crs."""
        if self.crs is None:
            raise MalformedInput("Cannot project a layer without a source CRS.")
        tx = transformer(self.crs, dst_crs)
        projected = tuple(
            shapely.transform(geom, lambda c: np.column_stack(tx.transform(c[:, 0], c[:, 1])))
            for geom in self.geometries
        )
        LOGGER.debug("Projected %s features from %s to %s", len(self), self.crs, dst_crs)
        return VectorLayer(
            kind=self.kind,
            geometries=projected,
            crs=dst_crs,
            attributes=self.attributes,
        )

    def summary(self) -> dict[str, Any]:
        """Return the class, dimensions, extent, CRS and field names."""
        extent = self.extent
        return {
            "class": "VectorLayer",
            "geometry": self.kind.value,
            "dimensions": (len(self), len(self._attributes)),
            "extent": extent.as_tuple() if extent else None,
            "crs": self.crs,
            "names": list(self._attributes),
        }

    def describe(self) -> str:
        """Return the summary formatted as aligned ``key : value`` lines."""
        info = self.summary()
        extent = info["extent"]
        lines = [
            f" class       : {info['class']}",
            f" geometry    : {info['geometry']}",
            f" dimensions  : {len(self)}, {len(self._attributes)}  (geometries, attributes)",
            " extent      : "
            + (", ".join(f"{value:g}" for value in extent) if extent else "none")
            + "  (xmin, xmax, ymin, ymax)",
            f" coord. ref. : {info['crs'] or ''}",
        ]
        if info["names"]:
            lines.append(f" names       : {', '.join(info['names'])}")
        return "\n".join(lines)


def _geometry_parts(geometry: BaseGeometry) -> list[list[Coordinate]]:
    if isinstance(geometry, Point):
        return [[(geometry.x, geometry.y)]]
    if isinstance(geometry, LineString):
        return [list(geometry.coords)]
    if isinstance(geometry, MultiLineString):
        return [list(line.coords) for line in geometry.geoms]
    if isinstance(geometry, Polygon):
        return [list(geometry.exterior.coords)]
    if isinstance(geometry, MultiPolygon):
        return [list(polygon.exterior.coords) for polygon in geometry.geoms]
    raise MalformedInput(f"Unsupported geometry type: {geometry.geom_type}")


def _as_1d(name: str, values: Any) -> np.ndarray:
    array = np.asarray(values)
    if array.ndim != 1:
        raise MalformedInput(f"{name} must be one-dimensional, got shape {array.shape}.")
    return array


def _group_indices(
    ids: np.ndarray,
    parts: np.ndarray,
) -> list[list[list[int]]]:
    """Group row indices by feature id, then part id, in first-seen order."""
    features: dict[Any, dict[Any, list[int]]] = {}
    for index, (feature_id, part_id) in enumerate(zip(ids.tolist(), parts.tolist())):
        features.setdefault(feature_id, {}).setdefault(part_id, []).append(index)
    return [list(feature.values()) for feature in features.values()]


def _build_line(parts: list[list[Coordinate]], feature: int) -> BaseGeometry:
    for coords in parts:
        if len(coords) < MIN_LINE_POINTS:
            raise InvalidGeometry(
                f"Line feature {feature} has a part with {len(coords)} point(s); "
                f"at least {MIN_LINE_POINTS} are required."
            )
    if len(parts) == 1:
        return LineString(parts[0])
    return MultiLineString(parts)


def _build_polygon(parts: list[list[Coordinate]], feature: int) -> BaseGeometry:
    rings = []
    for coords in parts:
        if len(set(coords)) < MIN_RING_POINTS:
            raise InvalidGeometry(
                f"Polygon feature {feature} has a ring with {len(set(coords))} distinct "
                f"point(s); at least {MIN_RING_POINTS} are required."
            )
        rings.append(close_ring(coords))
    if len(rings) == 1:
        return Polygon(rings[0])
    return MultiPolygon([Polygon(ring) for ring in rings])


def make_vector(
    kind: GeometryKind | str,
    x: Sequence[float],
    y: Sequence[float],
    *,
    ids: Sequence[Any] | None = None,
    parts: Sequence[Any] | None = None,
    crs: str | None = None,
    attributes: Mapping[str, Iterable[Any]] | None = None,
) -> VectorLayer:
    """Build a vector layer of the requested kind from coordinate columns.

    Points become one feature per coordinate. Lines and polygons group the
    coordinates by ``ids`` (feature) and then ``parts``; both default to a
    single feature with a single part. Polygon rings are closed when open.
    """
    geometry_kind = GeometryKind.parse(kind)
    xs = _as_1d("x", x)
    ys = _as_1d("y", y)
    if len(xs) != len(ys):
        raise MalformedInput(f"x has {len(xs)} values but y has {len(ys)}.")
    count = len(xs)
    feature_ids = _as_1d("ids", ids) if ids is not None else np.ones(count, dtype=int)
    part_ids = _as_1d("parts", parts) if parts is not None else np.ones(count, dtype=int)
    if len(feature_ids) != count or len(part_ids) != count:
        raise MalformedInput(
            f"Expected {count} ids and parts, got {len(feature_ids)} and {len(part_ids)}."
        )
    if count == 0:
        raise InvalidGeometry(f"Cannot build {geometry_kind.value} from zero coordinates.")
    try:
        xs = xs.astype(float)
        ys = ys.astype(float)
    except (TypeError, ValueError) as exc:
        raise MalformedInput(f"Coordinates must be numeric: {exc}") from exc
    if not (np.isfinite(xs).all() and np.isfinite(ys).all()):
        raise InvalidGeometry("Coordinates must be finite numbers.")

    coords = list(zip(xs.tolist(), ys.tolist()))
    geometries: list[BaseGeometry]
    if geometry_kind is GeometryKind.POINT:
        geometries = [Point(pair) for pair in coords]
    elif geometry_kind is GeometryKind.LINE:
        geometries = [
            _build_line([[coords[i] for i in part] for part in feature], number)
            for number, feature in enumerate(_group_indices(feature_ids, part_ids), start=1)
        ]
    elif geometry_kind is GeometryKind.POLYGON:
        geometries = [
            _build_polygon([[coords[i] for i in part] for part in feature], number)
            for number, feature in enumerate(_group_indices(feature_ids, part_ids), start=1)
        ]
    else:
        raise MalformedInput(f"Unhandled geometry kind: {geometry_kind}")

    LOGGER.debug(
        "Built %s %s feature(s) from %s coordinates",
        len(geometries),
        geometry_kind.value,
        count,
    )
    return VectorLayer(
        kind=geometry_kind,
        geometries=tuple(geometries),
        crs=crs,
        attributes=dict(attributes or {}),
    )


def points(
    x: Sequence[float],
    y: Sequence[float],
    *,
    crs: str | None = None,
    attributes: Mapping[str, Iterable[Any]] | None = None,
) -> VectorLayer:
    """Build a point layer, one feature per coordinate."""
    return make_vector(GeometryKind.POINT, x, y, crs=crs, attributes=attributes)


def lines(
    x: Sequence[float],
    y: Sequence[float],
    *,
    ids: Sequence[Any] | None = None,
    parts: Sequence[Any] | None = None,
    crs: str | None = None,
) -> VectorLayer:
    return make_vector(GeometryKind.LINE, x, y, ids=ids, parts=parts, crs=crs)


def polygons(
    x: Sequence[float],
    y: Sequence[float],
    *,
    ids: Sequence[Any] | None = None,
    parts: Sequence[Any] | None = None,
    crs: str | None = None,
) -> VectorLayer:
    return make_vector(GeometryKind.POLYGON, x, y, ids=ids, parts=parts, crs=crs)


def from_table(
    table: Any,
    kind: GeometryKind | str,
    *,
    crs: str | None = None,
) -> VectorLayer:
    """Build a layer from an ``(id, part, x, y)`` table, or ``(x, y)`` for points."""
    geometry_kind = GeometryKind.parse(kind)
    try:
        array = np.asarray(table, dtype=float)
    except (TypeError, ValueError) as exc:
        raise MalformedInput(f"Coordinate table must be a numeric grid: {exc}") from exc
    if array.ndim != 2:
        raise MalformedInput(f"Coordinate table must be two-dimensional, got shape {array.shape}.")
    columns = array.shape[1]
    if columns == 4:
        return make_vector(
            geometry_kind,
            array[:, 2],
            array[:, 3],
            ids=array[:, 0],
            parts=array[:, 1],
            crs=crs,
        )
    if columns == 2 and geometry_kind is GeometryKind.POINT:
        return make_vector(geometry_kind, array[:, 0], array[:, 1], crs=crs)
    raise MalformedInput(
        f"Coordinate table for {geometry_kind.value} needs columns id, part, x, y; "
        f"got {columns} column(s)."
    )
