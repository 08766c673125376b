"""CRS validation, description and transformation helpers."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError

from geoprimer.errors import InvalidCrs
from geoprimer.models import Bounds


@dataclass(frozen=True)
class CrsSummary:
    """Human-oriented description of a coordinate reference system."""

    source: str
    name: str
    is_geographic: bool
    is_projected: bool
    axis_units: tuple[str, ...]
    datum: str | None
    epsg: int | None

    @property
    def kind(self) -> str:
        if self.is_geographic:
            return "angular"
        if self.is_projected:
            return "projected"
        return "other"

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["axis_units"] = list(self.axis_units)
        payload["kind"] = self.kind
        return payload


def normalize_crs(value: str | CRS) -> CRS:
    """Normalize CRS input into a pyproj CRS object."""
    try:
        return CRS.from_user_input(value)
    except CRSError as exc:
        raise InvalidCrs(f"Invalid CRS {value!r}: {exc}") from exc


def validate_crs(value: str | CRS | None) -> str | None:
    """Check that a CRS parses and return it as a string, unchanged if it was one."""
    if value is None:
        return None
    normalize_crs(value)
    if isinstance(value, CRS):
        return value.to_string()
    return value


def describe_crs(value: str | CRS) -> CrsSummary:
    """Summarize a CRS: name, angular vs projected, units and datum."""
    crs = normalize_crs(value)
    units = tuple(axis.unit_name for axis in crs.axis_info)
    datum = crs.datum.name if crs.datum is not None else None
    return CrsSummary(
        source=value if isinstance(value, str) else crs.to_string(),
        name=crs.name,
        is_geographic=crs.is_geographic,
        is_projected=crs.is_projected,
        axis_units=units,
        datum=datum,
        epsg=crs.to_epsg(),
    )


def transformer(src: str | CRS, dst: str | CRS) -> Transformer:
    """Return a transformer that respects lon/lat axis order."""
    return Transformer.from_crs(normalize_crs(src), normalize_crs(dst), always_xy=True)


def _linspace(start: float, stop: float, count: int) -> list[float]:
    """Return evenly spaced values between start and stop inclusive."""
    if count <= 1:
        return [start]
    step = (stop - start) / (count - 1)
    return [start + step * index for index in range(count)]


def transform_bounds(
    bounds: Bounds,
    src: str | CRS,
    dst: str | CRS,
    *,
    densify_pts: int = 0,
) -> Bounds:
    """Transform (minx, miny, maxx, maxy) bounds between CRSs."""
    minx, miny, maxx, maxy = bounds
    tx = transformer(src, dst)
    if densify_pts > 0:
        steps = densify_pts + 2
        xs: list[float] = []
        ys: list[float] = []
        for x in _linspace(minx, maxx, steps):
            xs.extend([x, x])
            ys.extend([miny, maxy])
        for y in _linspace(miny, maxy, steps):
            xs.extend([minx, maxx])
            ys.extend([y, y])
    else:
        xs = [minx, minx, maxx, maxx]
        ys = [miny, maxy, miny, maxy]
    out_xs, out_ys = tx.transform(xs, ys)
    return (min(out_xs), min(out_ys), max(out_xs), max(out_ys))
