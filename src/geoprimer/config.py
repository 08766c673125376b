"""Walkthrough configuration loading and normalization helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from importlib import resources
from pathlib import Path
from typing import Any, Mapping

import jsonschema

from geoprimer.errors import ConfigError
from geoprimer.models import DEFAULT_CRS

CONFIG_SCHEMA = "tutorial_config.schema.json"

OUTLINE_LON = (-116.8, -114.2, -112.9, -111.9, -114.2, -115.4, -117.7)
OUTLINE_LAT = (41.3, 42.9, 42.4, 39.8, 37.6, 38.3, 37.6)

# NAD83 / Conus Albers, an equal-area projection for the contiguous US
DEFAULT_PROJECTED_CRS = "EPSG:5070"


@dataclass(frozen=True)
class RasterSpec:
    """Dimensions and extent of the walkthrough raster."""

    ncol: int = 10
    nrow: int = 10
    xmin: float = -150.0
    xmax: float = -80.0
    ymin: float = 20.0
    ymax: float = 60.0


@dataclass(frozen=True)
class TutorialConfig:
    """Normalized walkthrough configuration."""

    seed: int | None = 20
    station_count: int = 20
    station_seed: int | None = 20
    crs: str = DEFAULT_CRS
    projected_crs: str | None = DEFAULT_PROJECTED_CRS
    outline_lon: tuple[float, ...] = OUTLINE_LON
    outline_lat: tuple[float, ...] = OUTLINE_LAT
    raster: RasterSpec = field(default_factory=RasterSpec)
    output_dir: Path | None = None
    dpi: int = 100

    def as_dict(self) -> dict[str, Any]:
        return {
            "seed": self.seed,
            "crs": self.crs,
            "projected_crs": self.projected_crs,
            "output_dir": str(self.output_dir) if self.output_dir else None,
            "dpi": self.dpi,
            "stations": {"count": self.station_count, "seed": self.station_seed},
            "outline": {"lon": list(self.outline_lon), "lat": list(self.outline_lat)},
            "raster": {
                "ncol": self.raster.ncol,
                "nrow": self.raster.nrow,
                "xmin": self.raster.xmin,
                "xmax": self.raster.xmax,
                "ymin": self.raster.ymin,
                "ymax": self.raster.ymax,
            },
        }

    def with_overrides(
        self,
        *,
        seed: int | None = None,
        output_dir: Path | None = None,
    ) -> "TutorialConfig":
        """Return a copy with CLI-provided values applied."""
        changes: dict[str, Any] = {}
        if seed is not None:
            changes["seed"] = seed
            changes["station_seed"] = seed
        if output_dir is not None:
            changes["output_dir"] = output_dir
        return replace(self, **changes) if changes else self


def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema bundled in the package."""
    with resources.files("geoprimer.schemas").joinpath(name).open("r", encoding="utf-8") as handle:
        return json.load(handle)


def validate_config(payload: Mapping[str, Any]) -> None:
    """Validate a raw config payload against the bundled schema."""
    schema = _load_schema(CONFIG_SCHEMA)
    try:
        jsonschema.validate(dict(payload), schema)
    except jsonschema.ValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        raise ConfigError(f"Invalid config at {location}: {exc.message}") from exc


def normalize_config(payload: Mapping[str, Any]) -> TutorialConfig:
    """Validate a raw payload and merge it over the defaults."""
    validate_config(payload)
    defaults = TutorialConfig()
    stations = payload.get("stations") or {}
    outline = payload.get("outline") or {}
    raster = payload.get("raster") or {}

    outline_lon = tuple(float(value) for value in outline.get("lon", defaults.outline_lon))
    outline_lat = tuple(float(value) for value in outline.get("lat", defaults.outline_lat))
    if len(outline_lon) != len(outline_lat):
        raise ConfigError(
            f"Outline has {len(outline_lon)} longitudes but {len(outline_lat)} latitudes."
        )

    raster_keys = ("ncol", "nrow", "xmin", "xmax", "ymin", "ymax")
    raster_spec = replace(
        defaults.raster,
        **{key: raster[key] for key in raster_keys if key in raster},
    )
    output_dir = payload.get("output_dir")
    return TutorialConfig(
        seed=payload.get("seed", defaults.seed),
        station_count=stations.get("count", defaults.station_count),
        station_seed=stations.get("seed", payload.get("seed", defaults.station_seed)),
        crs=payload.get("crs", defaults.crs),
        projected_crs=payload.get("projected_crs", defaults.projected_crs),
        outline_lon=outline_lon,
        outline_lat=outline_lat,
        raster=raster_spec,
        output_dir=Path(output_dir) if output_dir else None,
        dpi=payload.get("dpi", defaults.dpi),
    )


def load_config(path: Path) -> TutorialConfig:
    """Load and validate a walkthrough config file from disk."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise ConfigError("Config must be a JSON object.")
    return normalize_config(payload)
