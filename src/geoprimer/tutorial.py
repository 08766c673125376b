"""Step-by-step walkthrough of points, lines, polygons, CRSs and rasters.

The steps run in a fixed order and each logs a short narration. Any error
aborts the remaining steps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from matplotlib.figure import Figure

from geoprimer.config import TutorialConfig
from geoprimer.crs import describe_crs, transform_bounds
from geoprimer.models import GeometryKind
from geoprimer.raster import RasterGrid
from geoprimer.render import (
    new_axes,
    overlay,
    plot_outline,
    plot_raster,
    plot_stations,
    plot_vector,
    save_figure,
)
from geoprimer.sampling import make_rng, simulate_stations, uniform_values
from geoprimer.vector import VectorLayer, from_table, points

LOGGER = logging.getLogger("geoprimer.tutorial")

FIGURE_NAMES = ("stations", "outline", "lines", "polygons", "raster")


@dataclass(frozen=True)
class TutorialResult:
    """Objects built by the walkthrough and any figures written."""

    stations: VectorLayer
    points: VectorLayer
    projected: VectorLayer | None
    lines: VectorLayer
    polygons: VectorLayer
    raster: RasterGrid
    figures: dict[str, Path] = field(default_factory=dict)


def _narrate(step: str, message: str, *args: object) -> None:
    LOGGER.info(message, *args, extra={"step": step})


def _emit(
    name: str,
    fig: Figure,
    config: TutorialConfig,
    figures: dict[str, Path],
) -> None:
    if config.output_dir is None:
        return
    figures[name] = save_figure(fig, config.output_dir / f"{name}.png", dpi=config.dpi)


def run_tutorial(config: TutorialConfig | None = None) -> TutorialResult:
    """Build every walkthrough object in order and render each one."""
    config = config or TutorialConfig()
    figures: dict[str, Path] = {}
    rng = make_rng(config.seed)

    stations = simulate_stations(config.station_count, seed=config.station_seed, crs=config.crs)
    precip = stations.attribute("precip")
    _narrate(
        "sample",
        "Simulated %s rainfall stations; precip ranges %g to %g.",
        len(stations),
        min(precip),
        max(precip),
    )
    fig, ax = new_axes()
    plot_stations(stations, ax=ax)
    _emit("stations", fig, config, figures)

    lon = list(config.outline_lon)
    lat = list(config.outline_lat)
    fig, ax = new_axes()
    plot_outline(lon, lat, ax=ax)
    _emit("outline", fig, config, figures)
    pts = points(lon, lat)
    _narrate("geometry", "Point layer built from %s coordinates:\n%s", len(pts), pts.describe())

    pts = pts.with_crs(config.crs)
    summary = describe_crs(config.crs)
    _narrate(
        "crs",
        "Assigned %s CRS %r (%s, units: %s).",
        summary.kind,
        config.crs,
        summary.name,
        ", ".join(summary.axis_units),
    )
    projected = None
    if config.projected_crs:
        projected = pts.project(config.projected_crs)
        projected_summary = describe_crs(config.projected_crs)
        _narrate(
            "crs",
            "Projected a copy to %s (%s); extent is now %s.",
            config.projected_crs,
            projected_summary.kind,
            projected.extent.as_tuple() if projected.extent else None,
        )

    pts["precipval"] = uniform_values(len(pts), 0.0, 100.0, rng=rng)
    pts["ID"] = list(range(1, len(pts) + 1))
    _narrate("attributes", "Attached fields %s:\n%s", list(pts.field_names), pts.describe())

    table = [(1, 1, x, y) for x, y in zip(lon, lat)]
    lns = from_table(table, GeometryKind.LINE, crs=config.crs)
    _narrate("lines", "Line layer:\n%s", lns.describe())
    fig, ax = new_axes()
    plot_vector(lns, ax=ax, color="red")
    _emit("lines", fig, config, figures)

    pols = from_table(table, GeometryKind.POLYGON, crs=config.crs)
    _narrate(
        "polygons",
        "Polygon layer (ring closed to %s vertices):\n%s",
        len(pols.parts(0)[0]),
        pols.describe(),
    )
    fig, ax = new_axes()
    plot_vector(pols, ax=ax, color="black", fill="dodgerblue")
    _emit("polygons", fig, config, figures)

    grid = config.raster
    raster = RasterGrid.create(
        grid.ncol,
        grid.nrow,
        grid.xmin,
        grid.xmax,
        grid.ymin,
        grid.ymax,
        crs=config.crs,
    )
    _narrate("raster", "Empty raster:\n%s", raster.describe())
    if config.projected_crs:
        _narrate(
            "raster",
            "The same extent in %s covers %s.",
            config.projected_crs,
            transform_bounds(
                raster.extent.as_bounds(),
                config.crs,
                config.projected_crs,
                densify_pts=21,
            ),
        )
    raster.set_values(uniform_values(raster.ncell, rng=rng))
    _narrate("raster", "Raster with values:\n%s", raster.describe())
    fig, ax = new_axes()
    plot_raster(raster, ax=ax)
    overlay(ax, points=pts, outlines=pols)
    _emit("raster", fig, config, figures)

    if figures:
        _narrate("render", "Wrote %s figure(s) to %s.", len(figures), config.output_dir)
    return TutorialResult(
        stations=stations,
        points=pts,
        projected=projected,
        lines=lns,
        polygons=pols,
        raster=raster,
        figures=figures,
    )
