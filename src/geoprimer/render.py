"""Matplotlib rendering for vector layers and raster grids.

Every function draws onto an explicit ``Axes`` (creating a new figure when
none is given) and returns it. Inputs that cannot be drawn meaningfully
(empty layers, rasters without values, constant color scales) produce an
empty or uniform plot instead of raising.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Sequence

import numpy as np
from matplotlib.axes import Axes
from matplotlib.colors import Normalize
from matplotlib.figure import Figure

from geoprimer.models import Extent, GeometryKind
from geoprimer.raster import RasterGrid
from geoprimer.vector import VectorLayer, close_ring

LOGGER = logging.getLogger("geoprimer.render")

DEFAULT_FIGSIZE = (7.0, 5.0)
MARKER_AREA = 20.0
POLYGON_FILL = "#104E8B"  # dodgerblue4
LINE_COLOR = "red"
DEFAULT_CMAP = "viridis"


def new_axes(figsize: tuple[float, float] = DEFAULT_FIGSIZE) -> tuple[Figure, Axes]:
    """Create a standalone figure with a single axes (no pyplot state)."""
    fig = Figure(figsize=figsize)
    ax = fig.add_subplot(1, 1, 1)
    return fig, ax


def _ensure_axes(ax: Axes | None) -> Axes:
    if ax is not None:
        return ax
    _, created = new_axes()
    return created


def color_limits(values: Any) -> tuple[float, float]:
    """Return (vmin, vmax) for a color scale, padded when the data is constant."""
    array = np.asarray(values, dtype=float)
    finite = array[np.isfinite(array)]
    if finite.size == 0:
        return (0.0, 1.0)
    vmin = float(finite.min())
    vmax = float(finite.max())
    if vmin == vmax:
        return (vmin - 0.5, vmax + 0.5)
    return (vmin, vmax)


def apply_extent(ax: Axes, extent: Extent | None, *, margin: float = 0.05) -> None:
    """Fit the axes limits to an extent, padding degenerate spans."""
    if extent is None:
        return
    pad_x = extent.width * margin or 1.0
    pad_y = extent.height * margin or 1.0
    ax.set_xlim(extent.xmin - pad_x, extent.xmax + pad_x)
    ax.set_ylim(extent.ymin - pad_y, extent.ymax + pad_y)


def _style_lonlat(ax: Axes) -> None:
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    ax.grid(True, color="0.9")
    ax.set_axisbelow(True)


def plot_stations(
    layer: VectorLayer,
    *,
    ax: Axes | None = None,
    color_field: str | None = "precip",
    size_field: str | None = "psize",
    cmap: str = DEFAULT_CMAP,
) -> Axes:
    """Scatter a point layer, optionally encoding fields as color and size."""
    ax = _ensure_axes(ax)
    _style_lonlat(ax)
    if len(layer) == 0:
        LOGGER.warning("No stations to plot.")
        return ax
    coords = layer.geom()[:, 2:]
    sizes: Any = MARKER_AREA
    if size_field and size_field in layer.attributes:
        sizes = np.asarray(layer.attribute(size_field), dtype=float) * MARKER_AREA
    if color_field and color_field in layer.attributes:
        colors = np.asarray(layer.attribute(color_field), dtype=float)
        vmin, vmax = color_limits(colors)
        artist = ax.scatter(
            coords[:, 0],
            coords[:, 1],
            c=colors,
            s=sizes,
            cmap=cmap,
            norm=Normalize(vmin=vmin, vmax=vmax),
        )
        ax.figure.colorbar(artist, ax=ax, label=color_field)
    else:
        ax.scatter(coords[:, 0], coords[:, 1], s=sizes, color="black")
    apply_extent(ax, layer.extent)
    return ax


def plot_outline(
    x: Sequence[float],
    y: Sequence[float],
    *,
    ax: Axes | None = None,
) -> Axes:
    """Draw raw coordinates as points, a filled polygon and a line.

    The polygon follows the input order; the line is drawn in order of x.
    """
    ax = _ensure_axes(ax)
    _style_lonlat(ax)
    pairs = list(zip(x, y))
    if not pairs:
        return ax
    ring = close_ring(pairs)
    ax.fill(
        [px for px, _ in ring],
        [py for _, py in ring],
        color=POLYGON_FILL,
        alpha=0.8,
        label="polygon",
    )
    by_x = sorted(pairs, key=lambda pair: pair[0])
    ax.plot([px for px, _ in by_x], [py for _, py in by_x], color=LINE_COLOR, label="line")
    ax.scatter([px for px, _ in pairs], [py for _, py in pairs], color="black", zorder=3)
    apply_extent(ax, Extent.from_coordinates(pairs))
    return ax


def plot_vector(
    layer: VectorLayer,
    *,
    ax: Axes | None = None,
    color: str = "black",
    fill: str | None = None,
    fit: bool = True,
) -> Axes:
    """Draw a vector layer according to its geometry kind."""
    ax = _ensure_axes(ax)
    if len(layer) == 0:
        return ax
    if layer.kind is GeometryKind.POINT:
        table = layer.geom()
        ax.scatter(table[:, 2], table[:, 3], color=color, zorder=3)
    else:
        for index in range(len(layer)):
            for coords in layer.parts(index):
                xs = [px for px, _ in coords]
                ys = [py for _, py in coords]
                if layer.kind is GeometryKind.POLYGON and fill is not None:
                    ax.fill(xs, ys, color=fill, alpha=0.8)
                ax.plot(xs, ys, color=color)
    if fit:
        apply_extent(ax, layer.extent)
    return ax


def plot_raster(
    raster: RasterGrid,
    *,
    ax: Axes | None = None,
    cmap: str = DEFAULT_CMAP,
    colorbar: bool = True,
) -> Axes:
    """Show raster cells as an image spanning the raster extent."""
    ax = _ensure_axes(ax)
    data = raster.as_array()
    if not raster.has_values:
        LOGGER.warning("Raster has no values; drawing an empty grid.")
    vmin, vmax = color_limits(data)
    image = ax.imshow(
        np.ma.masked_invalid(data),
        extent=raster.extent.as_tuple(),
        origin="upper",
        cmap=cmap,
        norm=Normalize(vmin=vmin, vmax=vmax),
        interpolation="nearest",
        aspect="auto",
    )
    if colorbar:
        ax.figure.colorbar(image, ax=ax)
    ax.set_xlim(raster.extent.xmin, raster.extent.xmax)
    ax.set_ylim(raster.extent.ymin, raster.extent.ymax)
    return ax


def overlay(
    ax: Axes,
    *,
    points: VectorLayer | None = None,
    outlines: VectorLayer | None = None,
) -> Axes:
    """Draw points and polygon outlines on top of an existing plot."""
    if points is not None:
        plot_vector(points, ax=ax, color="black", fit=False)
    if outlines is not None:
        plot_vector(outlines, ax=ax, color="black", fit=False)
    return ax


def save_figure(fig: Figure, path: Path, *, dpi: int = 100) -> Path:
    """Write a figure to PNG, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    LOGGER.debug("Saved figure %s", path)
    return path
