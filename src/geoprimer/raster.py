"""Single-layer raster grids defined by a cell count, an extent and a CRS."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from affine import Affine
from rasterio.transform import from_bounds

from geoprimer.crs import validate_crs
from geoprimer.errors import DimensionMismatch, MalformedInput
from geoprimer.models import DEFAULT_CRS, Extent, Resolution

LOGGER = logging.getLogger("geoprimer.raster")


@dataclass
class RasterGrid:
    """Dense grid of ``nrow * ncol`` float cells, NaN meaning "no value".

    Cells are stored row-major with row 0 along the north edge, matching the
    affine transform rasterio derives from the extent. Resolution is always
    computed from the extent and the counts.
    """

    ncol: int
    nrow: int
    extent: Extent
    crs: str | None = DEFAULT_CRS
    _cells: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.ncol, bool) or isinstance(self.nrow, bool):
            raise MalformedInput("Raster dimensions must be integers.")
        if int(self.ncol) != self.ncol or int(self.nrow) != self.nrow:
            raise MalformedInput(f"Raster dimensions must be integers: {self.ncol} x {self.nrow}")
        self.ncol = int(self.ncol)
        self.nrow = int(self.nrow)
        if self.ncol <= 0 or self.nrow <= 0:
            raise MalformedInput(
                f"Raster needs at least one row and column, got {self.nrow} x {self.ncol}."
            )
        if self.extent.width <= 0 or self.extent.height <= 0:
            raise MalformedInput(f"Raster extent must have positive area: {self.extent.as_tuple()}")
        self.crs = validate_crs(self.crs)
        self._cells = np.full(self.nrow * self.ncol, np.nan, dtype=np.float64)

    @classmethod
    def create(
        cls,
        ncol: int,
        nrow: int,
        xmin: float,
        xmax: float,
        ymin: float,
        ymax: float,
        *,
        crs: str | None = DEFAULT_CRS,
    ) -> "RasterGrid":
        """Allocate an empty raster over the given extent."""
        raster = cls(ncol=ncol, nrow=nrow, extent=Extent(xmin, xmax, ymin, ymax), crs=crs)
        LOGGER.debug(
            "Created %sx%s raster over %s",
            raster.nrow,
            raster.ncol,
            raster.extent.as_tuple(),
        )
        return raster

    @property
    def ncell(self) -> int:
        return self.nrow * self.ncol

    @property
    def shape(self) -> tuple[int, int]:
        return (self.nrow, self.ncol)

    @property
    def resolution(self) -> Resolution:
        """Cell size as (x, y)."""
        return (self.extent.width / self.ncol, self.extent.height / self.nrow)

    @property
    def transform(self) -> Affine:
        """Affine transform from (col, row) to (x, y)."""
        xmin, ymin, xmax, ymax = self.extent.as_bounds()
        return from_bounds(xmin, ymin, xmax, ymax, self.ncol, self.nrow)

    @property
    def has_values(self) -> bool:
        return bool(np.isfinite(self._cells).any())

    def set_values(self, values: Any) -> None:
        """Replace every cell value, row-major; the length must equal ncell."""
        try:
            array = np.asarray(values, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise MalformedInput(f"Raster values must be numeric: {exc}") from exc
        if array.ndim == 2 and array.shape != self.shape:
            raise DimensionMismatch(
                f"Value grid has shape {array.shape}, raster is {self.shape}."
            )
        if array.ndim > 2:
            raise DimensionMismatch(f"Values must be 1-D or 2-D, got shape {array.shape}.")
        flat = array.reshape(-1)
        if flat.size != self.ncell:
            raise DimensionMismatch(f"Got {flat.size} values for {self.ncell} cells.")
        self._cells = flat.copy()

    def values(self) -> np.ndarray:
        """Return a flat, row-major copy of the cell values."""
        return self._cells.copy()

    def as_array(self) -> np.ndarray:
        """Return a (nrow, ncol) copy of the cell values."""
        return self._cells.reshape(self.shape).copy()

    def _check_cell(self, row: int, col: int) -> None:
        if not (0 <= row < self.nrow and 0 <= col < self.ncol):
            raise IndexError(f"Cell ({row}, {col}) outside {self.nrow} x {self.ncol} raster.")

    def cell(self, row: int, col: int) -> float:
        """Return the value stored at (row, col)."""
        self._check_cell(row, col)
        return float(self._cells[row * self.ncol + col])

    def xy(self, row: int, col: int) -> tuple[float, float]:
        """Return the coordinates of a cell centre."""
        self._check_cell(row, col)
        x, y = self.transform * (col + 0.5, row + 0.5)
        return (float(x), float(y))

    def rowcol(self, x: float, y: float) -> tuple[int, int]:
        """Return the (row, col) of the cell containing a coordinate."""
        if not (
            self.extent.xmin <= x <= self.extent.xmax and self.extent.ymin <= y <= self.extent.ymax
        ):
            raise IndexError(f"Coordinate ({x}, {y}) outside raster extent.")
        col_f, row_f = ~self.transform * (x, y)
        row, col = math.floor(row_f), math.floor(col_f)
        # the max edges belong to the last row/col
        if math.isclose(x, self.extent.xmax):
            col = self.ncol - 1
        if math.isclose(y, self.extent.ymin):
            row = self.nrow - 1
        self._check_cell(row, col)
        return (row, col)

    def value_range(self) -> tuple[float, float] | None:
        """Return (min, max) of populated cells, or None if no cell has a value."""
        if not self.has_values:
            return None
        return (float(np.nanmin(self._cells)), float(np.nanmax(self._cells)))

    def summary(self) -> dict[str, Any]:
        return {
            "class": "RasterGrid",
            "dimensions": (self.nrow, self.ncol, 1),
            "resolution": self.resolution,
            "extent": self.extent.as_tuple(),
            "crs": self.crs,
            "ncell": self.ncell,
            "value_range": self.value_range(),
        }

    def describe(self) -> str:
        info = self.summary()
        res_x, res_y = info["resolution"]
        lines = [
            f" class       : {info['class']}",
            f" dimensions  : {self.nrow}, {self.ncol}, 1  (nrow, ncol, nlyr)",
            f" resolution  : {res_x:g}, {res_y:g}  (x, y)",
            " extent      : "
            + ", ".join(f"{value:g}" for value in info["extent"])
            + "  (xmin, xmax, ymin, ymax)",
            f" coord. ref. : {info['crs'] or ''}",
        ]
        value_range = info["value_range"]
        if value_range is not None:
            lines.append(f" min value   : {value_range[0]:g}")
            lines.append(f" max value   : {value_range[1]:g}")
        return "\n".join(lines)
