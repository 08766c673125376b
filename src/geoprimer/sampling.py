"""Simulated sample data for the walkthrough."""

from __future__ import annotations

import logging

import numpy as np

from geoprimer.errors import MalformedInput
from geoprimer.models import DEFAULT_CRS
from geoprimer.vector import VectorLayer, points

LOGGER = logging.getLogger("geoprimer.sampling")

STATION_LON_RANGE = (-116, 110)
STATION_LAT_RANGE = (36, 45)
PRECIP_SIZE_DIVISOR = 500.0


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Return an independent random generator; None draws fresh entropy."""
    return np.random.default_rng(seed)


def uniform_values(
    n: int,
    low: float = 0.0,
    high: float = 1.0,
    *,
    rng: np.random.Generator | None = None,
    seed: int | None = None,
) -> np.ndarray:
    """Draw n values uniformly from [low, high)."""
    if n < 0:
        raise MalformedInput(f"Cannot draw a negative number of values: {n}")
    if high < low:
        raise MalformedInput(f"Uniform range is inverted: low={low}, high={high}")
    generator = rng if rng is not None else make_rng(seed)
    return generator.uniform(low, high, size=n)


def simulate_precipitation(
    count: int,
    *,
    rng: np.random.Generator,
) -> tuple[np.ndarray, np.ndarray]:
    """Return (precip, psize): cubed uniform rainfall and its marker size."""
    precip = np.round((rng.uniform(0.0, 1.0, size=count) * 10.0) ** 3)
    psize = 1.0 + precip / PRECIP_SIZE_DIVISOR
    return precip, psize


def simulate_stations(
    count: int = 20,
    *,
    seed: int | None = 20,
    crs: str | None = DEFAULT_CRS,
) -> VectorLayer:
    """Simulate rainfall stations as a point layer with precip and psize fields.

    Longitudes are whole degrees drawn without replacement, latitudes whole
    degrees drawn with replacement.
    """
    lon_low, lon_high = STATION_LON_RANGE
    lat_low, lat_high = STATION_LAT_RANGE
    population = lon_high - lon_low + 1
    if count < 1:
        raise MalformedInput(f"Station count must be positive, got {count}.")
    if count > population:
        raise MalformedInput(
            f"Cannot draw {count} distinct longitudes from {population} candidates."
        )
    rng = make_rng(seed)
    lon = rng.choice(np.arange(lon_low, lon_high + 1), size=count, replace=False)
    lat = rng.integers(lat_low, lat_high, size=count, endpoint=True)
    precip, psize = simulate_precipitation(count, rng=rng)
    LOGGER.debug("Simulated %s stations (seed=%s)", count, seed)
    return points(
        lon.astype(float),
        lat.astype(float),
        crs=crs,
        attributes={"precip": precip, "psize": psize},
    )
