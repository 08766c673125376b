"""Exception types raised by geoprimer."""

from __future__ import annotations


class GeoPrimerError(ValueError):
    """Base class for geoprimer errors."""


class InvalidGeometry(GeoPrimerError):
    """Too few (or non-finite) coordinates for the requested geometry kind."""


class MalformedInput(GeoPrimerError):
    """Coordinate, part or table inputs do not line up."""


class InvalidCrs(MalformedInput):
    """A CRS descriptor could not be parsed."""


class DimensionMismatch(GeoPrimerError):
    """Value count does not match the feature or cell count."""


class ConfigError(GeoPrimerError):
    """A tutorial config payload failed validation."""
