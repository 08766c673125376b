"""Introductory spatial data structures: vectors, CRSs, rasters and plots."""

__version__ = "0.1.0"
