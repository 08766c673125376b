"""Bundled JSON schemas."""
