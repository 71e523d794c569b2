"""Rendering of contexts into files."""
