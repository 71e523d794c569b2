"""Compilation of a parsed document into rendering contexts."""
