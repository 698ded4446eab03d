"""Conversion engine: table grid, numbering and per-call context."""
