"""flowdeps: resolve Cadence contract imports and plan deployment order."""

__version__ = "0.3.0"
