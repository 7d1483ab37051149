# flowdeps/core/__init__.py
"""
Import resolution and deployment ordering for Cadence programs.
"""
from .program import Program, ProgramKind
from .resolver import ImportResolver

__all__ = ["ImportResolver", "Program", "ProgramKind"]
