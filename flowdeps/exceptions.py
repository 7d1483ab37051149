# flowdeps/exceptions.py
from pathlib import Path
from typing import Optional, Union


class FlowDepsError(Exception):
    """Base class for errors the CLI reports as ``Error: <message>``."""


class ConfigError(FlowDepsError):
    # invalid or unreadable project configuration; ``source`` is the offending file, when known.
    def __init__(self, message: str, source: Optional[Union[str, Path]] = None):
        self.source = Path(source) if source is not None else None
        super().__init__(f"{self.source}: {message}" if self.source else message)


class OutputError(FlowDepsError):
    # a plan could not be written to its destination.
    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"failed to write to file '{self.path}': {reason}")


class LoadError(FlowDepsError):
    # source for a location could not be read.
    def __init__(self, location: str, reason: str):
        self.location = location
        self.reason = reason
        super().__init__(f"failed to load source from {location}: {reason}")


class ImportParseError(FlowDepsError):
    # source text contains an import statement that could not be parsed.
    def __init__(self, line_number: int, line: str):
        self.line_number = line_number
        self.line = line
        super().__init__(f"malformed import on line {line_number}: {line.strip()}")


class DuplicateProgramError(FlowDepsError):
    # a location was registered twice with the same resolver.
    def __init__(self, location: str):
        self.location = location
        super().__init__(f"program already added for location: {location}")


class UnresolvedImportError(FlowDepsError):
    # an import matches neither a registered program nor an alias.
    def __init__(self, program, location: str):
        self.program = program
        self.location = location
        super().__init__(
            f"import from {program.name} could not be found: {location}, "
            "make sure import path is correct"
        )


class NotSortableError(FlowDepsError):
    # sorting was requested while a non-contract program is registered.
    def __init__(self, program=None):
        self.program = program
        message = "sorting is only possible for contracts"
        if program is not None:
            message += f" ({program.name} is a {program.kind.value})"
        super().__init__(message)


class CyclicImportError(FlowDepsError):
    """Raised when contracts import each other in a cycle that can't be deployed.

    ``cycles`` holds every offending group of programs, so callers can report
    all of them at once.
    """

    def __init__(self, cycles):
        self.cycles = [list(cycle) for cycle in cycles]
        super().__init__(f"contracts: import cycle(s) detected: {self.contract_names()}")

    def contract_names(self):
        return [[program.name for program in cycle] for cycle in self.cycles]
