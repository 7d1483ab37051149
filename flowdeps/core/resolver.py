# flowdeps/core/resolver.py
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

import structlog

from flowdeps.core.graph import build_dependency_graph, stabilized_topological_sort
from flowdeps.core.loader import Loader
from flowdeps.core.program import Program
from flowdeps.exceptions import DuplicateProgramError, NotSortableError, UnresolvedImportError

log = structlog.get_logger(__name__)


class ImportResolver:
    """
    Holds a set of Cadence programs and resolves the imports between them.

    Programs are registered with ``add``; ``resolve_imports`` links every import
    to either another registered program or an entry of the alias table, and
    ``sort`` puts the contracts in deployment order.

    A resolver is meant for one resolution task and a single caller.
    """

    def __init__(self, loader: Loader, aliases: Optional[Mapping[str, str]] = None):
        self.loader = loader
        self.aliases: Mapping[str, str] = MappingProxyType(dict(aliases or {}))
        self.programs: List[Program] = []
        self.programs_by_location: Dict[str, Program] = {}

    def add(
        self,
        location: str,
        account_address: Optional[str] = None,
        account_name: Optional[str] = None,
        args: Sequence[Any] = (),
    ) -> Program:
        """Load the source at ``location`` and register it as a new program.

        Raises LoadError when the source can't be read, ImportParseError when
        its imports can't be parsed and DuplicateProgramError when the location
        is already registered. Imports are not resolved here.
        """
        if location in self.programs_by_location:
            raise DuplicateProgramError(location)

        code = self.loader.load(location)
        program = Program(
            index=len(self.programs),
            location=location,
            code=code,
            account_address=account_address,
            account_name=account_name,
            args=tuple(args),
        )

        self.programs.append(program)
        self.programs_by_location[program.location] = program
        log.debug("program_added", location=location, index=program.index, kind=program.kind.value)
        return program

    def resolve_imports(self) -> None:
        """Link every program import to a registered program or an alias.

        Programs are visited in registration order and imports in source order;
        the first import that resolves to neither raises UnresolvedImportError.
        Existing links are dropped first, so calling this again is safe.
        """
        for program in self.programs:
            program.clear_imports()

        for program in self.programs:
            for location in program.import_locations:
                import_path = self.loader.normalize(program.location, location)
                dependency = self.programs_by_location.get(import_path)

                if dependency is not None:
                    program.add_dependency(location, dependency)
                elif import_path in self.aliases:
                    program.add_alias(location, self.aliases[import_path])
                else:
                    raise UnresolvedImportError(program, location)

        log.debug("imports_resolved", programs=len(self.programs))

    def sort(self) -> List[Program]:
        """Sort contracts by deployment order.

        Any imported contract must be deployed before the contract importing it,
        and contracts without an ordering constraint keep their registration
        order. Only applicable when every program is a contract.
        """
        for program in self.programs:
            if not program.is_contract():
                raise NotSortableError(program)

        self.resolve_imports()

        graph = build_dependency_graph(self.programs)
        self.programs = stabilized_topological_sort(graph)
        log.debug("programs_sorted", order=[p.name for p in self.programs])
        return self.programs
