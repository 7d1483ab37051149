# flowdeps/core/program.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from flowdeps.core.imports import declared_name, extract_imports, replace_imports


class ProgramKind(Enum):
    # classifies a source unit; only contracts can be deployed and sorted.
    CONTRACT = "contract"
    SCRIPT = "script"


@dataclass(eq=False)
class Program:
    """A single Cadence source unit (contract, script or transaction).

    ``index``, ``location``, ``code``, the account fields and ``args`` are fixed
    at creation. ``dependencies`` and ``aliases`` are only filled in by
    ``ImportResolver.resolve_imports``; both are keyed by the import location
    as written in the source.

    Programs compare by identity, so they can be used as graph nodes.
    """
    index: int
    location: str
    code: str
    account_address: Optional[str] = None
    account_name: Optional[str] = None
    args: Tuple[Any, ...] = ()
    import_locations: List[str] = field(init=False)
    kind: ProgramKind = field(init=False)
    dependencies: Dict[str, "Program"] = field(init=False, default_factory=dict, repr=False)
    aliases: Dict[str, str] = field(init=False, default_factory=dict)
    _declared_name: Optional[str] = field(init=False, default=None, repr=False)

    def __post_init__(self):
        self.args = tuple(self.args)
        self.import_locations = extract_imports(self.code)
        self._declared_name = declared_name(self.code)
        self.kind = ProgramKind.CONTRACT if self._declared_name else ProgramKind.SCRIPT

    @property
    def name(self) -> str:
        # declared contract name, or the location for scripts and transactions.
        return self._declared_name or self.location

    def is_contract(self) -> bool:
        return self.kind is ProgramKind.CONTRACT

    @property
    def dependency_programs(self) -> List["Program"]:
        # unique dependencies in first-import order.
        unique: Dict[int, Program] = {}
        for dep in self.dependencies.values():
            unique.setdefault(id(dep), dep)
        return list(unique.values())

    def add_dependency(self, location: str, program: "Program") -> None:
        self.dependencies[location] = program

    def add_alias(self, location: str, address: str) -> None:
        self.aliases[location] = address

    def clear_imports(self) -> None:
        self.dependencies.clear()
        self.aliases.clear()

    def import_addresses(self) -> Dict[str, str]:
        """Map every resolved import location to the address it will be loaded from.

        Dependencies resolve to their target account, aliases to the alias address.
        Dependencies without a target account are left out.
        """
        addresses: Dict[str, str] = {
            location: dep.account_address
            for location, dep in self.dependencies.items()
            if dep.account_address
        }
        addresses.update(self.aliases)
        return addresses

    def replaced_code(self, addresses: Optional[Mapping[str, str]] = None) -> str:
        # source with resolved string imports rewritten as address imports.
        return replace_imports(self.code, addresses if addresses is not None else self.import_addresses())
