# flowdeps/core/pipeline.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from flowdeps.config.settings import ProjectConfig
from flowdeps.core.loader import FileLoader, Loader, normalize_location
from flowdeps.core.program import Program
from flowdeps.core.resolver import ImportResolver
from flowdeps.exceptions import ConfigError

log = structlog.get_logger(__name__)


@dataclass
class DeploymentStep:
    """One contract deployment, in the position it has to happen."""
    position: int
    name: str
    location: str
    account_name: Optional[str]
    account_address: Optional[str]
    args: List[Any] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    aliases: Dict[str, str] = field(default_factory=dict)
    code: str = ""

    @classmethod
    def from_program(cls, position: int, program: Program) -> "DeploymentStep":
        return cls(
            position=position,
            name=program.name,
            location=program.location,
            account_name=program.account_name,
            account_address=program.account_address,
            args=list(program.args),
            dependencies=[dep.name for dep in program.dependency_programs],
            aliases=dict(program.aliases),
            code=program.replaced_code(),
        )

    def to_dict(self, include_code: bool = False) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "position": self.position,
            "name": self.name,
            "location": self.location,
            "account": {"name": self.account_name, "address": self.account_address},
            "args": self.args,
            "dependencies": self.dependencies,
            "aliases": self.aliases,
        }
        if include_code:
            result["code"] = self.code
        return result


@dataclass
class DeploymentPlan:
    network: str
    steps: List[DeploymentStep] = field(default_factory=list)

    def names(self) -> List[str]:
        return [step.name for step in self.steps]

    def to_dict(self, include_code: bool = False) -> Dict[str, Any]:
        return {
            "network": self.network,
            "steps": [step.to_dict(include_code=include_code) for step in self.steps],
        }


class DeploymentPlanner:
    # turns a project config into an ordered deployment plan for one network.
    def __init__(self, config: ProjectConfig, network: Optional[str] = None, loader: Optional[Loader] = None):
        self.config = config
        self.network = network or config.network
        self.loader: Loader = loader or FileLoader(config.base_dir, contract_sources=self.contract_sources())
        self.log = structlog.get_logger(f"{__name__}.{self.__class__.__name__}")

    def contract_sources(self) -> Dict[str, str]:
        # contract name -> normalized source, for name imports like `import "Foo"`.
        return {name: normalize_location(c.source) for name, c in self.config.contracts.items()}

    def alias_table(self) -> Dict[str, str]:
        # normalized source location -> address, for contracts already deployed on the network.
        table: Dict[str, str] = {}
        for contract in self.config.contracts.values():
            address = contract.alias_for(self.network)
            if address:
                table[normalize_location(contract.source)] = address
        return table

    def build_resolver(self) -> ImportResolver:
        deployments = self.config.deployments_for(self.network)
        if not deployments:
            raise ConfigError(f"no deployments configured for network: {self.network}")

        resolver = ImportResolver(self.loader, self.alias_table())
        for account_name, entries in deployments.items():
            account = self.config.accounts[account_name]
            for entry in entries:
                contract = self.config.contracts[entry.contract]
                resolver.add(
                    normalize_location(contract.source),
                    account_address=account.address,
                    account_name=account.name,
                    args=entry.args,
                )
        return resolver

    def plan(self) -> DeploymentPlan:
        self.log.info("planning_deployment", network=self.network)
        resolver = self.build_resolver()
        ordered = resolver.sort()
        plan = DeploymentPlan(
            network=self.network,
            steps=[DeploymentStep.from_program(i, p) for i, p in enumerate(ordered, start=1)],
        )
        self.log.info("deployment_planned", network=self.network, contracts=len(plan.steps))
        return plan
