from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


DEFAULT_NETWORK = "emulator"
KNOWN_NETWORKS = ("emulator", "testnet", "mainnet")

@dataclass
class AccountConfig:
    # a named account that contracts get deployed to.
    name: str
    address: str

@dataclass
class ContractConfig:
    # a contract source plus the addresses it is already deployed at, per network.
    name: str
    source: str
    aliases: Dict[str, str] = field(default_factory=dict)

    def alias_for(self, network: str) -> Optional[str]:
        return self.aliases.get(network)

@dataclass
class DeploymentEntry:
    # one contract to deploy to an account, with its init arguments.
    contract: str
    args: List[Any] = field(default_factory=list)

@dataclass
class ProjectConfig:
    # holds the project description for a single run.
    accounts: Dict[str, AccountConfig] = field(default_factory=dict)
    contracts: Dict[str, ContractConfig] = field(default_factory=dict)
    # network -> account name -> entries, in file order.
    deployments: Dict[str, Dict[str, List[DeploymentEntry]]] = field(default_factory=dict)
    network: str = DEFAULT_NETWORK
    base_dir: Path = field(default_factory=lambda: Path.cwd().resolve())

    def deployments_for(self, network: str) -> Dict[str, List[DeploymentEntry]]:
        return self.deployments.get(network, {})
