# flowdeps/config/loader.py
"""
Handles loading, validating and saving of project configuration from/to TOML files.
"""
import toml
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
import structlog

from flowdeps.exceptions import ConfigError
from flowdeps.util import hex_to_address

from .settings import AccountConfig, ContractConfig, DeploymentEntry, ProjectConfig, DEFAULT_NETWORK

log = structlog.get_logger(__name__)

PROJECT_CONFIG_FILENAMES = [".flowdeps.toml", "flowdeps.toml", "pyproject.toml"]
USER_CONFIG_DIR = Path.home() / ".config" / "flowdeps"
USER_CONFIG_FILE = USER_CONFIG_DIR / "config.toml"
MERGED_TABLES = ("accounts", "contracts", "deployments")


def string_to_address(value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"invalid address {value!r}: expected a hex string")
    try:
        return hex_to_address(value)
    except ValueError as e:
        raise ConfigError(f"invalid address {value!r}: {e}") from e


def _load_toml_file_data(file_path: Path) -> Dict[str, Any]:
    if not file_path.is_file():
        return {}
    log.debug("loading_toml_config_file", path=str(file_path))
    try:
        data = toml.load(file_path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ConfigError(f"could not read config file: {e}", source=file_path) from e
    return data.get("tool", {}).get("flowdeps", {}) if file_path.name == "pyproject.toml" else data


def find_project_config_file(base_dir: Optional[Path] = None) -> Optional[Path]:
    root = base_dir or Path.cwd()
    for filename in PROJECT_CONFIG_FILENAMES:
        candidate = root / filename
        if candidate.is_file() and (filename != "pyproject.toml" or _load_toml_file_data(candidate)):
            return candidate
    return None


def load_and_merge_configs(base_dir: Optional[Path] = None) -> Dict[str, Any]:
    # user-global settings first, project-local settings merged over them table by table.
    merged: Dict[str, Any] = {}
    if USER_CONFIG_FILE.is_file():
        log.info("loading_user_global_config", path=str(USER_CONFIG_FILE))
        merged.update(_load_toml_file_data(USER_CONFIG_FILE))

    project_file = find_project_config_file(base_dir)
    if project_file is not None:
        log.info("loading_project_local_config", path=str(project_file))
        project_settings = _load_toml_file_data(project_file)
        for table in MERGED_TABLES:
            user_table = merged.get(table, {})
            project_table = project_settings.pop(table, {})
            if isinstance(user_table, dict) and isinstance(project_table, dict):
                user_table.update(project_table)
                merged[table] = user_table
            else:
                merged[table] = project_table
        merged.update(project_settings)

    if not merged:
        log.debug("no_configuration_files_loaded")
    return merged


def _require_table(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"{what} must be a table, got {type(value).__name__}")
    return value


def _parse_deployment_entry(raw: Any, network: str, account: str) -> DeploymentEntry:
    if isinstance(raw, str):
        return DeploymentEntry(contract=raw)
    if isinstance(raw, dict) and isinstance(raw.get("name"), str):
        args = raw.get("args", [])
        if not isinstance(args, list):
            raise ConfigError(f"deployment args for {raw['name']} on {network}/{account} must be a list")
        return DeploymentEntry(contract=raw["name"], args=list(args))
    raise ConfigError(f"invalid deployment entry on {network}/{account}: {raw!r}")


def parse_project_config(raw: Mapping[str, Any], base_dir: Optional[Path] = None) -> ProjectConfig:
    """Validate raw TOML data and build a ProjectConfig from it.

    Raises ConfigError for invalid addresses, contracts without a source and
    deployments that reference unknown accounts or contracts.
    """
    config = ProjectConfig(network=str(raw.get("network", DEFAULT_NETWORK)))
    if base_dir is not None:
        config.base_dir = Path(base_dir).resolve()

    for name, table in _require_table(raw.get("accounts", {}), "accounts").items():
        if not isinstance(table, dict) or "address" not in table:
            raise ConfigError(f"account {name} must define an address")
        config.accounts[name] = AccountConfig(name=name, address=string_to_address(table["address"]))

    for name, table in _require_table(raw.get("contracts", {}), "contracts").items():
        if isinstance(table, str):
            table = {"source": table}
        if not isinstance(table, dict) or not table.get("source"):
            raise ConfigError(f"contract {name} must define a source")
        aliases = {
            network: string_to_address(address)
            for network, address in _require_table(table.get("aliases", {}), f"aliases of contract {name}").items()
        }
        config.contracts[name] = ContractConfig(name=name, source=str(table["source"]), aliases=aliases)

    for network, accounts in _require_table(raw.get("deployments", {}), "deployments").items():
        _require_table(accounts, f"deployments for network {network}")
        network_deployments: Dict[str, List[DeploymentEntry]] = {}
        for account, entries in accounts.items():
            if account not in config.accounts:
                raise ConfigError(f"deployment on {network} references unknown account: {account}")
            if not isinstance(entries, list):
                raise ConfigError(f"deployments for {network}/{account} must be a list of contracts")
            parsed = [_parse_deployment_entry(entry, network, account) for entry in entries]
            for entry in parsed:
                if entry.contract not in config.contracts:
                    raise ConfigError(f"deployment on {network}/{account} references unknown contract: {entry.contract}")
            network_deployments[account] = parsed
        config.deployments[network] = network_deployments

    log.debug(
        "project_config_parsed",
        accounts=len(config.accounts),
        contracts=len(config.contracts),
        networks=sorted(config.deployments),
    )
    return config


def load_project_config(base_dir: Optional[Path] = None) -> ProjectConfig:
    root = (base_dir or Path.cwd()).resolve()
    return parse_project_config(load_and_merge_configs(root), base_dir=root)


def add_contract_to_config(
    name: str,
    filename: str,
    aliases: Optional[Mapping[str, str]] = None,
    base_dir: Optional[Path] = None,
) -> Path:
    """Add or update a contract in the project's .flowdeps.toml.

    Returns the path of the written config file.
    """
    root = (base_dir or Path.cwd()).resolve()
    if not name:
        raise ConfigError("name must be provided")
    if not filename:
        raise ConfigError("contract file name must be provided")
    if not (root / filename).is_file():
        raise ConfigError(f"contract file doesn't exist: {filename}")

    normalized_aliases = {
        network: string_to_address(address)
        for network, address in (aliases or {}).items()
        if address
    }

    target = root / ".flowdeps.toml"
    if not target.exists() and (root / "flowdeps.toml").exists():
        target = root / "flowdeps.toml"
    log.info("adding_contract_to_config", contract=name, path=str(target))

    existing: Dict[str, Any] = {}
    if target.exists():
        try:
            existing = toml.load(target)
        except toml.TomlDecodeError as e:
            raise ConfigError(f"could not read existing TOML to add contract: {e}", source=target) from e

    entry: Dict[str, Any] = {"source": filename}
    if normalized_aliases:
        entry["aliases"] = normalized_aliases
    existing.setdefault("contracts", {})[name] = entry

    try:
        with target.open("w", encoding="utf-8") as f:
            toml.dump(existing, f)
    except OSError as e:
        raise ConfigError(f"error writing contract '{name}': {e}", source=target) from e
    log.info("contract_saved_to_config", contract=name, path=str(target))
    return target
