"""Tests for deployment planning from a project config."""
import json
from pathlib import Path

import pytest

from flowdeps.config.loader import parse_project_config
from flowdeps.core.output import format_cycles, render_plan_json, render_plan_table
from flowdeps.core.pipeline import DeploymentPlanner
from flowdeps.exceptions import ConfigError, CyclicImportError, UnresolvedImportError

EMULATOR_ADDRESS = "0xf8d6e0586b0a20c7"
FT_ALIAS = "0xee82856bf20e2aa6"


def write(root: Path, rel: str, text: str):
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture
def nft_project(tmp_path: Path):
    """Kitty imports NonFungibleToken (deployed here) and FungibleToken (aliased)."""
    write(tmp_path, "contracts/NonFungibleToken.cdc", "access(all) contract interface NonFungibleToken {}\n")
    write(tmp_path, "contracts/FungibleToken.cdc", "access(all) contract interface FungibleToken {}\n")
    write(tmp_path, "contracts/Kitty.cdc", (
        'import NonFungibleToken from "./NonFungibleToken.cdc"\n'
        'import FungibleToken from "./FungibleToken.cdc"\n'
        "\n"
        "access(all) contract Kitty {}\n"
    ))
    raw = {
        "accounts": {"emulator-account": {"address": "f8d6e0586b0a20c7"}},
        "contracts": {
            "NonFungibleToken": "./contracts/NonFungibleToken.cdc",
            "FungibleToken": {"source": "./contracts/FungibleToken.cdc", "aliases": {"emulator": FT_ALIAS}},
            "Kitty": "./contracts/Kitty.cdc",
        },
        "deployments": {
            "emulator": {"emulator-account": [{"name": "Kitty", "args": ["meow"]}, "NonFungibleToken"]},
        },
    }
    return parse_project_config(raw, base_dir=tmp_path)


def test_alias_table_uses_normalized_sources(nft_project):
    planner = DeploymentPlanner(nft_project, network="emulator")
    assert planner.alias_table() == {"contracts/FungibleToken.cdc": FT_ALIAS}
    assert DeploymentPlanner(nft_project, network="testnet").alias_table() == {}


def test_plan_orders_dependencies_first(nft_project):
    plan = DeploymentPlanner(nft_project).plan()
    assert plan.network == "emulator"
    assert plan.names() == ["NonFungibleToken", "Kitty"]

    nft, kitty = plan.steps
    assert nft.position == 1 and kitty.position == 2
    assert kitty.location == "contracts/Kitty.cdc"
    assert kitty.account_name == "emulator-account"
    assert kitty.account_address == EMULATOR_ADDRESS
    assert kitty.args == ["meow"]
    assert kitty.dependencies == ["NonFungibleToken"]
    assert kitty.aliases == {"./FungibleToken.cdc": FT_ALIAS}


def test_plan_code_has_address_imports(nft_project):
    kitty = DeploymentPlanner(nft_project).plan().steps[1]
    assert kitty.code.splitlines()[:2] == [
        f"import NonFungibleToken from {EMULATOR_ADDRESS}",
        f"import FungibleToken from {FT_ALIAS}",
    ]


def test_plan_without_alias_for_network_is_unresolved(nft_project):
    nft_project.deployments["testnet"] = nft_project.deployments["emulator"]
    with pytest.raises(UnresolvedImportError) as exc_info:
        DeploymentPlanner(nft_project, network="testnet").plan()
    assert exc_info.value.location == "./FungibleToken.cdc"


def test_plan_unknown_network(nft_project):
    with pytest.raises(ConfigError, match="no deployments configured for network: mainnet"):
        DeploymentPlanner(nft_project, network="mainnet").plan()


def test_plan_reports_cycles(tmp_path: Path):
    write(tmp_path, "A.cdc", 'import B from "./B.cdc"\naccess(all) contract A {}\n')
    write(tmp_path, "B.cdc", 'import A from "./A.cdc"\naccess(all) contract B {}\n')
    config = parse_project_config({
        "accounts": {"alice": {"address": "0x01"}},
        "contracts": {"A": "A.cdc", "B": "B.cdc"},
        "deployments": {"emulator": {"alice": ["A", "B"]}},
    }, base_dir=tmp_path)
    with pytest.raises(CyclicImportError) as exc_info:
        DeploymentPlanner(config).plan()
    assert format_cycles(exc_info.value) == ["A -> B -> A"]


def test_render_plan_json(nft_project):
    plan = DeploymentPlanner(nft_project).plan()
    data = json.loads(render_plan_json(plan))
    assert data["network"] == "emulator"
    assert [s["name"] for s in data["steps"]] == ["NonFungibleToken", "Kitty"]
    assert data["steps"][1]["account"] == {"name": "emulator-account", "address": EMULATOR_ADDRESS}
    assert "code" not in data["steps"][1]
    with_code = json.loads(render_plan_json(plan, include_code=True))
    assert with_code["steps"][1]["code"].startswith(f"import NonFungibleToken from {EMULATOR_ADDRESS}")


def test_render_plan_table(nft_project):
    table = render_plan_table(DeploymentPlanner(nft_project).plan())
    assert table.row_count == 2
    assert table.title == "Deployment order (emulator)"


def test_plan_resolves_name_imports(tmp_path: Path):
    write(tmp_path, "contracts/NFT.cdc", "access(all) contract interface NFT {}\n")
    write(tmp_path, "contracts/Views.cdc", "access(all) contract Views {}\n")
    write(tmp_path, "contracts/Kitty.cdc", (
        'import "NFT"\n'
        'import "Views"\n'
        "access(all) contract Kitty {}\n"
    ))
    config = parse_project_config({
        "accounts": {"emulator-account": {"address": "f8d6e0586b0a20c7"}},
        "contracts": {
            "NFT": "./contracts/NFT.cdc",
            "Views": {"source": "./contracts/Views.cdc", "aliases": {"emulator": FT_ALIAS}},
            "Kitty": "./contracts/Kitty.cdc",
        },
        "deployments": {"emulator": {"emulator-account": ["Kitty", "NFT"]}},
    }, base_dir=tmp_path)

    plan = DeploymentPlanner(config).plan()
    assert plan.names() == ["NFT", "Kitty"]
    kitty = plan.steps[1]
    assert kitty.dependencies == ["NFT"]
    assert kitty.aliases == {"Views": FT_ALIAS}
    assert kitty.code.splitlines()[:2] == [
        f"import NFT from {EMULATOR_ADDRESS}",
        f"import Views from {FT_ALIAS}",
    ]


def test_plan_name_import_of_unconfigured_contract_is_unresolved(tmp_path: Path):
    write(tmp_path, "Kitty.cdc", 'import "Missing"\naccess(all) contract Kitty {}\n')
    config = parse_project_config({
        "accounts": {"alice": {"address": "0x01"}},
        "contracts": {"Kitty": "Kitty.cdc"},
        "deployments": {"emulator": {"alice": ["Kitty"]}},
    }, base_dir=tmp_path)
    with pytest.raises(UnresolvedImportError) as exc_info:
        DeploymentPlanner(config).plan()
    assert exc_info.value.location == "Missing"
