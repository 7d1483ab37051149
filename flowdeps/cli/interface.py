# flowdeps/cli/interface.py
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
from click_option_group import optgroup
from rich.console import Console as RichConsole
import structlog

from flowdeps import __version__ as app_version
from flowdeps.config.loader import add_contract_to_config, load_project_config
from flowdeps.config.settings import KNOWN_NETWORKS
from flowdeps.core.loader import FileLoader
from flowdeps.core.output import format_cycles, render_plan_json, render_plan_table, write_to_file, write_to_stdout
from flowdeps.core.pipeline import DeploymentPlanner
from flowdeps.core.program import Program
from flowdeps.exceptions import CyclicImportError, FlowDepsError
from flowdeps.logging_setup import configure_logging, log_level_for_verbosity

log = structlog.get_logger(__name__)

OUTPUT_FORMATS = ("table", "json")


def _exit_with_error(e: Exception):
    # reports an error on stderr and exits with status 1.
    if isinstance(e, CyclicImportError):
        log.error("import_cycles_detected", cycles=e.contract_names())
        click.secho("Error: import cycle(s) detected:", fg="red", err=True)
        for line in format_cycles(e):
            click.secho(f"  {line}", fg="red", err=True)
    elif isinstance(e, FlowDepsError):
        log.error("handled_application_error_in_cli", error_type=type(e).__name__, message=str(e))
        click.secho(f"Error: {e}", fg="red", err=True)
    else:
        log.critical("unexpected_critical_error_in_cli", message=str(e), exc_info=True)
        click.secho(f"Unexpected critical error: {e}. Please report this.", fg="red", err=True)
    sys.exit(1)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("--verbose", "-v", "verbosity_level", count=True, help="Verbosity: -v info, -vv debug.")
@click.option("--force-json-logs", "force_json_logs_cli", is_flag=True, default=False, help="Force JSON logs.")
@click.version_option(version=app_version, prog_name="flowdeps", help="Show version and exit.")
@click.pass_context
def main_cli_group(ctx: click.Context, verbosity_level: int, force_json_logs_cli: bool):
    """flowdeps: resolve Cadence contract imports and compute a
    deterministic deployment order."""
    configure_logging(log_level_str=log_level_for_verbosity(verbosity_level), force_json_logs=force_json_logs_cli)
    ctx.ensure_object(dict)


@main_cli_group.command("order")
@optgroup.group("Project Options", help="Which project and network to plan for.")
@optgroup.option("-p", "--project-dir", "project_dir", type=click.Path(exists=True, file_okay=False, path_type=Path), default=None, help="Project root holding the config file. Default: current directory.")
@optgroup.option("-n", "--network", "network", default=None, help=f"Network to plan for, e.g. {', '.join(KNOWN_NETWORKS)}. Default: the config's network.")
@optgroup.group("Output Options", help="Control the format and destination of the plan.")
@optgroup.option("-F", "--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default="table", help="Output format. Default: table.")
@optgroup.option("-o", "--output", "output_file", type=click.Path(dir_okay=False, writable=True, path_type=Path), default=None, help="Write the plan to a file instead of stdout.")
@optgroup.option("--with-code", "with_code", is_flag=True, default=False, help="Include deploy-ready code (imports replaced by addresses) in JSON output.")
def order_command(project_dir: Optional[Path], network: Optional[str], output_format: str, output_file: Optional[Path], with_code: bool):
    """Print contracts in the order they have to be deployed."""
    try:
        config = load_project_config(project_dir)
        planner = DeploymentPlanner(config, network=network)
        plan = planner.plan()

        if output_format == "json" or output_file:
            rendered = render_plan_json(plan, include_code=with_code)
            if output_file:
                write_to_file(output_file, rendered)
                click.echo(f"Info: Deployment plan written to: {output_file}", err=True)
            else:
                write_to_stdout(rendered)
        else:
            RichConsole().print(render_plan_table(plan))
    except Exception as e:
        _exit_with_error(e)


@main_cli_group.command("imports")
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def imports_command(source_file: Path):
    """List the import locations of a single Cadence file."""
    try:
        loader = FileLoader(source_file.parent)
        program = Program(index=0, location=source_file.name, code=loader.load(source_file.name))
        click.echo(f"{program.name} ({program.kind.value})")
        for location in program.import_locations:
            click.echo(f"  - {location}")
        if not program.import_locations:
            click.echo("  (no imports)")
    except Exception as e:
        _exit_with_error(e)


@main_cli_group.group("config")
def config_group():
    """Edit the project configuration."""


@config_group.command("add-contract")
@click.option("--name", "name", default="", help="Name of the contract.")
@click.option("--filename", "filename", default="", help="Filename of the contract source.")
@click.option("--emulator-alias", "emulator_alias", default="", help="Address for the emulator alias.")
@click.option("--testnet-alias", "testnet_alias", default="", help="Address for the testnet alias.")
@click.option("-p", "--project-dir", "project_dir", type=click.Path(exists=True, file_okay=False, path_type=Path), default=None, help="Project root holding the config file.")
def add_contract_command(name: str, filename: str, emulator_alias: str, testnet_alias: str, project_dir: Optional[Path]):
    """Add a contract to the project configuration."""
    try:
        aliases: Dict[str, Any] = {"emulator": emulator_alias, "testnet": testnet_alias}
        add_contract_to_config(name, filename, aliases=aliases, base_dir=project_dir)
        click.echo(f"Contract {name} added to the configuration")
    except Exception as e:
        _exit_with_error(e)
