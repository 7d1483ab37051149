import json
import sys
from pathlib import Path
from typing import List

import structlog
from rich.table import Table

from flowdeps.core.pipeline import DeploymentPlan
from flowdeps.exceptions import CyclicImportError, OutputError

log = structlog.get_logger(__name__)

def write_to_stdout(text_content: str):
    # writes text to standard output.
    try:
        sys.stdout.write(text_content)
        sys.stdout.flush()
    except UnicodeEncodeError as e:
        log.warning("stdout_write_failed_trying_binary_fallback", error=str(e))
        sys.stdout.buffer.write(text_content.encode("utf-8", errors="replace"))
        sys.stdout.buffer.flush()

def write_to_file(output_file_path: Path, text_content: str):
    # writes text content to the specified file path.
    log.info("writing_output_to_file", path=str(output_file_path))
    try:
        output_file_path.write_text(text_content, encoding="utf-8")
    except OSError as e:
        raise OutputError(output_file_path, e.strerror or str(e)) from e

def render_plan_json(plan: DeploymentPlan, include_code: bool = False) -> str:
    return json.dumps(plan.to_dict(include_code=include_code), indent=2, default=str) + "\n"

def render_plan_table(plan: DeploymentPlan) -> Table:
    # builds a rich table with one row per deployment step.
    table = Table(title=f"Deployment order ({plan.network})")
    table.add_column("#", justify="right")
    table.add_column("Contract", style="bold")
    table.add_column("Account")
    table.add_column("Location")
    table.add_column("Depends on")
    table.add_column("Aliased imports")
    for step in plan.steps:
        table.add_row(
            str(step.position),
            step.name,
            f"{step.account_name} ({step.account_address})",
            step.location,
            ", ".join(step.dependencies) or "-",
            ", ".join(f"{loc} -> {addr}" for loc, addr in step.aliases.items()) or "-",
        )
    return table

def format_cycles(error: CyclicImportError) -> List[str]:
    # one line per cycle, closing back on its first member: "A -> B -> A".
    lines = []
    for names in error.contract_names():
        lines.append(" -> ".join(names + names[:1]))
    return lines
