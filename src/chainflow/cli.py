"""
chainflow CLI - Main entry point.

Provides commands for:
- Executing workflows
- Listing registered node types
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import click

from chainflow.config import get_settings
from chainflow.errors import WorkflowError
from chainflow.observability import setup_logging


LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.version_option(package_name="chainflow")
def cli():
    """chainflow - DAG workflow execution for blockchain operations."""


@cli.command("run")
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--input", "-i", "input_file",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with input items for the start nodes",
)
@click.option(
    "--output", "-o", "output_file",
    type=click.Path(dir_okay=False),
    help="Write the result map to this file instead of stdout",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Override the configured log level",
)
@click.option(
    "--dev-signer", is_flag=True,
    help="Answer x402 payment requests with an unsigned development proof",
)
def run_workflow(
    workflow_file: str,
    input_file: Optional[str],
    output_file: Optional[str],
    log_level: Optional[str],
    dev_signer: bool,
):
    """
    Execute a workflow from a JSON file.

    WORKFLOW_FILE: Path to workflow JSON

    Examples:

        # Run a workflow
        chainflow run ./my-workflow.json

        # With input items and output file
        chainflow run ./workflow.json -i input.json -o output.json
    """
    from chainflow.engine import WorkflowExecutor, parse_workflow
    from chainflow.node_sdk import SIGNER, Collaborators
    from chainflow.nodepacks import default_registry
    from chainflow.nodepacks.x402 import StaticPaymentSigner
    from chainflow.notifications import build_notifier

    settings = get_settings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level.upper()})
    setup_logging(settings)

    workflow_data = _load_json(Path(workflow_file))
    input_data = None
    if input_file:
        input_data = _load_json(Path(input_file))
        if not isinstance(input_data, list):
            click.echo("Error: input file must contain a JSON list of items", err=True)
            sys.exit(1)

    collaborators = Collaborators()
    if dev_signer:
        collaborators.register(SIGNER, StaticPaymentSigner())

    executor = WorkflowExecutor(
        registry=default_registry(discover=True),
        notifier=build_notifier(settings),
        collaborators=collaborators,
        settings=settings,
    )

    try:
        workflow = parse_workflow(workflow_data)
        click.echo(f"Executing workflow: {workflow.name}", err=True)
        click.echo(f"Nodes: {len(workflow.nodes)}", err=True)
        result = executor.execute(workflow, input_data=input_data)
    except WorkflowError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"\nStatus: {result.status.value}", err=True)
    click.echo(f"Duration: {result.duration_ms:.2f}ms", err=True)
    for node_id in result.execution_order:
        node_result = result.node_results[node_id]
        status_icon = "✓" if node_result.is_success else "✗"
        click.echo(f"  {status_icon} {node_result.node_name}: {node_result.status.value}", err=True)

    output = json.dumps(result.data, indent=2, default=str)
    if output_file:
        Path(output_file).write_text(output)
        click.echo(f"\nOutput saved to: {output_file}", err=True)
    else:
        click.echo(output)

    sys.exit(0 if result.is_success else 1)


@cli.command("nodes")
def list_nodes():
    """List registered node types."""
    from chainflow.nodepacks import default_registry

    registry = default_registry(discover=True)
    click.echo("Registered nodes:")
    for node_def in sorted(registry.list_nodes(), key=lambda d: d.node_type):
        pack = f" [{node_def.node_pack}]" if node_def.node_pack else ""
        click.echo(f"  {node_def.node_type}: {node_def.display_name}{pack}")


def _load_json(path: Path):
    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        click.echo(f"Error: Invalid JSON in {path}: {e}", err=True)
        sys.exit(1)


# ==============================================================================
# Entry Point
# ==============================================================================

def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
