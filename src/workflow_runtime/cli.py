"""
Guest Workflow Runtime CLI
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict

import click
import yaml

from .config import RuntimeSettings, configure_logging
from .core.graph import WorkflowGraph
from .core.parser import DefinitionParser
from .core.runner import WorkflowRunner
from .core.validators import format_validation_errors
from .exceptions import DefinitionError, InvalidOutputError
from .models.state import WorkflowStatus


def _load_graph(workflow_file: str) -> WorkflowGraph:
    definition = DefinitionParser().parse_file(Path(workflow_file))
    return WorkflowGraph(definition)


def parse_assignments(text: str) -> Dict[str, Any]:
    """Parse "key=value key2=value2" into typed values (true, 3, 1.5, text)"""
    data = {}
    for token in text.split():
        if "=" not in token:
            raise click.BadParameter(f"Expected key=value, got '{token}'")
        key, raw = token.split("=", 1)
        try:
            value = yaml.safe_load(raw) if raw else ""
        except yaml.YAMLError:
            value = raw
        data[key] = value
    return data


@click.group()
@click.option('--log-level', default=None, help='Override WORKFLOW_LOG_LEVEL')
@click.pass_context
def cli(ctx, log_level):
    """Guest Workflow Runtime CLI"""
    settings = RuntimeSettings.from_env()
    if log_level:
        settings.log_level = log_level.upper()
    configure_logging(settings)
    ctx.obj = settings


@cli.command()
@click.argument('workflow_file', type=click.Path(exists=True, dir_okay=False))
def validate(workflow_file):
    """Validate a workflow definition"""
    try:
        graph = _load_graph(workflow_file)
    except DefinitionError as e:
        click.echo(f"✗ {workflow_file} is invalid", err=True)
        click.echo(format_validation_errors(e.errors), err=True)
        sys.exit(1)

    click.echo(
        f"✓ {graph.definition.name or graph.id} is valid "
        f"({len(graph)} nodes, entry '{graph.entry_node.id}')"
    )


@cli.command()
@click.argument('workflow_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--as-json', 'as_json', is_flag=True, help='Print the normalized definition as JSON')
def inspect(workflow_file, as_json):
    """Show the nodes and transitions of a workflow"""
    try:
        graph = _load_graph(workflow_file)
    except DefinitionError as e:
        click.echo(format_validation_errors(e.errors), err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(graph.definition.to_dict(), indent=2, ensure_ascii=False))
        return

    definition = graph.definition
    click.echo(f"Workflow: {definition.name or definition.id} (v{definition.version})")
    click.echo(f"Entry: {graph.entry_node.id}")
    for node in definition.nodes:
        marker = "*" if node is graph.entry_node else " "
        click.echo(f"{marker} {node.id} [{node.type}] {node.label}")
        for output in node.outputs:
            click.echo(f"    --{output.id}--> {output.target or '(end)'}")


def _describe(runner: WorkflowRunner):
    node = runner.current_node
    click.echo(f"\n[{node.type}] {node.label or node.id}")
    if node.is_condition:
        click.echo(
            f"  condition: {node.config.get('field')} "
            f"{node.config.get('operator') or 'truthy'} {node.config.get('value', '')}"
        )
    for output in node.outputs:
        click.echo(f"  - {output.id}: {output.label or output.target or '(end)'}")


async def _drive(runner: WorkflowRunner):
    runner.start()
    while True:
        # let renderers (auto triggers, delays) finish before asking for input
        await runner.wait_for_render()
        if runner.status is not WorkflowStatus.RUNNING:
            break

        _describe(runner)
        node = runner.current_node
        default = node.output_ids[0] if node.outputs else "default"
        answer = click.prompt("output (or back/quit)", default=default)

        if answer == "quit":
            break
        if answer == "back":
            if runner.go_back() is None:
                click.echo("Nothing to go back to")
            continue

        data = parse_assignments(click.prompt("data (key=value ...)", default="", show_default=False))
        try:
            accepted = runner.submit(answer, data)
        except InvalidOutputError as e:
            click.echo(f"Rejected: {e}")
            continue
        if not accepted:
            rejection = runner.engine.last_rejection
            click.echo(f"Rejected: {rejection}" if rejection else "Input ignored")


@cli.command()
@click.argument('workflow_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--event-id', default='', help='Host event id passed to the steps')
@click.pass_obj
def run(settings, workflow_file, event_id):
    """Walk through a workflow interactively"""
    try:
        graph = _load_graph(workflow_file)
    except DefinitionError as e:
        click.echo(format_validation_errors(e.errors), err=True)
        sys.exit(1)

    runner = WorkflowRunner(
        graph,
        event_id=event_id,
        strict=settings.strict_outputs,
        max_auto_advance=settings.max_auto_advance
    )
    asyncio.run(_drive(runner))

    state = runner.state
    click.echo(f"\nStatus: {state.status.value}")
    if state.error:
        click.echo(f"Error: {state.error}")
    click.echo(json.dumps(state.collected_data, indent=2, ensure_ascii=False, default=str))
    if state.status is WorkflowStatus.ERROR:
        sys.exit(1)


@cli.command()
@click.option('--host', default=None, help='Host to bind to (API_HOST)')
@click.option('--port', default=None, type=int, help='Port to bind to (API_PORT)')
@click.option('--reload/--no-reload', default=None, help='Toggle auto-reload (API_RELOAD)')
@click.pass_obj
def serve(settings, host, port, reload):
    """Start the API server"""
    import uvicorn

    host = host or settings.api_host
    port = port or settings.api_port
    click.echo(f"Starting API server on {host}:{port}")
    uvicorn.run(
        "workflow_runtime.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=settings.api_reload if reload is None else reload
    )


def main():
    """Main entry point"""
    cli()


if __name__ == '__main__':
    main()
