"""CLI commands that run resource callbacks against plan and state files."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import click
import yaml
from pydantic import ValidationError as PydanticValidationError
from tabulate import tabulate

from spheron_provider.cli.config import get_provider
from spheron_provider.exceptions import SpheronProviderError
from spheron_provider.resources.base import Resource, ResourceResult, Severity


def _get_resource(ctx, resource_type: str) -> Resource:
    try:
        provider = get_provider(ctx.obj['config'])
        return provider.get_resource(resource_type)
    except SpheronProviderError as e:
        click.echo(f"❌ {e.message}", err=True)
        raise click.Abort()


def _load_model(resource: Resource, path: str):
    """Load a YAML or JSON plan/state file into the resource's model."""
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        click.echo(f"❌ Failed to read {path}: {e}", err=True)
        raise click.Abort()

    # Accept files written by --output, which wrap the state
    if isinstance(data, dict) and 'state' in data and isinstance(data['state'], dict):
        data = data['state']

    try:
        return resource.model.model_validate(data)
    except PydanticValidationError as e:
        click.echo(f"❌ Invalid {resource.type_suffix} attributes in {path}:\n{e}", err=True)
        raise click.Abort()


def _format_value(value: Any) -> str:
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return '' if value is None else str(value)


def _emit(result: ResourceResult, resource_type: str, output: Optional[str], output_format: str) -> None:
    """Print diagnostics and state; abort when the operation failed."""
    for diagnostic in result.diagnostics:
        icon = "❌" if diagnostic.severity == Severity.ERROR else "⚠️ "
        message = f"{icon} {diagnostic.summary}"
        if diagnostic.detail and diagnostic.detail != diagnostic.summary:
            message += f"\n   {diagnostic.detail}"
        click.echo(message, err=True)

    state: Optional[Dict[str, Any]] = result.state.to_state() if result.state is not None else None

    if state is not None and output:
        Path(output).write_text(json.dumps({'type': resource_type, 'state': state}, indent=2))
        click.echo(f"State written to {output}", err=True)

    if state is not None:
        if output_format == 'json':
            click.echo(json.dumps(state, indent=2))
        else:
            rows = [[name, _format_value(value)] for name, value in state.items()]
            click.echo(tabulate(rows, headers=['Attribute', 'Value'], tablefmt='grid'))

    if not result.succeeded:
        raise click.Abort()


def _output_options(func):
    func = click.option('--output', '-o', type=click.Path(dir_okay=False),
                        help='Write the resulting state to this file')(func)
    func = click.option('--format', '-f', 'output_format', type=click.Choice(['table', 'json']),
                        default='table', help='Output format')(func)
    return func


@click.group()
def resource_cli():
    """Resource lifecycle commands."""
    pass


@resource_cli.command('create')
@click.argument('resource_type')
@click.option('--plan', '-p', 'plan_file', required=True, type=click.Path(exists=True, dir_okay=False),
              help='YAML or JSON file with the planned attributes')
@_output_options
@click.pass_context
def create_resource(ctx, resource_type, plan_file, output, output_format):
    """Create a resource from a plan file."""
    resource = _get_resource(ctx, resource_type)
    plan = _load_model(resource, plan_file)

    click.echo(f"⏳ Creating {resource_type}...", err=True)
    result = resource.create(plan)
    _emit(result, resource_type, output, output_format)
    click.echo(f"✅ {resource_type} {result.state.id} created", err=True)


@resource_cli.command('read')
@click.argument('resource_type')
@click.option('--state', '-s', 'state_file', required=True, type=click.Path(exists=True, dir_okay=False),
              help='File with the current state')
@_output_options
@click.pass_context
def read_resource(ctx, resource_type, state_file, output, output_format):
    """Refresh a resource's state from the API."""
    resource = _get_resource(ctx, resource_type)
    state = _load_model(resource, state_file)

    result = resource.read(state)
    _emit(result, resource_type, output, output_format)


@resource_cli.command('update')
@click.argument('resource_type')
@click.option('--plan', '-p', 'plan_file', required=True, type=click.Path(exists=True, dir_okay=False),
              help='YAML or JSON file with the planned attributes, including the id')
@_output_options
@click.pass_context
def update_resource(ctx, resource_type, plan_file, output, output_format):
    """Apply a plan to an existing resource."""
    resource = _get_resource(ctx, resource_type)
    plan = _load_model(resource, plan_file)

    click.echo(f"⏳ Updating {resource_type} {plan.id}...", err=True)
    result = resource.update(plan)
    _emit(result, resource_type, output, output_format)
    click.echo(f"✅ {resource_type} {plan.id} updated", err=True)


@resource_cli.command('delete')
@click.argument('resource_type')
@click.option('--state', '-s', 'state_file', required=True, type=click.Path(exists=True, dir_okay=False),
              help='File with the current state')
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation')
@click.pass_context
def delete_resource(ctx, resource_type, state_file, yes):
    """Destroy a resource."""
    resource = _get_resource(ctx, resource_type)
    state = _load_model(resource, state_file)

    if not yes and not click.confirm(f"Destroy {resource_type} {state.id}?"):
        click.echo("Cancelled", err=True)
        return

    result = resource.delete(state)
    _emit(result, resource_type, None, 'table')
    click.echo(f"✅ {resource_type} {state.id} destroyed", err=True)


@resource_cli.command('import')
@click.argument('resource_type')
@click.argument('resource_id')
@click.option('--refresh/--no-refresh', default=True, help='Read the full state after importing')
@_output_options
@click.pass_context
def import_resource(ctx, resource_type, resource_id, refresh, output, output_format):
    """Import an existing remote object by ID."""
    resource = _get_resource(ctx, resource_type)

    result = resource.import_state(resource_id)
    if refresh and result.succeeded:
        result = resource.read(result.state)

    _emit(result, resource_type, output, output_format)
