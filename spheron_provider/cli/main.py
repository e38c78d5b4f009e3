"""Main CLI entry point for the Spheron provider."""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from spheron_provider import __version__
from spheron_provider.cli.config import load_cli_config, mask_token, save_cli_config
from spheron_provider.cli.resource_commands import resource_cli
from spheron_provider.exceptions import SpheronProviderError
from spheron_provider.logging_config import setup_logging
from spheron_provider.provider import SpheronProvider


@click.group()
@click.option('--config-file', '-c', default='~/.spheron-provider/config.json',
              help='Configuration file path')
@click.option('--token', '-t', help='Spheron API token')
@click.option('--api-url', help='Spheron API URL')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, config_file, token, api_url, verbose):
    """Spheron provider CLI - run instance and domain resource operations."""

    # Setup logging
    if verbose:
        setup_logging('DEBUG')

    # Ensure context object exists
    ctx.ensure_object(dict)

    # Load configuration
    config_path = Path(config_file).expanduser()
    cli_config = load_cli_config(config_path)

    # Override config with command line options
    if token:
        cli_config['token'] = token
    if api_url:
        cli_config['api_url'] = api_url

    # Store config in context
    ctx.obj['config'] = cli_config
    ctx.obj['config_path'] = config_path


@cli.command()
@click.option('--token', '-t', required=True, prompt=True, hide_input=True, help='Spheron API token')
@click.option('--api-url', help='Spheron API URL')
@click.pass_context
def configure(ctx, token, api_url):
    """Store API credentials for later commands."""

    config = {'token': token}
    if api_url:
        config['api_url'] = api_url

    # Save configuration
    config_path = ctx.obj['config_path']
    try:
        save_cli_config(config_path, config)
    except SpheronProviderError as e:
        click.echo(f"❌ {e.message}", err=True)
        raise click.Abort()

    click.echo(f"✅ Configuration saved to {config_path}")
    click.echo(f"   Token: {mask_token(token)}")
    if api_url:
        click.echo(f"   API URL: {api_url}")


@cli.command()
@click.pass_context
def config(ctx):
    """Show current configuration."""

    config = dict(ctx.obj['config'])
    config['token'] = mask_token(config.get('token'))
    config_path = ctx.obj['config_path']

    click.echo(f"Configuration file: {config_path}")
    click.echo("Current configuration:")
    click.echo(json.dumps(config, indent=2))


@cli.command()
@click.argument('resource_type', required=False)
def schema(resource_type: Optional[str]):
    """Show the provider schema, or the schema of one resource type."""

    provider = SpheronProvider()

    if resource_type:
        resources = provider.resource_map()
        if resource_type not in resources:
            click.echo(f"❌ Unknown resource type '{resource_type}'. "
                       f"Available: {', '.join(sorted(resources))}", err=True)
            raise click.Abort()
        click.echo(json.dumps(resources[resource_type].schema().to_dict(), indent=2))
        return

    output = {
        'provider': provider.schema().to_dict(),
        'resources': {name: r.schema().to_dict() for name, r in provider.resource_map().items()}
    }
    click.echo(json.dumps(output, indent=2))


@cli.command()
def version():
    """Show version information."""

    click.echo("Spheron Provider CLI")
    click.echo(f"Version: {__version__}")


# Add command groups
cli.add_command(resource_cli, name='resource')


def main():
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\n👋 Operation cancelled by user")
        sys.exit(1)


if __name__ == '__main__':
    main()
