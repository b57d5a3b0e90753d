"""
Config commands.

Commands:
    - config show [--field FIELD]   # Display configuration
    - config path                   # Where the config file lives
    - config validate               # Validate config file and rules file
"""

from pathlib import Path
from typing import Optional

import click

from loadlight.devices import RuleTableSchema
from loadlight.exceptions import ConfigurationError
from loadlight.models import DEFAULT_CONFIG_PATH, LoadLightConfig
from loadlight.utils import PydanticPersistence


def _config_path(ctx) -> Path:
    opts = ctx.find_root().obj or {}
    return opts.get("config_path") or DEFAULT_CONFIG_PATH


@click.group(name="config")
def config():
    """Inspect loadlight settings."""
    pass


@config.command(name="show")
@click.option(
    '--field',
    '-f',
    type=str,
    default=None,
    help='Show specific field instead of all fields'
)
@click.pass_context
def show(ctx, field: Optional[str]):
    """Display current configuration (defaults if no file exists)."""
    try:
        model = LoadLightConfig.load_or_default(_config_path(ctx))
    except ConfigurationError as e:
        click.echo(f"Error: {e.user_message}", err=True)
        if e.recovery_hint:
            click.echo(f"Hint: {e.recovery_hint}", err=True)
        ctx.exit(1)

    model_dict = model.model_dump(mode="json")
    if field:
        if field not in model_dict:
            click.echo(f"Error: Field '{field}' does not exist", err=True)
            ctx.exit(1)
        click.echo(f"{field}: {model_dict[field]}")
        return

    click.echo("\nLoadLightConfig Configuration:")
    click.echo("=" * 60)
    for key, value in model_dict.items():
        click.echo(f"  {key}: {value}")
    click.echo("")


@config.command(name="path")
@click.pass_context
def path(ctx):
    """Print the config file location."""
    config_path = _config_path(ctx)
    status = "exists" if config_path.exists() else "not created, defaults in use"
    click.echo(f"{config_path} ({status})")


@config.command(name="validate")
@click.pass_context
def validate(ctx):
    """Validate the config file and, if set, the custom rules file."""
    config_path = _config_path(ctx)
    if not config_path.exists():
        click.echo(f"✓ {config_path} does not exist, defaults are valid")
        model = LoadLightConfig()
    else:
        try:
            model = PydanticPersistence.load_json(config_path, LoadLightConfig)
        except ConfigurationError as e:
            click.echo(f"✗ Validation failed: {e.user_message}", err=True)
            if e.recovery_hint:
                click.echo(f"  Hint: {e.recovery_hint}", err=True)
            ctx.exit(1)
        click.echo(f"✓ {config_path} is valid")

    if model.rules_file is None:
        click.echo("✓ Using built-in lighting rules")
        return

    is_valid, message = PydanticPersistence.validate_json(model.rules_file, RuleTableSchema)
    if not is_valid:
        click.echo(f"✗ Rules file {model.rules_file}: {message}", err=True)
        ctx.exit(1)
    click.echo(f"✓ Rules file {model.rules_file} is valid")
