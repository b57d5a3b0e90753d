"""List OpenRGB controllers and how loadlight will light them."""

import logging
from typing import Optional

import click

from loadlight.devices import RuleRegistry
from loadlight.exceptions import LoadLightError
from loadlight.lighting import OpenRGBConnector
from loadlight.models import LoadLightConfig

logger = logging.getLogger(__name__)


@click.command(name="devices")
@click.option('--host', type=str, default=None, help='OpenRGB host (default: from config)')
@click.option('--port', type=int, default=None, help='OpenRGB SDK port (default: from config)')
@click.pass_context
def devices(ctx, host: Optional[str], port: Optional[int]):
    """
    List controllers and zones reported by OpenRGB.

    Use the names shown here when writing a custom rules file. Each
    controller is marked with the rule that applies to it.
    """
    from loadlight.cli.main import show_error

    opts = ctx.obj or {}
    try:
        config_obj = LoadLightConfig.load_or_default(opts.get("config_path"))
        registry = RuleRegistry(config_obj.rules_file)
        connector = OpenRGBConnector(
            host=host or config_obj.openrgb_host,
            port=port or config_obj.openrgb_port,
            client_name=config_obj.client_name,
        )
        connection = connector.connect()
    except LoadLightError as e:
        show_error(e)
        ctx.exit(1)

    try:
        count = connection.controller_count()
        click.echo(f"OpenRGB at {connector.address}: {count} controller(s)\n")
        if count == 0:
            click.echo("  No controllers found.")

        for controller_id in range(count):
            topology = connection.get_topology(controller_id)
            rule = registry.find(topology.name)
            if rule is None:
                applies = "fallback"
            elif rule.zones:
                applies = "zone rules"
            else:
                applies = "device rule"

            click.echo(f"  [{controller_id}] {topology.name} ({topology.led_count} LEDs) - {applies}")
            for zone in topology.zones:
                marker = ""
                if rule is not None and rule.zones and rule.find_zone(zone.name) is None:
                    marker = "  (no rule, controller will be skipped)"
                click.echo(f"      {zone.name}: {zone.led_count} LEDs{marker}")

    except LoadLightError as e:
        show_error(e)
        ctx.exit(1)
    finally:
        connection.close()
