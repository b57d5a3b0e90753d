"""Service-mode command."""

import logging

import click

from loadlight.core import EXIT_RESTART, ControlLoop, LifecycleCoordinator
from loadlight.exceptions import LoadLightError
from loadlight.models import LoadLightConfig

logger = logging.getLogger(__name__)


@click.command(name="service")
@click.pass_context
def service(ctx):
    """
    Run under a host service manager.

    Logs to file only. The loop runs on a worker thread; SIGTERM, SIGINT
    (and SIGBREAK on Windows) request a graceful stop. Exit status is 0
    after a clean stop and non-zero when the loop failed, so the service
    manager knows to restart it.
    """
    from loadlight.cli.main import setup_logging, show_error

    opts = ctx.obj or {}
    log_path = setup_logging(
        opts.get("verbose", 0), opts.get("debug", False), opts.get("log_file"), console=False
    )
    logger.info("Starting loadlight service")

    try:
        config_obj = LoadLightConfig.load_or_default(opts.get("config_path"))
    except LoadLightError as e:
        logger.error(f"Invalid configuration: {e.technical_message}")
        show_error(e, log_path)
        ctx.exit(EXIT_RESTART)

    coordinator = LifecycleCoordinator(
        lambda token: ControlLoop.from_config(
            config_obj, shutdown=token, escalate_provider_failures=True
        ),
        grace_period=config_obj.shutdown_grace_period,
    )
    coordinator.install_signal_handlers()

    exit_code = coordinator.run()
    logger.info(f"loadlight service exiting with status {exit_code}")
    ctx.exit(exit_code)
