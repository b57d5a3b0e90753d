"""Main CLI entry point."""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

import click

from .commands import config, devices, service

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_DIR = Path.home() / ".loadlight" / "logs"


def resolve_log_path(debug: bool, log_file: Optional[Path]) -> Path:
    """Where setup_logging() writes for a given set of flags."""
    if log_file:
        return log_file
    if debug:
        # Debug mode: log to current directory
        return Path.cwd() / "loadlight-debug.log"
    return DEFAULT_LOG_DIR / "loadlight.log"


def setup_logging(verbose: int, debug: bool, log_file: Optional[Path], console: bool = True) -> Path:
    """
    Configure logging for the application.

    Args:
        verbose: Verbosity count (0 = INFO, 1+ = DEBUG)
        debug: If True, enable DEBUG and log to ./loadlight-debug.log
        log_file: Custom log file path (optional)
        console: Also log to the terminal. Off under a service manager.

    Returns:
        Path of the log file
    """
    level = logging.DEBUG if debug or verbose >= 1 else logging.INFO

    log_path = resolve_log_path(debug, log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    # Create rotating file handler (keeps last 5 files, max 10MB each)
    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(message)s', datefmt='%H:%M:%S'))
        root_logger.addHandler(console_handler)

    logger.info(f"Logging configured: level={logging.getLevelName(level)}, file={log_path}")
    return log_path


def show_error(error: Exception, log_path: Optional[Path] = None) -> None:
    """Print an error without a traceback, with its recovery hint."""
    from loadlight.exceptions import format_error_for_display

    user_message, recovery_hint = format_error_for_display(error)

    click.echo("\n" + "=" * 70, err=True)
    click.echo(f"ERROR: {user_message}", err=True)
    click.echo("=" * 70, err=True)

    if recovery_hint:
        click.echo(f"\n{recovery_hint}", err=True)

    if log_path is not None:
        click.echo(f"\nFor details, check the log file: {log_path}", err=True)
        click.echo("For logging options, run: loadlight --help", err=True)


@click.group(invoke_without_command=True)
@click.pass_context
@click.version_option(version="0.1.0", prog_name="loadlight")
@click.option(
    '--config',
    '-c',
    'config_path',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Config file (default: ~/.loadlight/config.json)'
)
@click.option(
    '-v', '--verbose',
    count=True,
    help='Increase verbosity (-v: DEBUG)'
)
@click.option(
    '--debug',
    is_flag=True,
    help='Enable debug mode (DEBUG level, logs to ./loadlight-debug.log)'
)
@click.option(
    '--log-file',
    type=click.Path(path_type=Path),
    default=None,
    help='Custom log file path'
)
def cli(
    ctx,
    config_path: Optional[Path],
    verbose: int,
    debug: bool,
    log_file: Optional[Path],
):
    """
    loadlight - tint your RGB hardware by CPU and GPU load.

    Samples CPU and GPU utilization, smooths it over a few seconds and
    pushes per-LED colors to every controller OpenRGB knows about.
    Requires OpenRGB running with its SDK server enabled.

    \b
    Examples:
      # Run in the foreground (Ctrl+C to stop)
      loadlight

      # Run under a service manager (systemd, Windows service wrapper)
      loadlight service

      # See which controllers and zones OpenRGB reports
      loadlight devices

      # Show or check the configuration
      loadlight config show
      loadlight config validate

      # Enable debug logging
      loadlight --debug
    """
    ctx.ensure_object(dict)
    ctx.obj.update(
        config_path=config_path,
        verbose=verbose,
        debug=debug,
        log_file=log_file,
    )

    # If a subcommand was invoked, don't run the loop
    if ctx.invoked_subcommand is not None:
        return

    from loadlight.core import ControlLoop
    from loadlight.models import LoadLightConfig

    log_path = setup_logging(verbose, debug, log_file, console=True)
    logger.info("Starting loadlight")

    loop = None
    try:
        config_obj = LoadLightConfig.load_or_default(config_path)
        loop = ControlLoop.from_config(config_obj)
        loop.run()

    except KeyboardInterrupt:
        # Clean exit on Ctrl+C
        logger.info("Interrupted by user")
        click.echo("\nShutting down...", err=True)
    except click.Abort:
        raise
    except Exception as e:
        logger.exception("Error running loadlight")
        show_error(e, log_path)
        ctx.exit(1)
    finally:
        if loop is not None:
            logger.info(f"Control loop ended in state {loop.state.value}")


# Register commands
cli.add_command(service)
cli.add_command(devices)
cli.add_command(config)

if __name__ == "__main__":
    cli()
