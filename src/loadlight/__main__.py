"""Main entry point for ``python -m loadlight``."""

from loadlight.cli.main import cli

if __name__ == "__main__":
    cli()
