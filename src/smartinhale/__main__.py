"""Entry point for `python -m smartinhale`."""

from smartinhale.cli import cli

if __name__ == "__main__":
    cli()
