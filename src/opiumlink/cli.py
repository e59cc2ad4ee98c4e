"""
Command line entry point for opiumlink.
"""

import click

from opiumlink import __version__
from opiumlink.delivery.cli import run
from opiumlink.logging_config import configure_logging


@click.group()
@click.version_option(__version__, prog_name="opiumlink")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write logs to this file")
def main(debug: bool, log_file: str | None):
    """opiumlink - deliver scripts to local Opiumware instances.

    Ports and timeouts come from OPIUMLINK_PORTS,
    OPIUMLINK_CONNECT_TIMEOUT_MS and OPIUMLINK_CHECK_TIMEOUT_MS
    (environment or ~/.opiumlink/.env).
    """
    configure_logging(debug=debug, log_file=log_file)


main.add_command(run)


if __name__ == "__main__":
    main()
