"""
CLI entry point for Tiergate.

Provides command-line interface for license issuance (key generation,
signing) and for inspecting license keys and the feature registry.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from tiergate._version import __version__
from tiergate.cli.context import CLIContext, pass_context
from tiergate.cli.keys import keys_group
from tiergate.cli.license import license_group
from tiergate.config.settings import get_default_config_path, load_config
from tiergate.exceptions import InvalidConfigurationError
from tiergate.logging_config import setup_logging


@click.group()
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help=f'Path to configuration file (default: {get_default_config_path()})',
)
@click.option(
    '--log-level',
    '-l',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    default=None,
    help='Set logging level (overrides configuration)',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose output',
)
@click.version_option(version=__version__, prog_name='tiergate')
@pass_context
def cli(ctx: CLIContext, config: Optional[Path], log_level: Optional[str], verbose: bool):
    """
    Tiergate - Offline license verification and entitlement gating.

    Issues Ed25519-signed license keys and inspects them offline.
    """
    ctx.verbose = verbose
    ctx.config_path = str(config) if config else None

    try:
        ctx.config = load_config(ctx.config_path)
    except InvalidConfigurationError as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        sys.exit(1)

    effective_log_level = log_level.upper() if log_level else ctx.config.logging.level.upper()
    log_file = Path(ctx.config.logging.file) if ctx.config.logging.file else None
    setup_logging(
        level=effective_log_level,
        log_file=log_file,
        json_format=ctx.config.logging.format == "json",
    )

    if verbose:
        logger = logging.getLogger("tiergate")
        logger.info(f"Loaded configuration from: {ctx.config_path or 'defaults'}")
        logger.info(f"Log level: {effective_log_level}")


cli.add_command(keys_group)
cli.add_command(license_group)


if __name__ == '__main__':
    cli()
