"""
CLI commands for the issuer's signing keys.

tiergate keys generate       new Ed25519 key pair
tiergate keys verify         check that a private key loads
tiergate keys export-public  write the public half for embedding in a build
"""

import sys

import click

from tiergate.license.key_management import KeyManager
from tiergate.logging_config import get_logger

logger = get_logger(__name__)

_private_key_option = click.option(
    "--private-key",
    "-p",
    required=True,
    type=click.Path(dir_okay=False),
    help="Issuer private key (PKCS#8 PEM)",
)
_public_key_option = click.option(
    "--public-key",
    "-u",
    required=True,
    type=click.Path(dir_okay=False),
    help="Public key destination (SubjectPublicKeyInfo PEM)",
)


@click.group(name="keys")
def keys_group():
    """Manage license signing keys."""


@keys_group.command(name="generate")
@_private_key_option
@_public_key_option
@click.option(
    "--passphrase",
    "-P",
    prompt="Passphrase for the private key (empty for none)",
    hide_input=True,
    confirmation_prompt=True,
    default="",
    show_default=False,
    help="Encrypt the private key with this passphrase",
)
@click.option(
    "--audit-log",
    "-a",
    type=click.Path(dir_okay=False),
    help="Append key operations to this JSON-lines file",
)
def generate_key(private_key: str, public_key: str, passphrase: str, audit_log: str):
    """
    Generate a new Ed25519 key pair for license signing.

    Example:
        tiergate keys generate -p /secure/issuer/license.pem -u tiergate/license/keys/public.pem
    """
    try:
        KeyManager(audit_log_path=audit_log).generate_key_pair(
            private_key, public_key, passphrase=passphrase or None
        )
    except FileExistsError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except OSError as e:
        logger.error("key_generation_failed", error=str(e), exc_info=True)
        click.echo(f"Error: could not write key pair: {e}", err=True)
        sys.exit(1)

    click.echo("✓ Generated key pair")
    click.echo(f"  Private: {private_key}")
    click.echo(f"  Public:  {public_key}")
    if not passphrase:
        click.echo("  WARNING: the private key is NOT encrypted")
    if audit_log:
        click.echo(f"  Audit:   {audit_log}")


@keys_group.command(name="verify")
@_private_key_option
@click.option("--passphrase", "-P", default="", help="Passphrase of an encrypted key")
def verify_key(private_key: str, passphrase: str):
    """
    Check that a private key loads and is Ed25519.

    Example:
        tiergate keys verify -p /secure/issuer/license.pem
    """
    if not KeyManager().verify_key(private_key, passphrase=passphrase or None):
        click.echo(f"Error: not a usable Ed25519 private key: {private_key}", err=True)
        sys.exit(1)
    click.echo(f"✓ Key is valid: {private_key}")


@keys_group.command(name="export-public")
@_private_key_option
@_public_key_option
@click.option("--passphrase", "-P", default="", help="Passphrase of an encrypted key")
def export_public_key(private_key: str, public_key: str, passphrase: str):
    """
    Write the public key of an existing private key.

    Example:
        tiergate keys export-public -p /secure/issuer/license.pem -u public.pem
    """
    try:
        KeyManager().export_public_key(private_key, public_key, passphrase=passphrase or None)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Exported public key to {public_key}")
