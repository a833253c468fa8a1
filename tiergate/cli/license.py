"""
CLI commands for issuing and inspecting license keys.

Provides commands for:
- Issuing a signed license key (vendor side, needs the private key)
- Verifying a license key offline
- Listing the feature registry
"""

import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Optional, Tuple

import click

from tiergate.exceptions import InvalidPublicKeyError, SigningError, VerificationError
from tiergate.license.features import FEATURE_REGISTRY, features_for_tier
from tiergate.license.manager import LicenseResponse
from tiergate.license.model import (
    License,
    LicenseType,
    Limits,
    LimitType,
    Tier,
    default_limits,
    ensure_utc,
)
from tiergate.license.signer import LicenseSigner
from tiergate.license.verifier import LicenseVerifier
from tiergate.logging_config import get_logger

logger = get_logger(__name__)


_DATETIME_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


def _parse_pairs(ctx, param, values: Tuple[str, ...]) -> Dict[str, str]:
    pairs: Dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected NAME=VALUE, got {item!r}")
        pairs[name.strip()] = value.strip()
    return pairs


def _parse_limits(ctx, param, values: Tuple[str, ...]) -> Dict[str, int]:
    valid = [limit.value for limit in LimitType]
    limits: Dict[str, int] = {}
    for name, value in _parse_pairs(ctx, param, values).items():
        if name not in valid:
            raise click.BadParameter(f"unknown limit {name!r}, expected one of {valid}")
        try:
            limits[name] = int(value)
        except ValueError:
            raise click.BadParameter(f"limit {name!r} must be an integer, got {value!r}")
        if limits[name] < 0:
            raise click.BadParameter(f"limit {name!r} must be non-negative (0 = unlimited)")
    return limits


@click.group(name="license")
def license_group():
    """Issue and inspect license keys."""
    pass


@license_group.command(name="issue")
@click.option("--private-key", "-k", required=True, type=click.Path(dir_okay=False), help="Path to signing private key")
@click.option("--passphrase", "-P", help="Passphrase if private key is encrypted")
@click.option("--license-id", "-i", default=None, help="License ID (default: random UUID)")
@click.option("--tier", "-t", required=True, type=click.Choice([t.value for t in Tier]), help="License tier")
@click.option(
    "--type",
    "license_type",
    type=click.Choice([t.value for t in LicenseType]),
    default=LicenseType.SUBSCRIPTION.value,
    show_default=True,
    help="License type",
)
@click.option("--customer-id", default="", help="Customer ID")
@click.option("--customer-name", default="", help="Customer name")
@click.option("--email", default="", help="Customer email")
@click.option("--issued-at", type=click.DateTime(formats=_DATETIME_FORMATS), default=None, help="Start of validity, UTC (default: now)")
@click.option("--days", type=click.IntRange(min=1), default=365, show_default=True, help="Validity period in days")
@click.option("--expires-at", type=click.DateTime(formats=_DATETIME_FORMATS), default=None, help="End of validity, UTC (overrides --days)")
@click.option("--perpetual", is_flag=True, help="Issue a license that never expires")
@click.option("--feature", "-f", "features", multiple=True, help="Explicitly granted feature (repeatable)")
@click.option("--limit", "limits", multiple=True, callback=_parse_limits, help="Limit override NAME=VALUE (repeatable)")
@click.option("--metadata", "-m", multiple=True, callback=_parse_pairs, help="Metadata KEY=VALUE (repeatable)")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write the key to a file instead of stdout")
def issue(
    private_key: str,
    passphrase: Optional[str],
    license_id: Optional[str],
    tier: str,
    license_type: str,
    customer_id: str,
    customer_name: str,
    email: str,
    issued_at: Optional[datetime],
    days: int,
    expires_at: Optional[datetime],
    perpetual: bool,
    features: Tuple[str, ...],
    limits: Dict[str, int],
    metadata: Dict[str, str],
    output: Optional[str],
):
    """
    Issue a signed license key.

    Missing limits take the tier defaults.

    Example:
        tiergate license issue -k issuer.pem -t business --customer-name "Acme" --days 365
    """
    if perpetual and expires_at is not None:
        click.echo("Error: --perpetual and --expires-at are mutually exclusive", err=True)
        sys.exit(1)

    start = ensure_utc(issued_at) if issued_at else datetime.now(timezone.utc)
    if perpetual:
        end = None
    elif expires_at is not None:
        end = ensure_utc(expires_at)
    else:
        end = start + timedelta(days=days)

    for feature in features:
        if feature not in FEATURE_REGISTRY:
            click.echo(f"Warning: '{feature}' is not a registered feature", err=True)

    tier_value = Tier(tier)
    try:
        license = License(
            id=license_id or str(uuid.uuid4()),
            customer_id=customer_id,
            customer_name=customer_name,
            email=email,
            type=LicenseType(license_type),
            tier=tier_value,
            issued_at=start,
            expires_at=end,
            features=frozenset(features),
            limits=Limits.from_mapping(limits, defaults=default_limits(tier_value)),
            metadata=metadata,
        )
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    try:
        signer = LicenseSigner.from_private_key_file(private_key, passphrase=passphrase or None)
        key = signer.sign_to_string(license)
    except (FileNotFoundError, SigningError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    logger.info(f"Issued license {license.id} ({license.tier.value})")

    if output:
        Path(output).write_text(key + "\n")
        click.echo(f"✓ Issued license {license.id} ({license.tier.value})")
        click.echo(f"  Key written to: {output}")
    else:
        click.echo(key)


@license_group.command(name="verify")
@click.argument("key", required=False)
@click.option("--key-file", type=click.Path(exists=True, dir_okay=False), default=None, help="Read the license key from a file")
@click.option("--public-key", type=click.Path(exists=True, dir_okay=False), default=None, help="Public key PEM (default: embedded key)")
@click.option("--at", "at_time", type=click.DateTime(formats=_DATETIME_FORMATS), default=None, help="Verify as of this UTC time (default: now)")
def verify(key: Optional[str], key_file: Optional[str], public_key: Optional[str], at_time: Optional[datetime]):
    """
    Verify a license key offline.

    Exits with status 1 and prints the failure kind if the key is invalid.

    Example:
        tiergate license verify "$TIERGATE_LICENSE_KEY"
    """
    if key_file:
        key = Path(key_file).read_text().strip()
    if not key:
        click.echo("Error: provide KEY or --key-file", err=True)
        sys.exit(1)

    try:
        if public_key:
            verifier = LicenseVerifier.from_public_key_pem(Path(public_key).read_bytes())
        else:
            verifier = LicenseVerifier.from_embedded_key()
    except InvalidPublicKeyError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    now = ensure_utc(at_time) if at_time else datetime.now(timezone.utc)
    try:
        license = verifier.verify(key, now)
    except VerificationError as e:
        click.echo(f"Error: {e.code}: {e}", err=True)
        sys.exit(1)

    response = LicenseResponse.from_license(license, is_community=False)
    click.echo("✓ License is valid")
    click.echo(f"  ID: {license.id}")
    click.echo(f"  Tier: {license.tier.value}")
    click.echo(f"  Type: {license.type.value}")
    if license.customer_name:
        click.echo(f"  Customer: {license.customer_name}")
    click.echo(f"  Issued: {license.issued_at.isoformat()}")
    click.echo(f"  Expires: {license.expires_at.isoformat() if license.expires_at else 'never'}")
    click.echo(f"  Features: {', '.join(response.features) or '(none)'}")
    for name, value in license.limits.to_dict().items():
        click.echo(f"  {name}: {value if value else 'unlimited'}")


@license_group.command(name="features")
@click.option("--tier", "-t", type=click.Choice([t.value for t in Tier]), default=None, help="Only list features included in this tier")
def features(tier: Optional[str]):
    """
    List gated features and the minimum tier for each.

    Example:
        tiergate license features --tier pro
    """
    names = features_for_tier(Tier(tier)) if tier else sorted(FEATURE_REGISTRY)

    click.echo(f"{'Feature':<22} {'Tier':<11} {'Category':<12} Description")
    click.echo("-" * 80)
    for name in names:
        definition = FEATURE_REGISTRY[name]
        click.echo(
            f"{name:<22} {definition.min_tier.value:<11} {definition.category:<12} {definition.description}"
        )
