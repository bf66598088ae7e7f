"""Command line interface for certificate issuance policy."""

import logging
from pathlib import Path

import click

from ..config import AuthoritySettings, ConfigProvider, load_registry
from ..crypto import LocallyHeldKey, build_csr
from ..exceptions import ConfigError, PolicyViolation
from ..models import CertificateRequest, DistinguishedName
from ..policy import CompatibilityValidator, PolicyRegistry, ProfileResolver

logger = logging.getLogger(__name__)


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), help='YAML or JSON configuration file')
@click.pass_context
def cli(ctx, debug, config_path):
    """Certificate issuance policy toolkit."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


def _registry(ctx) -> PolicyRegistry:
    """Registry from --config, or built-in policy."""
    if 'registry' not in ctx.obj:
        config_path = ctx.obj.get('config_path')
        try:
            if config_path:
                ctx.obj['registry'] = load_registry(ConfigProvider.from_file(config_path))
            else:
                ctx.obj['registry'] = PolicyRegistry.default()
        except ConfigError as e:
            raise click.ClickException(str(e))
    return ctx.obj['registry']


def _request(common_name, san, key_algorithm, key_size, signature, profile, country=(), organization=()):
    return CertificateRequest(
        common_name=common_name,
        subject_alternative_names=list(san),
        distinguished_name=DistinguishedName(country=list(country), organization=list(organization)),
        key_algorithm=key_algorithm,
        key_size=key_size,
        signature_algorithm=signature,
        profile=profile,
    )


@cli.group()
def policy():
    """Inspect and exercise issuance policy."""
    pass


@policy.command('show')
@click.pass_context
def policy_show(ctx):
    """List key algorithms, signatures and profiles."""
    registry = _registry(ctx)

    click.echo("=== Key Algorithms ===")
    for name, key_policy in sorted(registry.key_algorithms.items()):
        sizes = ', '.join(str(s) for s in sorted(key_policy.key_sizes))
        click.echo(f"{name} ({key_policy.algorithm.value})")
        click.echo(f"  Key sizes:  {sizes}")
        click.echo(f"  Signatures: {', '.join(sorted(key_policy.signatures))}")

    click.echo("\n=== Signatures ===")
    for name, mapping in sorted(registry.signatures.items()):
        codes = ', '.join(f"{b}={c}" for b, c in mapping.backend_codes)
        click.echo(f"{name}: {mapping.algorithm.value} [{codes}]")

    click.echo("\n=== Profiles ===")
    for name in sorted(registry.profiles):
        click.echo(f"  - {name}")


@policy.command('check')
@click.option('--key-algorithm', required=True, help='Key algorithm (e.g., RSA)')
@click.option('--key-size', required=True, type=int, help='Key size in bits')
@click.option('--signature', required=True, help='Signature algorithm (e.g., SHA256WITHRSA)')
@click.option('--profile', required=True, help='Certificate profile name')
@click.option('--common-name', default='policy-check.local', help='Subject common name')
@click.pass_context
def policy_check(ctx, key_algorithm, key_size, signature, profile, common_name):
    """Check whether a request combination is permitted."""
    registry = _registry(ctx)
    request = _request(common_name, (), key_algorithm, key_size, signature, profile)

    try:
        validated = CompatibilityValidator(registry).validate(request)
        resolved = ProfileResolver(registry).resolve(profile)
    except PolicyViolation as e:
        click.echo(f"✗ {type(e).__name__}: {e}", err=True)
        ctx.exit(1)

    click.echo("✓ Request permitted")
    click.echo(f"  Key:           {validated.key_policy.algorithm.value}-{key_size}")
    click.echo(f"  Signature:     {validated.signature.algorithm.value}")
    click.echo(f"  Key usage:     {', '.join(sorted(u.value for u in resolved.key_usage))}")
    click.echo(f"  Ext key usage: {', '.join(u.value for u in resolved.extended_key_usage)}")
    click.echo(f"  Template:      {resolved.template_arn}")


@cli.group()
def profile():
    """Certificate profiles."""
    pass


@profile.command('show')
@click.argument('name')
@click.pass_context
def profile_show(ctx, name):
    """Display a certificate profile."""
    try:
        resolved = ProfileResolver(_registry(ctx)).resolve(name)
    except PolicyViolation as e:
        click.echo(f"✗ {e}", err=True)
        ctx.exit(1)

    click.echo(f"Profile:            {resolved.name}")
    click.echo(f"Key usage:          {', '.join(sorted(u.value for u in resolved.key_usage))}")
    click.echo(f"Key usage bits:     {resolved.key_usage_bits}")
    click.echo(f"Extended key usage: {', '.join(u.value for u in resolved.extended_key_usage)}")
    click.echo(f"Template:           {resolved.template_arn}")


@cli.group()
def authority():
    """Issuing authority settings."""
    pass


@authority.command('show')
@click.pass_context
def authority_show(ctx):
    """Display the configured issuing authority."""
    config_path = ctx.obj.get('config_path')
    if not config_path:
        raise click.ClickException("--config is required to show the authority")
    try:
        settings = ConfigProvider.from_file(config_path).get('authority', AuthoritySettings)
    except ConfigError as e:
        raise click.ClickException(str(e))

    reference = settings.to_reference()
    click.echo(f"Authority:       {reference.authority_arn}")
    click.echo(f"Region:          {reference.region}")
    click.echo(f"Assume role:     {reference.role_arn if reference.assume_role else 'no'}")
    click.echo(f"Root CA:         {'yes' if settings.root_ca else 'no'}")
    click.echo(f"Validity:        {settings.validity_days} days")
    click.echo(f"Signing timeout: {settings.signing_timeout}s")


@cli.group()
def csr():
    """Certificate signing requests."""
    pass


@csr.command('generate')
@click.option('--common-name', required=True, help='Subject common name')
@click.option('--san', multiple=True, help='Subject alternative name (repeatable)')
@click.option('--country', multiple=True, help='Subject country')
@click.option('--organization', multiple=True, help='Subject organization')
@click.option('--key-algorithm', default='ECDSA', help='Key algorithm')
@click.option('--key-size', default=256, type=int, help='Key size in bits')
@click.option('--signature', default='SHA256WITHECDSA', help='Signature algorithm')
@click.option('--profile', default='EndEntityClientAuthCertificate', help='Certificate profile')
@click.option('--output', required=True, help='Output path (without extension)')
@click.pass_context
def csr_generate(ctx, common_name, san, country, organization, key_algorithm, key_size, signature, profile, output):
    """Generate a key pair and CSR permitted by policy."""
    registry = _registry(ctx)
    request = _request(common_name, san, key_algorithm, key_size, signature, profile, country, organization)

    try:
        validated = CompatibilityValidator(registry).validate(request)
        ProfileResolver(registry).resolve(profile)
    except PolicyViolation as e:
        click.echo(f"✗ {type(e).__name__}: {e}", err=True)
        ctx.exit(1)

    key = LocallyHeldKey.generate(validated.key_policy.algorithm, key_size)
    signing_request = build_csr(request, key, validated.signature.algorithm)

    base = Path(output)
    base.parent.mkdir(parents=True, exist_ok=True)
    csr_path = base.with_suffix('.csr')
    key_path = base.with_suffix('.key')

    csr_path.write_text(signing_request.csr_pem)
    key_path.write_text(signing_request.private_key_pem)
    key_path.chmod(0o600)

    click.echo(f"✓ CSR generated for {common_name}")
    click.echo(f"  CSR:         {csr_path}")
    click.echo(f"  Private key: {key_path}")
    click.echo(f"  Key:         {key.identity()}")


def main():
    """Entry point for CLI."""
    cli(obj={})


if __name__ == '__main__':
    main()
